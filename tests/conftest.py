"""Shared pytest fixtures."""

from __future__ import annotations

import os

# Force settings to use test-safe defaults before any import
os.environ.setdefault("SSH_HOST", "127.0.0.1")
os.environ.setdefault("SSH_USERNAME", "root")
os.environ.setdefault("SSH_PASSWORD", "test")
os.environ.setdefault("API_KEY", "")

import pytest
from httpx import ASGITransport, AsyncClient

from ssh_sre.config import Settings
from ssh_sre.services.ssh_manager import SSHConnectionManager
from tests.mock_ssh import FakeHost, MockSSHManager


@pytest.fixture
def fake_host():
    """Provide a fresh scriptable SSH host."""
    return FakeHost()


@pytest.fixture
def make_manager(fake_host):
    """Build an SSHConnectionManager wired to ``fake_host``."""
    created: list[SSHConnectionManager] = []

    def _make(**overrides) -> SSHConnectionManager:
        values = dict(
            ssh_host="10.0.0.5",
            ssh_username="root",
            ssh_password="secret",
            command_timeout_ms=2000,
            reconnect_base_delay_ms=0,
        )
        values.update(overrides)
        mgr = SSHConnectionManager(
            Settings(_env_file=None, **values),
            client_factory=fake_host.client_factory,
        )
        created.append(mgr)
        return mgr

    yield _make
    for mgr in created:
        mgr._executor.shutdown(wait=False)


@pytest.fixture
def mock_ssh():
    """Provide a fresh MockSSHManager."""
    return MockSSHManager()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client(mock_ssh):
    """Async test client with the mock SSH manager injected."""
    from ssh_sre.deps import get_ssh_manager
    from ssh_sre.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_ssh_manager] = lambda: mock_ssh

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()

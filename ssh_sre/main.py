"""FastAPI application entry-point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ssh_sre import __version__
from ssh_sre.config import settings
from ssh_sre.errors import ConnectError
from ssh_sre.routers import docker, health, logs, system
from ssh_sre.services.executor import RemoteExecutor
from ssh_sre.services.platforms import PlatformDetectionError, default_registry
from ssh_sre.services.ssh_manager import SSHConnectionManager
from ssh_sre.utils.logging import get_logger, setup_logging

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks.

    The ASGI server turns SIGINT/SIGTERM into the shutdown half, which
    closes the SSH session before the process exits.
    """
    setup_logging()
    # ConfigurationError here is fatal: the service must not start
    manager = SSHConnectionManager(settings)
    app.state.ssh_manager = manager

    try:
        await manager.connect()
    except ConnectError as exc:
        log.warning("startup.connect_failed", error=str(exc), detail="will connect on first command")

    registry = default_registry()
    app.state.platform = registry.get("linux")
    # Probing an unreachable host would only feed the circuit breaker
    if manager.is_connected:
        try:
            app.state.platform = await registry.detect(RemoteExecutor(manager))
        except PlatformDetectionError as exc:
            log.warning("startup.platform_fallback", error=str(exc), platform="linux")
    yield
    # Shutdown: close SSH session
    await manager.close()


app = FastAPI(
    title="SSH SRE API",
    description="Read-only diagnostics for a single host over a resilient SSH session",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(docker.router)
app.include_router(system.router)
app.include_router(logs.router)

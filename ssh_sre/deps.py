"""Request-scoped accessors for the objects built at startup."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from ssh_sre.services.executor import CommandRunner, RemoteExecutor
from ssh_sre.services.platforms import Platform
from ssh_sre.services.ssh_manager import SSHConnectionManager


def get_ssh_manager(request: Request) -> SSHConnectionManager:
    return request.app.state.ssh_manager


def get_runner(
    manager: SSHConnectionManager = Depends(get_ssh_manager),
) -> CommandRunner:
    return RemoteExecutor(manager)


def get_platform(request: Request) -> Optional[Platform]:
    return getattr(request.app.state, "platform", None)

"""Stdout-only command runner used by diagnostics and platform detection."""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from ssh_sre.models.commands import CommandResult

CommandRunner = Callable[[str], Awaitable[str]]


class SupportsExecute(Protocol):
    async def execute_command(self, command: str) -> CommandResult: ...


class RemoteExecutor:
    """Adapts a connection manager to ``await executor(command) -> stdout``.

    Every manager error propagates unchanged.
    """

    def __init__(self, manager: SupportsExecute) -> None:
        self._manager = manager

    async def __call__(self, command: str) -> str:
        result = await self._manager.execute_command(command)
        return result.stdout

"""Command-related data structures."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ConnectionConfig(BaseModel):
    """Immutable connection parameters for the managed host."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = 22
    username: str
    private_key_path: Optional[str] = None
    password: Optional[str] = None


class CommandResult(BaseModel):
    """Outcome of a command that ran to completion within the deadline."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class ManagerStatus(BaseModel):
    """Read-only snapshot of the connection manager state."""

    host: str
    connected: bool
    consecutive_failures: int
    circuit_open: bool
    failure_threshold: int
    command_timeout_ms: int

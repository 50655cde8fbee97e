"""Errors raised by the SSH connection manager.

Callers catch :class:`SSHManagerError` and render the message; the manager
itself never formats user-facing output.
"""

from __future__ import annotations

COMMAND_PREVIEW_LENGTH = 100


def command_preview(command: str, limit: int = COMMAND_PREVIEW_LENGTH) -> str:
    """Truncate *command* to *limit* characters for error messages."""
    if len(command) > limit:
        return command[:limit] + "..."
    return command


class SSHManagerError(Exception):
    pass


class ConfigurationError(SSHManagerError):
    """Connection settings are incomplete. Raised at construction time."""


class ConnectError(SSHManagerError):
    """The SSH handshake or authentication failed."""

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message or f"Failed to connect to SSH server: {reason}")


class ReconnectExhaustedError(ConnectError):
    def __init__(self, attempts: int, reason: str):
        self.attempts = attempts
        super().__init__(reason, f"Failed to reconnect after {attempts} attempts: {reason}")


class CircuitOpenError(SSHManagerError):
    """Raised without any I/O once the failure threshold has been reached."""

    def __init__(self, failures: int):
        self.failures = failures
        super().__init__(
            f"Circuit breaker is open after {failures} consecutive failures. "
            "Check the managed host's health, then restart the service to reset."
        )


class CommandTimeoutError(SSHManagerError):
    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Command timed out after {timeout_ms}ms. "
            "The command may be hung or taking too long. "
            "Consider increasing COMMAND_TIMEOUT_MS if this is a long-running operation."
        )


class ConnectionLostError(SSHManagerError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"SSH connection lost: {reason}. "
            "The next command will attempt to reconnect. "
            "If this persists, check the network connection and SSH credentials."
        )


class CommandExecutionError(SSHManagerError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to execute command: {reason}")


class CommandFailedError(SSHManagerError):
    """The host ran the command and it exited nonzero with stderr output."""

    def __init__(self, command: str, exit_code: int, stderr: str):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f"Command failed (exit {exit_code}): {command_preview(command)}\n{stderr}"
        )

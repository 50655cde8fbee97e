"""SSH connection manager with lazy connect, command deadline and circuit breaker.

Uses a paramiko ``SSHClient`` driven from a thread pool so the FastAPI event
loop is never blocked. One session is shared by every caller; each command
runs on its own channel, so independent commands may be in flight at once.
"""

from __future__ import annotations

import asyncio
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import paramiko

from ssh_sre.config import Settings, settings
from ssh_sre.errors import (
    CircuitOpenError,
    CommandExecutionError,
    CommandFailedError,
    CommandTimeoutError,
    ConfigurationError,
    ConnectError,
    ConnectionLostError,
    ReconnectExhaustedError,
)
from ssh_sre.models.commands import CommandResult, ConnectionConfig, ManagerStatus
from ssh_sre.utils.logging import get_logger

log = get_logger(__name__)

# Failures attributable to the session rather than the command itself
_TRANSPORT_ERRORS = (paramiko.SSHException, EOFError, OSError)

_RECV_CHUNK = 32768
_POLL_INTERVAL = 0.01


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait before reconnect *attempt* (1-based)."""
    return base_delay * 2 ** (attempt - 1)


class SSHConnectionManager:
    """Owns the one SSH session to the managed host.

    Construct once per process and pass it to whoever needs to run commands.
    """

    def __init__(
        self,
        cfg: Settings | None = None,
        *,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
    ) -> None:
        cfg = cfg or settings
        if not cfg.ssh_host:
            raise ConfigurationError("SSH_HOST environment variable is required")
        if not cfg.ssh_username:
            raise ConfigurationError("SSH_USERNAME environment variable is required")
        if not cfg.ssh_private_key_path and not cfg.ssh_password:
            raise ConfigurationError(
                "Either SSH_PRIVATE_KEY_PATH or SSH_PASSWORD environment variable is required"
            )

        self._config = ConnectionConfig(
            host=cfg.ssh_host,
            port=cfg.ssh_port,
            username=cfg.ssh_username,
            private_key_path=cfg.ssh_private_key_path or None,
            password=cfg.ssh_password or None,
        )
        self._connect_timeout = cfg.connect_timeout_seconds
        self._command_timeout_ms = cfg.command_timeout_ms
        self._failure_threshold = cfg.max_consecutive_failures
        self._count_command_failures = cfg.count_command_failures
        self._max_reconnect_attempts = cfg.max_reconnect_attempts
        self._base_backoff = cfg.reconnect_base_delay_ms / 1000

        self._client_factory = client_factory
        self._client: Optional[paramiko.SSHClient] = None
        self._connected = False
        self._reconnect_attempts = 0
        self._consecutive_failures = 0
        self._circuit_open = False

        # Guards session open/close; commands themselves run unlocked
        self._lock = asyncio.Lock()
        # One backoff loop at a time
        self._reconnect_lock = asyncio.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=cfg.ssh_max_workers, thread_name_prefix="ssh",
        )

    # ── connection lifecycle ──────────────────────────────────────────

    def _open_sync(self) -> paramiko.SSHClient:
        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        connect_kwargs: dict = dict(
            hostname=self._config.host,
            port=self._config.port,
            username=self._config.username,
            timeout=self._connect_timeout,
            allow_agent=False,
            look_for_keys=False,
        )
        if self._config.private_key_path:
            connect_kwargs["key_filename"] = os.path.expanduser(self._config.private_key_path)
        else:
            connect_kwargs["password"] = self._config.password
        try:
            client.connect(**connect_kwargs)
        except Exception:
            client.close()
            raise
        return client

    async def _connect_locked(self) -> None:
        stale = self._client
        self._client = None
        if stale is not None:
            await self._close_client(stale)

        log.info("ssh.connecting", host=self._config.host, port=self._config.port)
        try:
            client = await self._run(self._open_sync)
        except Exception as exc:
            self._connected = False
            log.warning("ssh.connect_failed", host=self._config.host, error=str(exc))
            raise ConnectError(str(exc) or type(exc).__name__) from exc

        self._client = client
        self._connected = True
        self._reconnect_attempts = 0
        log.info("ssh.connected", host=self._config.host)

    async def _close_client(self, client: paramiko.SSHClient) -> None:
        try:
            await self._run(client.close)
        except Exception as exc:
            log.warning("ssh.close_failed", error=str(exc))
        else:
            log.info("ssh.closed")

    async def connect(self) -> None:
        """Open a new session. Raises :class:`ConnectError` on failure."""
        async with self._lock:
            await self._connect_locked()

    async def _ensure(self) -> paramiko.SSHClient:
        client = self._client
        if self._connected and client is not None:
            return client
        async with self._lock:
            # Another caller may have connected while we waited
            if not self._connected or self._client is None:
                await self._connect_locked()
            return self._client

    async def reconnect(self) -> None:
        """Retry :meth:`connect` with exponential backoff.

        Waits ``base * 2**(n-1)`` seconds before attempt *n*. Never called
        from :meth:`execute_command`. A live session is left alone, and
        callers arriving while a retry loop runs share its outcome.
        """
        if self._connected:
            return
        async with self._reconnect_lock:
            if self._connected:
                return
            self._reconnect_attempts = 0
            last_error = ""
            while self._reconnect_attempts < self._max_reconnect_attempts:
                self._reconnect_attempts += 1
                delay = backoff_delay(self._reconnect_attempts, self._base_backoff)
                log.info(
                    "ssh.reconnect_attempt",
                    attempt=self._reconnect_attempts,
                    max_attempts=self._max_reconnect_attempts,
                    delay=delay,
                )
                await asyncio.sleep(delay)
                try:
                    await self.connect()
                    return
                except ConnectError as exc:
                    last_error = exc.reason
            raise ReconnectExhaustedError(self._max_reconnect_attempts, last_error)

    async def disconnect(self) -> None:
        """Release the session. Safe to call repeatedly or before connecting."""
        async with self._lock:
            client = self._client
            self._client = None
            self._connected = False
            if client is not None:
                await self._close_client(client)

    async def close(self) -> None:
        """Disconnect and stop the worker threads (process shutdown)."""
        await self.disconnect()
        self._executor.shutdown(wait=False)

    @property
    def is_connected(self) -> bool:
        return self._connected

    # ── helpers ───────────────────────────────────────────────────────

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    def _record_success(self) -> None:
        if self._circuit_open:
            return
        self._consecutive_failures = 0

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        if not self._circuit_open and self._consecutive_failures >= self._failure_threshold:
            self._circuit_open = True
            log.error(
                "ssh.circuit_open",
                failures=self._consecutive_failures,
                detail="commands will fail immediately until the service is restarted",
            )

    # ── public: command execution ─────────────────────────────────────

    async def execute_command(self, command: str) -> CommandResult:
        """Run *command* on the managed host within the command deadline.

        Raises :class:`CommandFailedError` when the command exits nonzero
        with stderr output; a nonzero exit with empty stderr is returned as
        a normal result.
        """
        if self._circuit_open:
            raise CircuitOpenError(self._consecutive_failures)

        try:
            client = await self._ensure()
        except ConnectError:
            self._record_failure()
            raise

        timeout = self._command_timeout_ms / 1000
        inflight = _InFlight()
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(
            self._executor, _exec_command_wrapper, client, command, timeout, inflight,
        )
        done, _ = await asyncio.wait({future}, timeout=timeout)
        if not done:
            # Closing the channel hands the worker back; any late result is dropped
            future.cancel()
            inflight.abandon()
            self._record_failure()
            log.warning("ssh.command_timeout", timeout_ms=self._command_timeout_ms)
            raise CommandTimeoutError(self._command_timeout_ms)

        try:
            result = future.result()
        except _TRANSPORT_ERRORS as exc:
            if self._client is client:
                self._connected = False
            self._record_failure()
            log.warning("ssh.connection_lost", error=str(exc))
            raise ConnectionLostError(str(exc) or type(exc).__name__) from exc
        except Exception as exc:
            self._record_failure()
            raise CommandExecutionError(str(exc) or type(exc).__name__) from exc

        if result.exit_code != 0 and result.stderr:
            if self._count_command_failures:
                self._record_failure()
            else:
                self._record_success()
            raise CommandFailedError(command, result.exit_code, result.stderr)

        self._record_success()
        return result

    def status(self) -> ManagerStatus:
        return ManagerStatus(
            host=self._config.host,
            connected=self._connected,
            consecutive_failures=self._consecutive_failures,
            circuit_open=self._circuit_open,
            failure_threshold=self._failure_threshold,
            command_timeout_ms=self._command_timeout_ms,
        )


# ── module-level sync wrappers (executor-friendly) ────────────────────────

class _InFlight:
    """Channel of a running command, closable from the event loop."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._channel: Optional[paramiko.Channel] = None
        self.abandoned = False

    def attach(self, channel: paramiko.Channel) -> bool:
        with self._lock:
            if not self.abandoned:
                self._channel = channel
                return True
        channel.close()
        return False

    def abandon(self) -> None:
        with self._lock:
            self.abandoned = True
            channel = self._channel
        if channel is not None:
            channel.close()


def _drain(channel: paramiko.Channel) -> tuple[bytes, bytes]:
    """Read stdout and stderr together until the command exits.

    Both streams share one flow-control window, so neither may be left
    unread while waiting on the other.
    """
    out: list[bytes] = []
    err: list[bytes] = []
    while True:
        idle = True
        if channel.recv_ready():
            out.append(channel.recv(_RECV_CHUNK))
            idle = False
        if channel.recv_stderr_ready():
            err.append(channel.recv_stderr(_RECV_CHUNK))
            idle = False
        if idle:
            if channel.closed or channel.exit_status_ready():
                break
            time.sleep(_POLL_INTERVAL)
    return b"".join(out), b"".join(err)


def _exec_command_wrapper(
    client: paramiko.SSHClient,
    command: str,
    timeout: float,
    inflight: _InFlight,
) -> Optional[CommandResult]:
    if inflight.abandoned:
        return None
    _stdin, stdout, _stderr = client.exec_command(command, timeout=timeout)
    channel = stdout.channel
    if not inflight.attach(channel):
        return None
    out, err = _drain(channel)
    exit_code = channel.recv_exit_status()
    if exit_code < 0:
        # Channel went away before the command finished; output may be cut short
        raise EOFError("channel closed without an exit status")
    return CommandResult(
        stdout=out.decode("utf-8", errors="replace"),
        stderr=err.decode("utf-8", errors="replace"),
        exit_code=exit_code,
    )

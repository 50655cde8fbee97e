"""Shared rendering for diagnostic endpoints."""

from __future__ import annotations

import re
from typing import Awaitable

from ssh_sre.errors import SSHManagerError
from ssh_sre.models.responses import DiagnosticResponse
from ssh_sre.utils.logging import get_logger

log = get_logger(__name__)


async def render(action: str, pending: Awaitable[str]) -> DiagnosticResponse:
    """Await a diagnostic operation and wrap its outcome for the API."""
    try:
        output = await pending
    except (SSHManagerError, ValueError, re.error) as exc:
        log.warning("diagnostic.failed", action=action, error=str(exc))
        return DiagnosticResponse(action=action, output="", success=False, error=str(exc))
    return DiagnosticResponse(action=action, output=output, success=True)

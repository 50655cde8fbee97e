"""Health-check and connection management endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from ssh_sre import __version__
from ssh_sre.auth import require_api_key
from ssh_sre.deps import get_platform, get_ssh_manager
from ssh_sre.errors import ConnectError
from ssh_sre.models.commands import ManagerStatus
from ssh_sre.models.responses import HealthResponse, ReconnectResponse
from ssh_sre.services.platforms import Platform
from ssh_sre.services.ssh_manager import SSHConnectionManager

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def service_health(
    response: Response,
    manager: SSHConnectionManager = Depends(get_ssh_manager),
    platform: Optional[Platform] = Depends(get_platform),
) -> HealthResponse:
    """Liveness check (no auth required). 503 while the SSH session is down."""
    connected = manager.is_connected
    if not connected:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="healthy" if connected else "degraded",
        version=__version__,
        ssh_connected=connected,
        platform=platform.id if platform else None,
        platform_name=platform.display_name if platform else None,
    )


@router.get(
    "/ssh/status",
    response_model=ManagerStatus,
    dependencies=[Depends(require_api_key)],
)
async def ssh_status(
    manager: SSHConnectionManager = Depends(get_ssh_manager),
) -> ManagerStatus:
    return manager.status()


@router.post(
    "/ssh/reconnect",
    response_model=ReconnectResponse,
    dependencies=[Depends(require_api_key)],
)
async def ssh_reconnect(
    manager: SSHConnectionManager = Depends(get_ssh_manager),
) -> ReconnectResponse:
    """Re-establish the session with exponential backoff."""
    try:
        await manager.reconnect()
    except ConnectError as exc:
        return ReconnectResponse(success=False, connected=manager.is_connected, error=str(exc))
    return ReconnectResponse(success=True, connected=manager.is_connected)

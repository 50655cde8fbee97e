"""Docker container diagnostics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ssh_sre.auth import require_api_key
from ssh_sre.deps import get_runner
from ssh_sre.models.responses import DiagnosticResponse
from ssh_sre.routers.common import render
from ssh_sre.services import diagnostics as diag
from ssh_sre.services.executor import CommandRunner

router = APIRouter(
    prefix="/docker",
    tags=["docker"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/containers", response_model=DiagnosticResponse)
async def list_containers(
    req: diag.ContainerListRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("list_containers", diag.list_containers(run, req))


@router.post("/inspect", response_model=DiagnosticResponse)
async def inspect_container(
    req: diag.ContainerRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("inspect", diag.inspect_container(run, req))


@router.post("/logs", response_model=DiagnosticResponse)
async def container_logs(
    req: diag.ContainerLogsRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("logs", diag.container_logs(run, req))


@router.post("/stats", response_model=DiagnosticResponse)
async def container_stats(
    req: diag.ContainerStatsRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("stats", diag.container_stats(run, req))

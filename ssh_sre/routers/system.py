"""Host filesystem, resource and process diagnostics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ssh_sre.auth import require_api_key
from ssh_sre.deps import get_runner
from ssh_sre.models.responses import DiagnosticResponse
from ssh_sre.routers.common import render
from ssh_sre.services import diagnostics as diag
from ssh_sre.services.executor import CommandRunner

router = APIRouter(
    prefix="/system",
    tags=["system"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/files", response_model=DiagnosticResponse)
async def list_files(
    req: diag.ListFilesRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("list_files", diag.list_files(run, req))


@router.post("/files/read", response_model=DiagnosticResponse)
async def read_file(
    req: diag.ReadFileRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("read_file", diag.read_file(run, req))


@router.post("/files/find", response_model=DiagnosticResponse)
async def find_files(
    req: diag.FindFilesRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("find_files", diag.find_files(run, req))


@router.post("/disk", response_model=DiagnosticResponse)
async def disk_usage(
    req: diag.DiskUsageRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("disk_usage", diag.disk_usage(run, req))


@router.post("/info", response_model=DiagnosticResponse)
async def system_info(
    req: diag.DiagnosticRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("system_info", diag.system_info(run, req))


@router.post("/processes", response_model=DiagnosticResponse)
async def list_processes(
    req: diag.ProcessListRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("processes", diag.list_processes(run, req))

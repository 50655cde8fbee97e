"""Log search across syslog and container logs."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ssh_sre.auth import require_api_key
from ssh_sre.deps import get_runner
from ssh_sre.models.responses import DiagnosticResponse
from ssh_sre.routers.common import render
from ssh_sre.services import diagnostics as diag
from ssh_sre.services.executor import CommandRunner

router = APIRouter(prefix="/logs", tags=["logs"], dependencies=[Depends(require_api_key)])


@router.post("/grep", response_model=DiagnosticResponse)
async def grep_all(
    req: diag.LogSearchRequest,
    run: CommandRunner = Depends(get_runner),
) -> DiagnosticResponse:
    return await render("grep_all", diag.grep_all(run, req))

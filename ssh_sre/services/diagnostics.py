"""Read-only diagnostic operations.

Each operation builds a command from validated parameters, runs it through
the command runner and reformats the text. Errors from the connection
manager propagate to the caller.
"""

from __future__ import annotations

import json
import shlex
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ssh_sre.services.executor import CommandRunner
from ssh_sre.services.filters import OutputFilters, apply_filters, apply_filters_to_text

CONTAINER_NAME = r"^[A-Za-z0-9][A-Za-z0-9_.-]*$"
DOCKER_SINCE = r"^[0-9A-Za-z:.+-]+$"
MAX_FIND_RESULTS = 1000


# ── request models ────────────────────────────────────────────────────────

class DiagnosticRequest(BaseModel):
    filters: OutputFilters = Field(default_factory=OutputFilters)


class ContainerListRequest(DiagnosticRequest):
    all: bool = True


class ContainerRequest(DiagnosticRequest):
    container: str = Field(pattern=CONTAINER_NAME, max_length=128)


class ContainerLogsRequest(ContainerRequest):
    tail: Optional[int] = Field(default=None, gt=0)
    since: Optional[str] = Field(default=None, pattern=DOCKER_SINCE)


class ContainerStatsRequest(DiagnosticRequest):
    container: Optional[str] = Field(default=None, pattern=CONTAINER_NAME, max_length=128)


class PathRequest(DiagnosticRequest):
    path: str = Field(min_length=1)


class ListFilesRequest(PathRequest):
    long: bool = False


class ReadFileRequest(PathRequest):
    max_lines: int = Field(default=1000, ge=0)


class FindFilesRequest(PathRequest):
    pattern: str = Field(min_length=1)


class DiskUsageRequest(DiagnosticRequest):
    path: str = "/"


class ProcessListRequest(DiagnosticRequest):
    sort_by: Literal["cpu", "memory"] = "cpu"
    limit: int = Field(default=20, gt=0, le=500)


class LogSearchRequest(DiagnosticRequest):
    pattern: str = Field(min_length=1)
    case_sensitive: bool = False


# ── docker ────────────────────────────────────────────────────────────────

def _format_container(c: dict) -> str:
    return (
        f"ID: {c.get('ID', '')}\n"
        f"Name: {c.get('Names', '')}\n"
        f"Image: {c.get('Image', '')}\n"
        f"Status: {c.get('Status', '')}\n"
        f"State: {c.get('State', '')}\n"
        f"Ports: {c.get('Ports') or 'none'}\n"
    )


async def list_containers(run: CommandRunner, req: ContainerListRequest) -> str:
    cmd = "docker ps -a --format '{{json .}}'" if req.all else "docker ps --format '{{json .}}'"
    output = await run(cmd)
    lines = [line for line in output.strip().split("\n") if line.strip()]
    if not lines:
        return "No containers."
    containers = [json.loads(line) for line in lines]
    formatted = "\n---\n\n".join(_format_container(c) for c in containers)
    return f"Docker Containers:\n\n{apply_filters_to_text(formatted, req.filters)}"


async def inspect_container(run: CommandRunner, req: ContainerRequest) -> str:
    output = await run(f"docker inspect {req.container}")
    formatted = json.dumps(json.loads(output), indent=2)
    return f"Docker Inspect - {req.container}:\n\n{apply_filters_to_text(formatted, req.filters)}"


async def container_logs(run: CommandRunner, req: ContainerLogsRequest) -> str:
    cmd = f"docker logs {req.container}"
    if req.tail is not None:
        cmd += f" --tail {req.tail}"
    if req.since is not None:
        cmd += f" --since {req.since}"
    output = await run(apply_filters(f"{cmd} 2>&1", req.filters))
    return f"Docker Logs - {req.container}:\n\n{output}"


async def container_stats(run: CommandRunner, req: ContainerStatsRequest) -> str:
    cmd = "docker stats --no-stream"
    if req.container:
        cmd += f" {req.container}"
    output = await run(apply_filters(cmd, req.filters))
    return f"Docker Stats:\n\n{output}"


# ── system ────────────────────────────────────────────────────────────────

async def list_files(run: CommandRunner, req: ListFilesRequest) -> str:
    flags = "-lah " if req.long else ""
    return await run(apply_filters(f"ls {flags}{shlex.quote(req.path)}", req.filters))


async def read_file(run: CommandRunner, req: ReadFileRequest) -> str:
    path = shlex.quote(req.path)
    cmd = f"head -n {req.max_lines} {path}" if req.max_lines > 0 else f"cat {path}"
    output = await run(apply_filters(cmd, req.filters))
    if (
        req.max_lines > 0
        and not req.filters.active
        and len(output.rstrip("\n").split("\n")) >= req.max_lines
    ):
        output += f"\n\n[Limited to {req.max_lines} lines]"
    return output


async def find_files(run: CommandRunner, req: FindFilesRequest) -> str:
    cmd = f"find {shlex.quote(req.path)} -name {shlex.quote(req.pattern)} -type f 2>/dev/null"
    output = await run(apply_filters(cmd, req.filters))
    if not output.strip():
        return f'No files matching "{req.pattern}" in {req.path}'
    files = output.strip().split("\n")
    if len(files) > MAX_FIND_RESULTS:
        shown = "\n".join(files[:MAX_FIND_RESULTS])
        return f"{shown}\n\n[Found {len(files)}, showing {MAX_FIND_RESULTS}]"
    return output


async def disk_usage(run: CommandRunner, req: DiskUsageRequest) -> str:
    return await run(apply_filters(f"df -h {shlex.quote(req.path)}", req.filters))


async def system_info(run: CommandRunner, req: DiagnosticRequest) -> str:
    cmd = 'uname -a && echo "---" && uptime && echo "---" && free -h'
    return await run(apply_filters(cmd, req.filters))


async def list_processes(run: CommandRunner, req: ProcessListRequest) -> str:
    sort_key = "-%cpu" if req.sort_by == "cpu" else "-%mem"
    # +1 keeps the header row
    cmd = f"ps aux --sort={sort_key} | head -n {req.limit + 1}"
    output = await run(cmd)
    return f"Top {req.limit} processes by {req.sort_by}:\n\n{apply_filters_to_text(output, req.filters)}"


# ── logs ──────────────────────────────────────────────────────────────────

async def grep_all(run: CommandRunner, req: LogSearchRequest) -> str:
    """Search syslog and every container's recent logs for a pattern."""
    flags = "" if req.case_sensitive else "-i "
    pattern = shlex.quote(req.pattern)
    cmd = (
        'echo "=== SYSLOG ===" && '
        f"(grep {flags}{pattern} /var/log/syslog 2>/dev/null | tail -n 50 || echo 'No matches') && "
        'echo "" && echo "=== DOCKER ===" && '
        "(for c in $(docker ps -a --format '{{.Names}}' 2>/dev/null); do "
        'echo "--- $c ---"; '
        f'docker logs --tail 100 "$c" 2>&1 | grep {flags}{pattern} | head -n 20 || echo "No matches"; '
        "done)"
    )
    output = await run(cmd)
    return apply_filters_to_text(f'Search "{req.pattern}":\n\n{output}', req.filters)

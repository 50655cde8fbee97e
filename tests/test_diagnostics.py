"""Tests for the diagnostic operations using the mock SSH manager."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ssh_sre.errors import CircuitOpenError
from ssh_sre.services import diagnostics as diag
from ssh_sre.services.executor import RemoteExecutor
from ssh_sre.services.filters import OutputFilters


@pytest.fixture
def run(mock_ssh):
    return RemoteExecutor(mock_ssh)


@pytest.mark.asyncio
async def test_list_containers_formats_each_container(run, mock_ssh):
    out = await diag.list_containers(run, diag.ContainerListRequest())
    assert mock_ssh.sent_commands == ["docker ps -a --format '{{json .}}'"]
    assert out.startswith("Docker Containers:")
    assert "Name: web" in out
    assert "Name: db" in out
    assert "Ports: none" in out


@pytest.mark.asyncio
async def test_list_running_containers_only(run, mock_ssh):
    out = await diag.list_containers(run, diag.ContainerListRequest(all=False))
    assert mock_ssh.sent_commands == ["docker ps --format '{{json .}}'"]
    assert "Name: db" not in out


@pytest.mark.asyncio
async def test_list_containers_empty(run, mock_ssh):
    mock_ssh.add_response("docker ps -a --format '{{json .}}'", "\n")
    assert await diag.list_containers(run, diag.ContainerListRequest()) == "No containers."


@pytest.mark.asyncio
async def test_list_containers_text_filter(run):
    req = diag.ContainerListRequest(filters=OutputFilters(grep="^Image"))
    out = await diag.list_containers(run, req)
    body = out.split("\n\n", 1)[1]
    assert body.split("\n") == ["Image: nginx:1.25", "Image: postgres:16"]


@pytest.mark.asyncio
async def test_inspect_pretty_prints(run):
    out = await diag.inspect_container(run, diag.ContainerRequest(container="web"))
    assert out.startswith("Docker Inspect - web:")
    assert '"Status": "running"' in out


@pytest.mark.asyncio
async def test_logs_command_with_options_and_filters(run, mock_ssh):
    req = diag.ContainerLogsRequest(
        container="web", tail=200, since="1h", filters=OutputFilters(grep="error", tail=20),
    )
    await diag.container_logs(run, req)
    assert mock_ssh.sent_commands == [
        "docker logs web --tail 200 --since 1h 2>&1 | grep -i error | tail -n 20"
    ]


@pytest.mark.parametrize("name", ["web; reboot", "$(id)", "-rf", ""])
def test_container_names_are_validated(name):
    with pytest.raises(ValidationError):
        diag.ContainerRequest(container=name)


@pytest.mark.asyncio
async def test_stats_single_container(run, mock_ssh):
    await diag.container_stats(run, diag.ContainerStatsRequest(container="db"))
    assert mock_ssh.sent_commands == ["docker stats --no-stream db"]


@pytest.mark.asyncio
async def test_paths_are_shell_quoted(run, mock_ssh):
    await diag.list_files(run, diag.ListFilesRequest(path="/mnt/user/my share", long=True))
    assert mock_ssh.sent_commands == ["ls -lah '/mnt/user/my share'"]


@pytest.mark.asyncio
async def test_read_file_notes_truncation(run, mock_ssh):
    mock_ssh.add_response("head -n 3 /var/log/syslog", "a\nb\nc\n")
    out = await diag.read_file(run, diag.ReadFileRequest(path="/var/log/syslog", max_lines=3))
    assert out.endswith("[Limited to 3 lines]")


@pytest.mark.asyncio
async def test_read_file_no_note_with_filters(run, mock_ssh):
    mock_ssh.add_response("head -n 3 /var/log/syslog | grep -i a", "a\nb\nc\n")
    req = diag.ReadFileRequest(path="/var/log/syslog", max_lines=3, filters=OutputFilters(grep="a"))
    out = await diag.read_file(run, req)
    assert "Limited" not in out


@pytest.mark.asyncio
async def test_read_whole_file(run, mock_ssh):
    await diag.read_file(run, diag.ReadFileRequest(path="/etc/hosts", max_lines=0))
    assert mock_ssh.sent_commands == ["cat /etc/hosts"]


@pytest.mark.asyncio
async def test_find_files_no_results(run):
    out = await diag.find_files(run, diag.FindFilesRequest(path="/mnt", pattern="*.iso"))
    assert out == 'No files matching "*.iso" in /mnt'


@pytest.mark.asyncio
async def test_find_files_caps_results(run, mock_ssh):
    listing = "\n".join(f"/mnt/f{i}" for i in range(1200))
    mock_ssh.add_response("find /mnt -name '*.txt' -type f 2>/dev/null", listing)
    out = await diag.find_files(run, diag.FindFilesRequest(path="/mnt", pattern="*.txt"))
    assert out.endswith("[Found 1200, showing 1000]")


@pytest.mark.asyncio
async def test_disk_usage(run):
    out = await diag.disk_usage(run, diag.DiskUsageRequest())
    assert "/dev/sda1" in out


@pytest.mark.asyncio
async def test_processes_keeps_header(run, mock_ssh):
    await diag.list_processes(run, diag.ProcessListRequest(sort_by="memory", limit=5))
    assert mock_ssh.sent_commands == ["ps aux --sort=-%mem | head -n 6"]


@pytest.mark.asyncio
async def test_grep_all_quotes_pattern(run, mock_ssh):
    out = await diag.grep_all(run, diag.LogSearchRequest(pattern="out of memory"))
    assert out.startswith('Search "out of memory":')
    assert "grep -i 'out of memory' /var/log/syslog" in mock_ssh.sent_commands[0]


@pytest.mark.asyncio
async def test_manager_errors_propagate(run, mock_ssh):
    mock_ssh.error = CircuitOpenError(3)
    with pytest.raises(CircuitOpenError):
        await diag.system_info(run, diag.DiagnosticRequest())

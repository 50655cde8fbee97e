"""Tests for platform detection."""

from __future__ import annotations

import re

import pytest

from ssh_sre.errors import CommandTimeoutError
from ssh_sre.services.platforms import (
    LinuxPlatform,
    PlatformDetectionError,
    PlatformRegistry,
    UnraidPlatform,
    check_condition,
    default_registry,
    detect_capabilities,
)

_CONDITION = re.compile(r"^\((.*)\) >/dev/null 2>&1 && echo yes \|\| echo no$")


def make_runner(true_conditions=(), outputs=None, fail_on=()):
    """Runner answering condition checks from *true_conditions* and plain commands from *outputs*."""
    outputs = outputs or {}
    calls: list[str] = []

    async def run(command: str) -> str:
        calls.append(command)
        if any(marker in command for marker in fail_on):
            raise CommandTimeoutError(15000)
        m = _CONDITION.match(command)
        if m:
            return "yes\n" if m.group(1) in true_conditions else "no\n"
        return outputs.get(command, "")

    run.calls = calls
    return run


@pytest.mark.asyncio
async def test_condition_true_and_false():
    run = make_runner(true_conditions={"test -f /etc/os-release"})
    assert await check_condition(run, "test -f /etc/os-release") is True
    assert await check_condition(run, "test -f /etc/missing") is False


@pytest.mark.asyncio
async def test_capabilities_detection():
    run = make_runner(true_conditions={
        "command -v podman",
        "command -v virsh",
        "test -f /sbin/openrc",
        "command -v btrfs && btrfs filesystem show",
    })
    caps = await detect_capabilities(run)
    assert caps.container_runtime == "podman"
    assert caps.virtualization == "kvm"
    assert caps.init_system == "openrc"
    assert caps.storage == "btrfs"


@pytest.mark.asyncio
async def test_capabilities_defaults_when_nothing_found():
    caps = await detect_capabilities(make_runner())
    assert caps.container_runtime == "none"
    assert caps.virtualization == "none"
    assert caps.init_system == "sysv"
    assert caps.storage == "ext4"


@pytest.mark.asyncio
async def test_capability_check_errors_fall_back():
    run = make_runner(
        true_conditions={"command -v podman"},
        fail_on=("command -v docker",),
    )
    caps = await detect_capabilities(run)
    assert caps.container_runtime == "podman"


@pytest.mark.asyncio
async def test_unraid_full_score():
    run = make_runner(
        true_conditions={"test -f /boot/config/ident.cfg", "test -f /proc/mdcmd"},
        outputs={"cat /etc/unraid-version 2>/dev/null || true": 'version="6.12.10"\n# Unraid OS\n'},
    )
    assert await UnraidPlatform().detect(run) == 100


@pytest.mark.asyncio
async def test_linux_scores_low_but_nonzero():
    run = make_runner(outputs={"uname -s": "Linux\n"})
    assert await LinuxPlatform().detect(run) == 10


@pytest.mark.asyncio
async def test_registry_picks_highest_score():
    run = make_runner(
        true_conditions={"test -f /boot/config/ident.cfg"},
        outputs={"uname -s": "Linux\n"},
    )
    registry = default_registry()
    platform = await registry.detect(run)
    assert platform.id == "unraid"
    assert registry.detected is platform


@pytest.mark.asyncio
async def test_registry_falls_back_to_linux():
    run = make_runner(outputs={"uname -s": "Linux\n"})
    platform = await default_registry().detect(run)
    assert platform.id == "linux"


@pytest.mark.asyncio
async def test_registry_skips_failing_platform():
    run = make_runner(outputs={"uname -s": "Linux\n"}, fail_on=("/proc/mdcmd",))
    platform = await default_registry().detect(run)
    assert platform.id == "linux"


@pytest.mark.asyncio
async def test_registry_raises_when_nothing_matches():
    registry = PlatformRegistry()
    registry.register(LinuxPlatform())
    with pytest.raises(PlatformDetectionError):
        await registry.detect(make_runner(outputs={"uname -s": "FreeBSD\n"}))

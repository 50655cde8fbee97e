"""Platform detection for the managed host.

Each platform inspects the host through the command runner and reports a
confidence score from 0 to 100; the registry picks the highest.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from ssh_sre.errors import SSHManagerError
from ssh_sre.services.executor import CommandRunner
from ssh_sre.utils.logging import get_logger

log = get_logger(__name__)


class PlatformDetectionError(Exception):
    pass


class PlatformCapability(BaseModel):
    storage: Literal["zfs", "btrfs", "mdraid", "lvm", "ext4", "none"] = "ext4"
    virtualization: Literal["kvm", "lxc", "none"] = "none"
    container_runtime: Literal["docker", "podman", "none"] = "none"
    init_system: Literal["systemd", "openrc", "sysv"] = "systemd"


async def check_condition(run: CommandRunner, condition: str) -> bool:
    """True when the shell *condition* succeeds on the host.

    The condition's exit status is folded into stdout so a false result
    is not reported as a command failure.
    """
    output = await run(f"({condition}) >/dev/null 2>&1 && echo yes || echo no")
    return output.strip() == "yes"


async def _first_match(run: CommandRunner, checks: list[tuple[str, str]], default: str) -> str:
    for value, condition in checks:
        try:
            if await check_condition(run, condition):
                return value
        except SSHManagerError as exc:
            log.warning("platform.check_failed", condition=condition, error=str(exc))
    return default


async def detect_capabilities(run: CommandRunner) -> PlatformCapability:
    """Detect container runtime, virtualization, init system and storage."""
    runtime = await _first_match(run, [
        ("docker", "command -v docker"),
        ("podman", "command -v podman"),
    ], "none")
    virtualization = await _first_match(run, [
        ("kvm", "command -v virsh"),
        ("lxc", "test -d /sys/class/lxc"),
    ], "none")
    init_system = await _first_match(run, [
        ("systemd", "test -d /run/systemd/system"),
        ("openrc", "test -f /sbin/openrc"),
    ], "sysv")
    storage = await _first_match(run, [
        ("zfs", "command -v zpool && zpool list"),
        ("mdraid", "test -f /proc/mdstat && grep -q md /proc/mdstat"),
        ("btrfs", "command -v btrfs && btrfs filesystem show"),
        ("lvm", "command -v lvs && lvs"),
    ], "ext4")
    caps = PlatformCapability(
        storage=storage,
        virtualization=virtualization,
        container_runtime=runtime,
        init_system=init_system,
    )
    log.info("platform.capabilities", **caps.model_dump())
    return caps


class Platform:
    """Base platform. Subclasses override :meth:`detect`."""

    id: str = ""
    display_name: str = ""

    def __init__(self) -> None:
        self.capabilities = PlatformCapability()

    async def detect(self, run: CommandRunner) -> int:
        raise NotImplementedError


class LinuxPlatform(Platform):
    """Generic Linux fallback; matches any host that answers ``uname``."""

    id = "linux"
    display_name = "Linux"

    async def detect(self, run: CommandRunner) -> int:
        kernel = await run("uname -s")
        if "linux" not in kernel.lower():
            return 0
        self.capabilities = await detect_capabilities(run)
        return 10


class UnraidPlatform(Platform):
    id = "unraid"
    display_name = "Unraid"

    def __init__(self) -> None:
        super().__init__()
        self.capabilities = PlatformCapability(
            storage="mdraid",
            virtualization="kvm",
            container_runtime="docker",
            init_system="sysv",
        )

    async def detect(self, run: CommandRunner) -> int:
        score = 0
        if await check_condition(run, "test -f /boot/config/ident.cfg"):
            score += 35
        if await check_condition(run, "test -f /proc/mdcmd"):
            score += 35
        version = await run("cat /etc/unraid-version 2>/dev/null || true")
        if "unraid" in version.lower():
            score += 30
        return score


class PlatformRegistry:
    def __init__(self) -> None:
        self._platforms: dict[str, Platform] = {}
        self.detected: Optional[Platform] = None

    def register(self, platform: Platform) -> None:
        self._platforms[platform.id] = platform

    def get(self, platform_id: str) -> Optional[Platform]:
        return self._platforms.get(platform_id)

    async def detect(self, run: CommandRunner) -> Platform:
        """Run every platform's detection and keep the best score."""
        scored: list[tuple[int, Platform]] = []
        for platform in self._platforms.values():
            try:
                score = await platform.detect(run)
            except SSHManagerError as exc:
                log.warning("platform.detect_failed", platform=platform.id, error=str(exc))
                continue
            log.info("platform.score", platform=platform.id, score=score)
            if score > 0:
                scored.append((score, platform))

        if not scored:
            raise PlatformDetectionError(
                "No platform detected. Ensure the generic Linux platform is registered."
            )

        score, best = max(scored, key=lambda item: item[0])
        self.detected = best
        log.info("platform.detected", platform=best.id, confidence=score)
        return best


def default_registry() -> PlatformRegistry:
    registry = PlatformRegistry()
    registry.register(UnraidPlatform())
    registry.register(LinuxPlatform())
    return registry

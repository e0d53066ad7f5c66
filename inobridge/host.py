"""Host platform and architecture detection for inobridge.

Embedded binaries are stored per ``{platform}-{arch}`` pair, so the host has
to be mapped onto a small closed set of identifiers:

    Platforms: windows, macos, linux
    Architectures: x86_64, aarch64, arm
"""

from __future__ import annotations

import platform
import threading
from dataclasses import dataclass
from enum import Enum

from inobridge.errors import UnsupportedPlatform


class PlatformId(str, Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"


class ArchId(str, Enum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"
    ARM = "arm"


# Checked in order; first keyword contained in the lowered host string wins.
# "darwin" contains "win", so macOS is tested before Windows.
_OS_KEYWORDS: list[tuple[tuple[str, ...], PlatformId]] = [
    (("mac", "darwin"), PlatformId.MACOS),
    (("win",), PlatformId.WINDOWS),
    (("nix", "nux", "aix"), PlatformId.LINUX),
]

# "arm64" must be tested before the generic "arm".
_ARCH_KEYWORDS: list[tuple[tuple[str, ...], ArchId]] = [
    (("amd64", "x86_64"), ArchId.X86_64),
    (("aarch64", "arm64"), ArchId.AARCH64),
    (("arm",), ArchId.ARM),
]


def classify_os(name: str) -> PlatformId:
    """Map a host-reported OS name (e.g. 'Linux', 'Darwin', 'Windows 11') to a PlatformId."""
    lowered = (name or "").lower()
    for keywords, platform_id in _OS_KEYWORDS:
        if any(k in lowered for k in keywords):
            return platform_id
    raise UnsupportedPlatform(name, kind="platform")


def classify_arch(machine: str) -> ArchId:
    """Map a host-reported CPU architecture (e.g. 'AMD64', 'arm64', 'armv7l') to an ArchId."""
    lowered = (machine or "").lower()
    for keywords, arch_id in _ARCH_KEYWORDS:
        if any(k in lowered for k in keywords):
            return arch_id
    raise UnsupportedPlatform(machine, kind="architecture")


def resolve_platform() -> PlatformId:
    return classify_os(platform.system())


def resolve_arch() -> ArchId:
    return classify_arch(platform.machine())


@dataclass(frozen=True)
class HostContext:
    """Resolved (platform, arch) pair for the running process."""
    platform: PlatformId
    arch: ArchId

    @property
    def is_windows(self) -> bool:
        return self.platform is PlatformId.WINDOWS

    @property
    def key(self) -> str:
        """Directory name used in the embedded resource layout."""
        return f"{self.platform.value}-{self.arch.value}"

    def __str__(self) -> str:
        return self.key

    @classmethod
    def detect(cls) -> HostContext:
        """Resolve the host once per process and return the cached result."""
        global _detected
        with _detect_lock:
            if _detected is None:
                _detected = cls(platform=resolve_platform(), arch=resolve_arch())
            return _detected


_detected: HostContext | None = None
_detect_lock = threading.Lock()

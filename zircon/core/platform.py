"""
Platform detection for Zircon.

Detects the operating system and CPU architecture to pick the right
pre-built release artifact and link backend.

Usage:
    from zircon.core.platform import detect_platform, release_artifact_name

    platform_info = detect_platform()
    print(platform_info.platform_string())   # e.g. 'linux-x64'
    print(release_artifact_name())           # e.g. 'zrc-linux-x64.tar.gz'
"""

import functools
import platform
from dataclasses import dataclass
from typing import Optional

from .exceptions import UnsupportedPlatformError

# Platforms with pre-built release archives
RELEASE_PLATFORMS = ("linux-x64", "linux-arm64", "macos-x64", "macos-arm64")


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos', or the raw system name)
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm', or the raw machine name)
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> PlatformInfo('linux', 'x64').platform_string()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    return system


def _detect_architecture() -> str:
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    return machine


def release_artifact_name(info: Optional[PlatformInfo] = None) -> str:
    """
    Name of the pre-built release archive for a platform.

    Args:
        info: Platform to use. If None, detects current platform.

    Returns:
        Archive file name, e.g. 'zrc-linux-x64.tar.gz'

    Raises:
        UnsupportedPlatformError: If no pre-built archive exists for the platform
    """
    if info is None:
        info = detect_platform()

    platform_str = info.platform_string()
    if platform_str not in RELEASE_PLATFORMS:
        supported = "\n".join(f"  - {p}" for p in RELEASE_PLATFORMS)
        raise UnsupportedPlatformError(
            f"Unsupported platform: {platform_str}. "
            f"Pre-built binaries are only available for:\n{supported}\n\n"
            "Consider using 'zircon build' to build from source instead."
        )

    return f"zrc-{platform_str}.tar.gz"


def clear_platform_cache():
    """Clear the platform detection cache (used by tests)."""
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "RELEASE_PLATFORMS",
    "detect_platform",
    "release_artifact_name",
    "clear_platform_cache",
]

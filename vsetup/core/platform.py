"""
Platform detection for vsetup.

This module normalizes the host operating system and CPU architecture into
the identifiers used to pick a release asset and the binary file name.

Usage:
    from vsetup.core.platform import detect_platform

    platform_info = detect_platform()
    print(f"Platform string: {platform_info.platform_string()}")
"""

import functools
import platform
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigError


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform identifier.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm')
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

    def executable_name(self, name: str) -> str:
        """Add the platform's executable suffix to ``name``."""
        return f"{name}.exe" if self.is_windows else name

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Raises:
        ConfigError: If the operating system is not supported
    """
    return PlatformInfo(os=_detect_os(), arch=normalize_arch(platform.machine()))


def with_arch(info: PlatformInfo, arch: Optional[str]) -> PlatformInfo:
    """
    Return ``info`` with its architecture replaced by an explicit override.

    Args:
        info: Detected platform
        arch: Architecture override (e.g., 'arm64', 'amd64') or None

    Returns:
        PlatformInfo with normalized override applied
    """
    if not arch:
        return info
    return PlatformInfo(os=info.os, arch=normalize_arch(arch))


def _detect_os() -> str:
    system = platform.system().lower()

    if system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    elif system == "windows" or system.startswith(("msys", "mingw", "cygwin")):
        return "windows"
    else:
        raise ConfigError(f"Unsupported OS: {system}")


def normalize_arch(machine: str) -> str:
    """
    Normalize a machine/architecture name.

    Args:
        machine: Raw name such as 'x86_64', 'AMD64' or 'aarch64'

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm' or the
        lowercased input when unknown
    """
    machine = machine.lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine


def clear_platform_cache():
    """Force the next call to detect_platform() to re-detect."""
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "with_arch",
    "normalize_arch",
    "clear_platform_cache",
]

"""
Core functionality for vsetup.

This package contains the foundational modules the installer stages depend on.
"""

from .environment import Environment

from .locking import LockManager

from .platform import (
    PlatformInfo,
    detect_platform,
    with_arch,
    clear_platform_cache,
)

from .exceptions import (
    VSetupError,
    ConfigError,
    MissingToolError,
    NetworkError,
    ExtractionError,
    BuildError,
    LinkWarning,
    LockTimeout,
)

__all__ = [
    "Environment",
    "LockManager",
    "PlatformInfo",
    "detect_platform",
    "with_arch",
    "clear_platform_cache",
    "VSetupError",
    "ConfigError",
    "MissingToolError",
    "NetworkError",
    "ExtractionError",
    "BuildError",
    "LinkWarning",
    "LockTimeout",
]

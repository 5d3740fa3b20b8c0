"""
Install state inspection.

The inspector derives the current installation state from the filesystem on
every run. It never writes anything. The advisory marker is consulted only
when the binary cannot report its own version.
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.filesystem import is_executable
from .target import InstallTarget
from .versions import normalize_version

logger = logging.getLogger(__name__)

# `v version` prints e.g. "V 0.4.8 b7a5fb3"
_VERSION_OUTPUT = re.compile(r"^\s*V\s+(\S+)", re.IGNORECASE)


@dataclass(frozen=True)
class InstallState:
    """
    Observed installation state.

    Attributes:
        present: Binary exists and is executable
        version: Installed version (None whenever not present)
        binary_exists: Binary file exists, executable or not
        binary_executable: Binary can be executed
        marker_version: Contents of the advisory marker, if any
        binary_path: Where the binary was looked for
    """

    present: bool
    version: Optional[str]
    binary_exists: bool
    binary_executable: bool
    marker_version: Optional[str] = None
    binary_path: Optional[Path] = None

    @classmethod
    def absent(cls) -> "InstallState":
        return cls(
            present=False, version=None, binary_exists=False, binary_executable=False
        )


def inspect(target: InstallTarget) -> InstallState:
    """
    Inspect the install root for an existing installation.

    Args:
        target: Install target describing the root and platform

    Returns:
        InstallState; safe to call repeatedly
    """
    binary = target.binary_path
    binary_exists = binary.is_file()
    executable = binary_exists and is_executable(binary)
    marker_version = read_marker(target.marker_path)

    if not executable:
        if binary_exists:
            logger.debug(f"Binary is not executable: {binary}")
        elif marker_version:
            logger.debug(
                f"Marker claims {marker_version} but binary is missing: {binary}"
            )
        return InstallState(
            present=False,
            version=None,
            binary_exists=binary_exists,
            binary_executable=False,
            marker_version=marker_version,
            binary_path=binary,
        )

    reported = query_binary_version(binary)
    if reported and marker_version and reported != marker_version:
        logger.debug(
            f"Marker says {marker_version}, binary reports {reported}; trusting binary"
        )

    return InstallState(
        present=True,
        version=reported or marker_version,
        binary_exists=True,
        binary_executable=True,
        marker_version=marker_version,
        binary_path=binary,
    )


def query_binary_version(binary: Path, timeout: int = 10) -> Optional[str]:
    """
    Ask a V binary for its version.

    Args:
        binary: Path to the V executable
        timeout: Seconds to wait for the process

    Returns:
        Normalized version, or None if the binary cannot be invoked or its
        output is not recognized
    """
    try:
        result = subprocess.run(
            [str(binary), "version"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Could not run {binary} version: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"{binary} version exited with code {result.returncode}")
        return None

    return parse_version_output(result.stdout)


def parse_version_output(output: str) -> Optional[str]:
    """
    Extract the version from ``v version`` output.

    Example:
        >>> parse_version_output("V 0.4.8 b7a5fb3\\n")
        '0.4.8'
    """
    match = _VERSION_OUTPUT.match(output or "")
    if not match:
        return None
    return normalize_version(match.group(1))


def read_marker(marker_path: Path) -> Optional[str]:
    """Read the advisory version marker; None if absent, empty or unreadable."""
    try:
        content = marker_path.read_text(encoding="utf-8")
    except OSError:
        return None
    return normalize_version(content) or None


__all__ = [
    "InstallState",
    "inspect",
    "query_binary_version",
    "parse_version_output",
    "read_marker",
]

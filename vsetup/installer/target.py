"""
Install target layout.

An install root holds one V tree::

    <root>/
        v/                  # toolchain tree (binary, vlib, cmd, ...)
            v | v.exe       # compiler binary
            .vsetup-version # advisory version marker
        .vsetup-staging/    # transient extraction area (left behind on failure)
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..core.platform import PlatformInfo

TREE_NAME = "v"
MARKER_NAME = ".vsetup-version"
STAGING_NAME = ".vsetup-staging"


class LinkPolicy(Enum):
    """Whether the installed binary is linked onto PATH."""

    CREATE = "create"
    SKIP = "skip"


@dataclass(frozen=True)
class InstallTarget:
    """
    Where and how to install.

    Attributes:
        root: Install root directory (the tree goes to ``root / "v"``)
        platform: Target platform
        link_policy: Create or skip the PATH link
        link_dir: Directory that receives the PATH link
        from_source: Build from the tagged source archive instead of
            using the prebuilt asset
    """

    root: Path
    platform: PlatformInfo
    link_policy: LinkPolicy = LinkPolicy.CREATE
    link_dir: Optional[Path] = None
    from_source: bool = False

    @property
    def tree_dir(self) -> Path:
        return self.root / TREE_NAME

    @property
    def binary_path(self) -> Path:
        return self.tree_dir / self.platform.executable_name("v")

    @property
    def marker_path(self) -> Path:
        return self.tree_dir / MARKER_NAME

    @property
    def staging_dir(self) -> Path:
        return self.root / STAGING_NAME

    @property
    def requires_build(self) -> bool:
        return self.from_source

    def build_command(self) -> list[str]:
        """Command that builds the compiler inside the tree."""
        if self.platform.is_windows:
            return ["cmd", "/c", "make.bat"]
        return ["make"]

    def build_script(self) -> str:
        """File that must exist in a source tree for the build to run."""
        return "make.bat" if self.platform.is_windows else "Makefile"


__all__ = ["InstallTarget", "LinkPolicy", "TREE_NAME", "MARKER_NAME", "STAGING_NAME"]

"""
PATH link management for the installed V binary.

Uses a symlink on Unix-like systems and a ``.cmd`` shim on Windows, where
symlinks need elevated privileges.
"""

import logging
import os
from pathlib import Path

from ..core.exceptions import LinkWarning
from ..core.platform import PlatformInfo

logger = logging.getLogger(__name__)


class BinaryLinkManager:
    """Creates and inspects the PATH-visible link to the V binary."""

    def __init__(self, platform: PlatformInfo):
        """
        Initialize link manager.

        Args:
            platform: Target platform
        """
        self.platform = platform

    def link_path(self, link_dir: Path) -> Path:
        name = "v.cmd" if self.platform.is_windows else "v"
        return Path(link_dir) / name

    def create_link(self, binary: Path, link_dir: Path) -> Path:
        """
        Point ``<link_dir>/v`` at ``binary``.

        An existing link (broken or not) or a previous shim is replaced; a
        regular file that vsetup did not create is left alone.

        Args:
            binary: Installed V binary
            link_dir: Directory on PATH

        Returns:
            Path of the created link

        Raises:
            LinkWarning: If the link cannot be created
        """
        link = self.link_path(link_dir)
        binary = Path(binary).absolute()

        try:
            Path(link_dir).mkdir(parents=True, exist_ok=True)

            if link.is_symlink():
                link.unlink()
            elif link.exists():
                if not self._is_own_shim(link):
                    raise LinkWarning(
                        f"{link} exists and is not a link; not overwriting it"
                    )
                link.unlink()

            if self.platform.is_windows:
                self._write_shim(link, binary)
            else:
                os.symlink(binary, link)
        except OSError as e:
            raise LinkWarning(f"Failed to link {link} -> {binary}: {e}") from e

        logger.debug(f"Created link: {link} -> {binary}")
        return link

    def points_to(self, link_dir: Path, binary: Path) -> bool:
        """True if the link in ``link_dir`` already resolves to ``binary``."""
        link = self.link_path(link_dir)
        if self.platform.is_windows:
            try:
                return str(Path(binary).absolute()) in link.read_text(encoding="utf-8")
            except OSError:
                return False
        return link.is_symlink() and link.resolve() == Path(binary).resolve()

    def _write_shim(self, link: Path, binary: Path) -> None:
        link.write_text(f'@echo off\n"{binary}" %*\n', encoding="utf-8")

    def _is_own_shim(self, link: Path) -> bool:
        if not self.platform.is_windows:
            return False
        try:
            return link.read_text(encoding="utf-8").startswith("@echo off")
        except OSError:
            return False


__all__ = ["BinaryLinkManager"]

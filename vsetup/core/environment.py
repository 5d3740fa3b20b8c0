"""
Environment snapshot for vsetup.

The installer never reads ``os.environ`` ambiently once started. The CLI
captures an :class:`Environment` at startup and passes it to every stage,
which keeps the reconciliation logic testable against temporary directories.
"""

import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional


@dataclass(frozen=True)
class Environment:
    """
    Immutable view of the process environment.

    Attributes:
        home: User home directory
        path: PATH entries in search order
        temp_dir: Directory for scratch files and lock files
        variables: Remaining environment variables (token, CI outputs)
    """

    home: Path
    path: tuple[Path, ...]
    temp_dir: Path
    variables: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def capture(cls, environ: Optional[Mapping[str, str]] = None) -> "Environment":
        """
        Snapshot the current process environment.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Environment instance
        """
        if environ is None:
            environ = os.environ

        path_entries = tuple(
            Path(p) for p in environ.get("PATH", "").split(os.pathsep) if p
        )

        return cls(
            home=Path.home(),
            path=path_entries,
            temp_dir=Path(tempfile.gettempdir()),
            variables=dict(environ),
        )

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up an environment variable from the snapshot."""
        return self.variables.get(name, default)

    def which(self, name: str) -> Optional[Path]:
        """
        Find an executable on the snapshot's PATH.

        Args:
            name: Executable name (e.g., 'make', 'v')

        Returns:
            Path to executable if found, None otherwise
        """
        search = os.pathsep.join(str(p) for p in self.path)
        found = shutil.which(name, path=search)
        return Path(found) if found else None

    def default_link_dir(self) -> Path:
        """Directory that receives the PATH link when none is configured."""
        return self.home / ".local" / "bin"


__all__ = ["Environment"]

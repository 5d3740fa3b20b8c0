"""
Concurrent access control for vsetup.

Two invocations against the same install root must not interleave. The lock
file lives outside the install root, so read-only invocations (``--check``,
``--dry-run``) never write into it.

Usage:
    from vsetup.core.locking import LockManager

    lock_manager = LockManager(env.temp_dir / "vsetup-locks")
    with lock_manager.install_lock(Path("/home/user"), timeout=60):
        ...
"""

import hashlib
import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from .exceptions import LockTimeout

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages per-install-root locks.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)

    def lock_path(self, install_root: Path) -> Path:
        """Lock file used for ``install_root`` (stable across runs)."""
        key = str(Path(install_root).resolve()).encode("utf-8")
        digest = hashlib.sha256(key).hexdigest()[:16]
        return self.lock_dir / f"install-{digest}.lock"

    @contextmanager
    def install_lock(self, install_root: Path, timeout: float = 60):
        """
        Hold the exclusive lock for ``install_root``.

        Args:
            install_root: Directory being reconciled
            timeout: Maximum wait time in seconds

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lock_path = self.lock_path(install_root)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired install lock: {lock_path}")
                yield
                logger.debug(f"Released install lock: {lock_path}")
        except Timeout as e:
            raise LockTimeout(
                f"Could not acquire install lock for {install_root} after {timeout}s. "
                "Another vsetup process may be running."
            ) from e


__all__ = ["LockManager", "LockTimeout"]

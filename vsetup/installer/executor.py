"""
Plan execution.

The executor is the only stage that changes the filesystem. It carries out a
mutating plan in this order:

1. Acquire the archive into a per-release scratch directory (reused if a
   previous run left a non-empty copy behind)
2. Extract into a staging directory and verify the expected binary; a
   reused archive that fails here is discarded and downloaded once more
3. Replace the previous tree with the staged one
4. Build, for source installs
5. Link the binary onto PATH
6. Write the advisory version marker
7. Remove the scratch directory
8. Verify the installed binary

Failures in steps 1-4 leave the archive (and any staged tree) on disk so the
next run can resume and the failure can be diagnosed. Steps 5 and 8 only
produce warnings.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from ..core.download import download_file, is_nonempty_file
from ..core.environment import Environment
from ..core.exceptions import (
    BuildError,
    ExtractionError,
    LinkWarning,
    MissingToolError,
)
from ..core.filesystem import (
    FilesystemError,
    atomic_write,
    extract_archive,
    is_executable,
    make_executable,
    safe_rmtree,
)
from .inspector import query_binary_version
from .linking import BinaryLinkManager
from .planner import Plan, is_mutating
from .target import TREE_NAME, InstallTarget, LinkPolicy
from .versions import ReleaseIndex, ResolvedVersion, artifact_name, download_url

logger = logging.getLogger(__name__)

Downloader = Callable[..., Path]


@dataclass
class ExecutionResult:
    """Outcome of executing a plan."""

    plan: Plan
    version: Optional[str] = None
    binary_path: Optional[Path] = None
    artifact_reused: bool = False
    linked: bool = False
    link_path: Optional[Path] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return is_mutating(self.plan)


class Executor:
    """
    Carries out a reconciliation plan.

    Example:
        >>> executor = Executor(Environment.capture(), ReleaseIndex())
        >>> result = executor.execute(Install("0.4.8"), target, resolved)
        >>> print(result.binary_path)
    """

    def __init__(
        self,
        env: Environment,
        index: ReleaseIndex,
        downloader: Downloader = download_file,
        retries: int = 1,
        build_timeout: int = 1800,
    ):
        """
        Initialize executor.

        Args:
            env: Environment snapshot (temp dir, PATH)
            index: Release index (repository and token for downloads)
            downloader: Callable with download_file's signature
            retries: Download retries after the first failure
            build_timeout: Seconds allowed for the build step
        """
        self.env = env
        self.index = index
        self.downloader = downloader
        self.retries = retries
        self.build_timeout = build_timeout

    def scratch_dir(self, target: InstallTarget, resolved: ResolvedVersion) -> Path:
        """Per-release scratch directory; stable across runs for resume."""
        kind = "src" if target.from_source else target.platform.platform_string()
        return self.env.temp_dir / f"vsetup-{resolved.tag}-{kind}"

    def execute(
        self, plan: Plan, target: InstallTarget, resolved: Optional[ResolvedVersion]
    ) -> ExecutionResult:
        """
        Execute ``plan`` against ``target``.

        Non-mutating plans return immediately without touching the disk.

        Raises:
            NetworkError: If the archive cannot be downloaded
            ExtractionError: If the archive is bad or lacks the binary
            BuildError: If the build step fails
            MissingToolError: If the build tool is not installed
        """
        result = ExecutionResult(plan=plan)
        if not is_mutating(plan):
            return result

        build_tool = None
        if target.requires_build and not target.platform.is_windows:
            tool = target.build_command()[0]
            build_tool = self.env.which(tool)
            if build_tool is None:
                raise MissingToolError(tool)

        logger.info(f"🔧 Plan: {plan.describe()}")

        scratch = self.scratch_dir(target, resolved)
        archive, result.artifact_reused = self._acquire(target, resolved, scratch)
        try:
            staged_tree = self._stage(archive, target)
        except ExtractionError as e:
            if not result.artifact_reused:
                raise
            logger.warning(f"⚠️ Cached archive is unusable ({e}); downloading it again")
            archive.unlink(missing_ok=True)
            archive, result.artifact_reused = self._acquire(target, resolved, scratch)
            staged_tree = self._stage(archive, target)
        self._replace(staged_tree, target)
        self._build(target, build_tool)

        try:
            self._link(target, result)
            atomic_write(target.marker_path, resolved.version)
        finally:
            self._cleanup(scratch)

        result.version = resolved.version
        result.binary_path = target.binary_path
        self._verify(target, resolved, result)
        return result

    # ------------------------------------------------------------------ 1
    def _acquire(
        self, target: InstallTarget, resolved: ResolvedVersion, scratch: Path
    ) -> tuple[Path, bool]:
        archive = scratch / artifact_name(resolved, target.platform, target.from_source)

        if is_nonempty_file(archive):
            logger.info(f"📦 Archive already downloaded: {archive}")
            return archive, True

        url = download_url(
            resolved, target.platform, self.index.repo, target.from_source
        )
        logger.info(f"📥 Downloading V from {url}...")
        self.downloader(
            url,
            archive,
            timeout=self.index.timeout,
            retries=self.retries,
        )
        return archive, False

    # ------------------------------------------------------------------ 2
    def _stage(self, archive: Path, target: InstallTarget) -> Path:
        staging = target.staging_dir
        if staging.exists():
            logger.debug(f"Removing leftover staging directory: {staging}")
            safe_rmtree(staging, require_prefix=target.root)

        logger.info(f"📦 Extracting V into {staging}...")
        extract_archive(archive, staging)

        tree = self._find_tree_root(staging)
        if target.requires_build:
            expected = tree / target.build_script()
        else:
            expected = tree / target.binary_path.name
        if not expected.is_file():
            raise ExtractionError(
                f"Expected {expected.name} not found after extraction "
                f"(staged tree left at {staging})"
            )

        if not target.requires_build:
            make_executable(expected)
        return tree

    def _find_tree_root(self, staging: Path) -> Path:
        named = staging / TREE_NAME
        if named.is_dir():
            return named

        entries = list(staging.iterdir())
        if len(entries) == 1 and entries[0].is_dir():
            return entries[0]
        return staging

    # ------------------------------------------------------------------ 3
    def _replace(self, staged_tree: Path, target: InstallTarget) -> None:
        tree = target.tree_dir
        if tree.exists() or tree.is_symlink():
            logger.info(f"♻️ Removing old install at {tree}...")
            if tree.is_symlink() or tree.is_file():
                tree.unlink()
            else:
                safe_rmtree(tree, require_prefix=target.root)

        staged_tree.rename(tree)
        if target.staging_dir.exists():
            safe_rmtree(target.staging_dir, require_prefix=target.root)
        logger.info(f"📂 V extracted to {tree}")

    # ------------------------------------------------------------------ 4
    def _build(self, target: InstallTarget, build_tool: Optional[Path] = None) -> None:
        if target.requires_build:
            command = target.build_command()
            if build_tool is not None:
                command = [str(build_tool)] + command[1:]
            logger.info(f"🏗️ Building V with {' '.join(command)}...")
            try:
                proc = subprocess.run(
                    command,
                    cwd=target.tree_dir,
                    capture_output=True,
                    text=True,
                    timeout=self.build_timeout,
                )
            except subprocess.TimeoutExpired as e:
                raise BuildError(
                    f"Build timed out after {self.build_timeout}s",
                    _decode(e.stdout) + _decode(e.stderr),
                ) from e
            except OSError as e:
                raise BuildError(f"Could not run {command[0]}: {e}") from e

            if proc.returncode != 0:
                raise BuildError(
                    f"Build failed with exit code {proc.returncode}",
                    proc.stdout + proc.stderr,
                )

        if not is_executable(target.binary_path):
            raise BuildError(f"V binary not usable at {target.binary_path}")

    # ------------------------------------------------------------------ 5
    def _link(self, target: InstallTarget, result: ExecutionResult) -> None:
        if target.link_policy is LinkPolicy.SKIP:
            logger.info("🚫 Skipping symlink creation (use --link to force)")
            return

        link_dir = target.link_dir or self.env.default_link_dir()
        manager = BinaryLinkManager(target.platform)
        logger.info(f"🔧 Linking V into {link_dir}...")
        try:
            if manager.points_to(link_dir, target.binary_path):
                result.link_path = manager.link_path(link_dir)
            else:
                result.link_path = manager.create_link(target.binary_path, link_dir)
            result.linked = True
        except LinkWarning as e:
            self._warn(result, str(e))

    # ------------------------------------------------------------------ 7
    def _cleanup(self, scratch: Path) -> None:
        try:
            safe_rmtree(scratch, require_prefix=self.env.temp_dir)
            logger.debug(f"Removed scratch directory: {scratch}")
        except (FilesystemError, ValueError) as e:
            logger.warning(f"⚠️ Failed to remove {scratch}: {e}")

    # ------------------------------------------------------------------ 8
    def _verify(
        self, target: InstallTarget, resolved: ResolvedVersion, result: ExecutionResult
    ) -> None:
        reported = query_binary_version(target.binary_path)
        if reported is None:
            self._warn(
                result, f"Installed binary did not report a version: {target.binary_path}"
            )
        elif reported != resolved.version:
            self._warn(
                result,
                f"Installed binary reports {reported}, expected {resolved.version}",
            )

        on_path = self.env.which("v")
        if on_path is None:
            self._warn(
                result,
                "V is installed but not in your PATH. "
                "Add it to your PATH manually or restart your terminal.",
            )
        elif not target.platform.is_windows and (
            on_path.resolve() != target.binary_path.resolve()
        ):
            self._warn(result, f"{on_path} comes first on PATH, not {target.binary_path}")

    def _warn(self, result: ExecutionResult, message: str) -> None:
        logger.warning(f"⚠️ {message}")
        result.warnings.append(message)


def _decode(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


__all__ = ["Executor", "ExecutionResult"]

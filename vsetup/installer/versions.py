"""
Version resolution for V releases.

This module turns what the user asked for (``latest``, ``stable``, an explicit
tag, or the contents of a version file) into a concrete release tag, and maps
a resolved release onto the archive URL for a platform.

Example:
    >>> index = ReleaseIndex()
    >>> resolved = resolve(parse_version_spec("latest"), index)
    >>> if isinstance(resolved, ResolvedVersion):
    ...     print(download_url(resolved, detect_platform(), index.repo))
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import requests

from ..core.exceptions import ConfigError, NetworkError
from ..core.platform import PlatformInfo

logger = logging.getLogger(__name__)

DEFAULT_REPO = "vlang/v"
GITHUB_API = "https://api.github.com"
GITHUB_WEB = "https://github.com"


# ============================================================================
# Version Specs
# ============================================================================


@dataclass(frozen=True)
class Latest:
    """Newest published release."""

    def __str__(self) -> str:
        return "latest"


@dataclass(frozen=True)
class Stable:
    """Newest release that is neither a draft nor a prerelease."""

    def __str__(self) -> str:
        return "stable"


@dataclass(frozen=True)
class Explicit:
    """A version given on the command line."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class FromFile:
    """A tag read from a version file (e.g. ``.v-version``)."""

    path: Path

    def __str__(self) -> str:
        return f"file:{self.path}"


VersionSpec = Union[Latest, Stable, Explicit, FromFile]


@dataclass(frozen=True)
class ResolvedVersion:
    """
    A concrete release.

    Attributes:
        version: Normalized version string (no leading 'v'), used for comparison
        tag: Release tag used to build download URLs (normalized for user
            input, verbatim for tags returned by the release index)
    """

    version: str
    tag: str

    def __str__(self) -> str:
        return self.version


@dataclass(frozen=True)
class Unresolved:
    """Latest/stable could not be determined (network or parse failure)."""

    spec: VersionSpec
    reason: str

    def __str__(self) -> str:
        return f"unresolved-{self.spec}"


def normalize_version(value: str) -> str:
    """
    Normalize a version string for comparison.

    Trims whitespace and strips a leading 'v' that precedes a digit.

    Example:
        >>> normalize_version(" v0.4.8\\n")
        '0.4.8'
        >>> normalize_version("weekly.2024.01")
        'weekly.2024.01'
    """
    value = value.strip()
    if len(value) > 1 and value[0] in "vV" and value[1].isdigit():
        return value[1:]
    return value


def parse_version_spec(
    version: Optional[str] = None, version_file: Optional[Path] = None
) -> VersionSpec:
    """
    Build a VersionSpec from CLI input.

    A version file takes precedence over the ``--version`` value.

    Args:
        version: Value of ``--version`` ('latest', 'stable' or a tag)
        version_file: Value of ``--version-file``

    Raises:
        ConfigError: If the version value is blank
    """
    if version_file is not None:
        return FromFile(Path(version_file))

    if version is None:
        return Latest()

    value = version.strip()
    if not value:
        raise ConfigError("--version must not be empty")
    if value.lower() == "latest":
        return Latest()
    if value.lower() == "stable":
        return Stable()
    return Explicit(value)


# ============================================================================
# Release Index
# ============================================================================


class ReleaseIndex:
    """
    Remote release index backed by the GitHub releases API.

    Lookups are memoized per instance so one invocation always sees one answer.
    """

    def __init__(
        self,
        repo: str = DEFAULT_REPO,
        token: Optional[str] = None,
        timeout: int = 30,
        api_url: str = GITHUB_API,
    ):
        """
        Initialize release index.

        Args:
            repo: GitHub repository slug ('owner/name')
            token: Optional API token (raises the anonymous rate limit)
            timeout: Request timeout in seconds
            api_url: API base URL
        """
        self.repo = repo
        self.token = token
        self.timeout = timeout
        self.api_url = api_url.rstrip("/")
        self._cache: dict[str, str] = {}

    def headers(self) -> dict:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def latest_tag(self) -> str:
        """
        Tag of the release GitHub marks as latest.

        Raises:
            NetworkError: If the request fails or the response has no tag
        """
        if "latest" not in self._cache:
            data = self._get(f"/repos/{self.repo}/releases/latest")
            tag = data.get("tag_name") if isinstance(data, dict) else None
            if not tag:
                raise NetworkError("Release index response has no tag_name")
            self._cache["latest"] = tag
        return self._cache["latest"]

    def stable_tag(self) -> str:
        """
        Tag of the newest non-draft, non-prerelease release.

        Falls back to scanning the release list when the latest endpoint
        returns nothing usable.

        Raises:
            NetworkError: If neither lookup yields a tag
        """
        if "stable" in self._cache:
            return self._cache["stable"]

        try:
            tag = self.latest_tag()
        except NetworkError as e:
            logger.debug(f"Latest release lookup failed, scanning release list: {e}")
            tag = self._first_stable_in_list()

        self._cache["stable"] = tag
        return tag

    def _first_stable_in_list(self) -> str:
        releases = self._get(f"/repos/{self.repo}/releases")
        if not isinstance(releases, list):
            raise NetworkError("Release list response is not a list")

        for release in releases:
            if not isinstance(release, dict):
                continue
            if release.get("draft") or release.get("prerelease"):
                continue
            if release.get("tag_name"):
                return release["tag_name"]

        raise NetworkError(f"No stable release found for {self.repo}")

    def _get(self, path: str):
        url = f"{self.api_url}{path}"
        logger.debug(f"GET {url}")
        try:
            response = requests.get(url, headers=self.headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"Failed to query {url}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {url}: {e}") from e


# ============================================================================
# Resolution
# ============================================================================


def resolve(
    spec: VersionSpec, index: ReleaseIndex
) -> Union[ResolvedVersion, Unresolved]:
    """
    Resolve a VersionSpec into a concrete release.

    Args:
        spec: What the user asked for
        index: Release index consulted for latest/stable

    Returns:
        ResolvedVersion, or Unresolved when latest/stable lookup failed

    Raises:
        ConfigError: If an explicit value is blank or the version file is
            missing or empty
    """
    if isinstance(spec, Explicit):
        return _from_user(spec.value, "--version")

    if isinstance(spec, FromFile):
        return _from_user(_read_version_file(spec.path), str(spec.path))

    try:
        tag = index.stable_tag() if isinstance(spec, Stable) else index.latest_tag()
    except NetworkError as e:
        logger.warning(f"⚠️ Could not resolve {spec} version: {e}")
        return Unresolved(spec=spec, reason=str(e))

    resolved = _from_tag(tag, f"{spec} release")
    logger.debug(f"Resolved {spec} to {resolved.tag}")
    return resolved


def _from_tag(tag: str, source: str) -> ResolvedVersion:
    tag = tag.strip()
    version = normalize_version(tag)
    if not version:
        raise ConfigError(f"Empty version from {source}")
    return ResolvedVersion(version=version, tag=tag)


def _from_user(value: str, source: str) -> ResolvedVersion:
    # user input is normalized; only API tag_name values are used verbatim
    resolved = _from_tag(value, source)
    return ResolvedVersion(version=resolved.version, tag=resolved.version)


def _read_version_file(path: Path) -> str:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Version file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read version file {path}: {e}") from e

    if not content.strip():
        raise ConfigError(f"Version file is empty: {path}")
    return content


# ============================================================================
# Artifact Locations
# ============================================================================


def asset_name(platform: PlatformInfo) -> str:
    """
    Name of the prebuilt release asset for ``platform``.

    Raises:
        ConfigError: If no prebuilt asset exists for the platform
    """
    if platform.os == "linux":
        return "v_linux.zip"
    if platform.os == "macos":
        if platform.arch == "arm64":
            return "v_macos_arm64.zip"
        if platform.arch == "x64":
            return "v_macos_x86_64.zip"
        raise ConfigError(f"Unsupported macOS architecture: {platform.arch}")
    if platform.os == "windows":
        return "v_windows.zip"
    raise ConfigError(f"Unsupported OS: {platform.os}")


def artifact_name(
    resolved: ResolvedVersion, platform: PlatformInfo, from_source: bool = False
) -> str:
    """File name the downloaded archive is stored under."""
    if from_source:
        return f"v-{resolved.tag}-source.zip"
    return asset_name(platform)


def download_url(
    resolved: ResolvedVersion,
    platform: PlatformInfo,
    repo: str = DEFAULT_REPO,
    from_source: bool = False,
) -> str:
    """
    Archive URL for a release.

    Example:
        >>> download_url(ResolvedVersion("0.4.8", "0.4.8"), PlatformInfo("linux", "x64"))
        'https://github.com/vlang/v/releases/download/0.4.8/v_linux.zip'
    """
    if from_source:
        return f"{GITHUB_WEB}/{repo}/archive/refs/tags/{resolved.tag}.zip"
    return f"{GITHUB_WEB}/{repo}/releases/download/{resolved.tag}/{asset_name(platform)}"


__all__ = [
    "Latest",
    "Stable",
    "Explicit",
    "FromFile",
    "VersionSpec",
    "ResolvedVersion",
    "Unresolved",
    "normalize_version",
    "parse_version_spec",
    "ReleaseIndex",
    "resolve",
    "asset_name",
    "artifact_name",
    "download_url",
    "DEFAULT_REPO",
]

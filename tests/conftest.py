"""
Pytest configuration and shared fixtures for vsetup tests.
"""

import os
import shutil
import stat
import zipfile
from pathlib import Path

import pytest

from vsetup.core.environment import Environment
from vsetup.core.platform import PlatformInfo
from vsetup.installer.target import InstallTarget, LinkPolicy

LINUX_X64 = PlatformInfo("linux", "x64")


def pytest_collection_modifyitems(config, items):
    """Skip tests that run shell scripts when not on a POSIX host."""
    if os.name != "nt":
        return
    skip_posix = pytest.mark.skip(reason="requires a POSIX shell and file modes")
    for item in items:
        if "posix_only" in item.keywords:
            item.add_marker(skip_posix)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "posix_only: test runs shell scripts or relies on file modes"
    )


# ============================================================================
# Fake V Toolchain
# ============================================================================


def fake_v_script(version: str = "0.4.8") -> str:
    """Shell script that answers ``v version`` like the real compiler."""
    return (
        "#!/bin/sh\n"
        'if [ "$1" = "version" ]; then\n'
        f'  echo "V {version} abc1234"\n'
        "  exit 0\n"
        "fi\n"
        "exit 0\n"
    )


def write_fake_v(path: Path, version: str = "0.4.8") -> Path:
    """Write an executable fake V binary to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(fake_v_script(version))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def _add_file(zf: zipfile.ZipFile, name: str, content: str, mode: int = 0o644):
    info = zipfile.ZipInfo(name)
    info.external_attr = (stat.S_IFREG | mode) << 16
    zf.writestr(info, content)


@pytest.fixture
def make_release_zip(tmp_path):
    """
    Factory building a release zip shaped like the published V assets.

    The archive holds a top-level ``v/`` directory with an executable ``v``
    that reports ``version``.
    """
    counter = {"n": 0}

    def _make(version: str = "0.4.8", include_binary: bool = True) -> Path:
        counter["n"] += 1
        archive = tmp_path / "archives" / f"release-{counter['n']}.zip"
        archive.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive, "w") as zf:
            if include_binary:
                _add_file(zf, "v/v", fake_v_script(version), mode=0o755)
            _add_file(zf, "v/vlib/builtin/builtin.v", "module builtin\n")
            _add_file(zf, "v/README.md", "# V\n")
        return archive

    return _make


@pytest.fixture
def make_source_zip(tmp_path):
    """Factory building a tagged source archive with a Makefile."""

    def _make(tag: str = "0.4.8") -> Path:
        archive = tmp_path / "archives" / f"source-{tag}.zip"
        archive.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive, "w") as zf:
            _add_file(zf, f"v-{tag}/Makefile", "all:\n\tcc -o v cmd/v\n")
            _add_file(zf, f"v-{tag}/cmd/v/v.v", "module main\n")
        return archive

    return _make


class FakeDownloader:
    """Stand-in for download_file that copies a local archive."""

    def __init__(self, archive: Path):
        self.archive = archive
        self.calls = []

    def __call__(self, url, destination, **kwargs):
        self.calls.append(url)
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.archive, destination)
        return destination


@pytest.fixture
def fake_downloader(make_release_zip):
    return FakeDownloader(make_release_zip("0.4.8"))


# ============================================================================
# Environment and Targets
# ============================================================================


@pytest.fixture
def link_dir(tmp_path) -> Path:
    path = tmp_path / "home" / ".local" / "bin"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def env(tmp_path, link_dir) -> Environment:
    """Environment whose home, PATH and temp dir live under tmp_path."""
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir()
    return Environment(
        home=tmp_path / "home",
        path=(link_dir,),
        temp_dir=temp_dir,
        variables={},
    )


@pytest.fixture
def target(tmp_path, link_dir) -> InstallTarget:
    root = tmp_path / "root"
    root.mkdir()
    return InstallTarget(
        root=root,
        platform=LINUX_X64,
        link_policy=LinkPolicy.CREATE,
        link_dir=link_dir,
    )


@pytest.fixture
def linux_platform() -> PlatformInfo:
    return LINUX_X64


@pytest.fixture
def fake_v():
    """Function writing an executable fake V binary: ``fake_v(path, version)``."""
    return write_fake_v


@pytest.fixture
def downloader_for():
    """Factory wrapping a local archive in a FakeDownloader."""
    return FakeDownloader

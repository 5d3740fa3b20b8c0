"""
Unit tests for PATH link management.
"""

import os

import pytest

from vsetup.core.exceptions import LinkWarning
from vsetup.core.platform import PlatformInfo
from vsetup.installer.linking import BinaryLinkManager

WINDOWS = PlatformInfo("windows", "x64")


@pytest.mark.posix_only
class TestSymlinks:
    """Tests for POSIX symlinks."""

    def test_create_link(self, tmp_path, linux_platform, fake_v):
        binary = fake_v(tmp_path / "v" / "v")
        manager = BinaryLinkManager(linux_platform)

        link = manager.create_link(binary, tmp_path / "bin")

        assert link == tmp_path / "bin" / "v"
        assert link.is_symlink()
        assert os.readlink(link) == str(binary)
        assert manager.points_to(tmp_path / "bin", binary)

    def test_replaces_existing_symlink(self, tmp_path, linux_platform, fake_v):
        old = fake_v(tmp_path / "old" / "v")
        new = fake_v(tmp_path / "new" / "v")
        manager = BinaryLinkManager(linux_platform)
        manager.create_link(old, tmp_path / "bin")

        manager.create_link(new, tmp_path / "bin")

        assert manager.points_to(tmp_path / "bin", new)
        assert not manager.points_to(tmp_path / "bin", old)

    def test_replaces_broken_symlink(self, tmp_path, linux_platform, fake_v):
        binary = fake_v(tmp_path / "v" / "v")
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        os.symlink(tmp_path / "gone", bin_dir / "v")
        manager = BinaryLinkManager(linux_platform)

        manager.create_link(binary, bin_dir)

        assert manager.points_to(bin_dir, binary)

    def test_foreign_file_is_left_alone(self, tmp_path, linux_platform, fake_v):
        """Test a regular file at the link path is never overwritten."""
        binary = fake_v(tmp_path / "v" / "v")
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        (bin_dir / "v").write_text("someone else's v")
        manager = BinaryLinkManager(linux_platform)

        with pytest.raises(LinkWarning, match="not overwriting"):
            manager.create_link(binary, bin_dir)

        assert (bin_dir / "v").read_text() == "someone else's v"

    def test_points_to_missing_link(self, tmp_path, linux_platform):
        manager = BinaryLinkManager(linux_platform)

        assert not manager.points_to(tmp_path, tmp_path / "v")


class TestWindowsShim:
    """Tests for the Windows .cmd shim."""

    def test_create_shim(self, tmp_path):
        binary = tmp_path / "v" / "v.exe"
        manager = BinaryLinkManager(WINDOWS)

        link = manager.create_link(binary, tmp_path / "bin")

        assert link.name == "v.cmd"
        content = link.read_text()
        assert content.startswith("@echo off")
        assert str(binary.absolute()) in content
        assert manager.points_to(tmp_path / "bin", binary)

    def test_replaces_own_shim(self, tmp_path):
        manager = BinaryLinkManager(WINDOWS)
        manager.create_link(tmp_path / "old" / "v.exe", tmp_path / "bin")

        manager.create_link(tmp_path / "new" / "v.exe", tmp_path / "bin")

        assert manager.points_to(tmp_path / "bin", tmp_path / "new" / "v.exe")

    def test_foreign_cmd_file(self, tmp_path):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        (bin_dir / "v.cmd").write_text("echo other\n")
        manager = BinaryLinkManager(WINDOWS)

        with pytest.raises(LinkWarning):
            manager.create_link(tmp_path / "v" / "v.exe", bin_dir)

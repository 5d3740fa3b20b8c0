"""
Unit tests for filesystem utilities.

Tests cover:
- Archive extraction and permission restoration
- Directory traversal protection
- Executable bits
- Atomic writes and guarded deletion
"""

import io
import stat
import tarfile
import zipfile

import pytest

from vsetup.core.exceptions import ExtractionError
from vsetup.core.filesystem import (
    ArchiveExtractionError,
    FilesystemError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
    atomic_write,
    extract_archive,
    is_executable,
    make_executable,
    safe_rmtree,
)


def _zip(path, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name, content, mode in entries:
            info = zipfile.ZipInfo(name)
            info.external_attr = (stat.S_IFREG | mode) << 16
            zf.writestr(info, content)
    return path


class TestExtractArchive:
    """Tests for extract_archive."""

    def test_extract_zip(self, tmp_path):
        """Test extracting a zip archive."""
        archive = _zip(
            tmp_path / "v_linux.zip",
            [("v/README.md", "# V\n", 0o644), ("v/vlib/os/os.v", "module os\n", 0o644)],
        )
        dest = tmp_path / "out"

        extract_archive(archive, dest)

        assert (dest / "v" / "README.md").read_text() == "# V\n"
        assert (dest / "v" / "vlib" / "os" / "os.v").exists()

    @pytest.mark.posix_only
    def test_extract_zip_restores_mode(self, tmp_path):
        """Test executable bits stored in the zip are restored."""
        archive = _zip(
            tmp_path / "v_linux.zip",
            [("v/v", "#!/bin/sh\n", 0o755), ("v/README.md", "x", 0o644)],
        )
        dest = tmp_path / "out"

        extract_archive(archive, dest)

        assert is_executable(dest / "v" / "v")
        assert not is_executable(dest / "v" / "README.md")

    def test_extract_tar_gz(self, tmp_path):
        """Test extracting a tar.gz archive."""
        archive = tmp_path / "v.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            data = b"module main\n"
            info = tarfile.TarInfo("v/cmd/v/v.v")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
        dest = tmp_path / "out"

        extract_archive(archive, dest)

        assert (dest / "v" / "cmd" / "v" / "v.v").read_bytes() == b"module main\n"

    def test_zip_traversal_blocked(self, tmp_path):
        """Test archive members escaping the destination are rejected."""
        archive = _zip(tmp_path / "evil.zip", [("../escape.txt", "x", 0o644)])
        dest = tmp_path / "out"

        with pytest.raises(InsecureArchiveError, match="directory traversal"):
            extract_archive(archive, dest)

        assert not (tmp_path / "escape.txt").exists()

    def test_unsupported_format(self, tmp_path):
        """Test unknown extensions raise UnsupportedArchiveFormat."""
        archive = tmp_path / "v.rar"
        archive.write_bytes(b"data")

        with pytest.raises(UnsupportedArchiveFormat):
            extract_archive(archive, tmp_path / "out")

    def test_corrupted_zip(self, tmp_path):
        """Test a corrupted zip raises an ExtractionError subclass."""
        archive = tmp_path / "v_linux.zip"
        archive.write_bytes(b"this is not a zip file")

        with pytest.raises(ArchiveExtractionError) as exc_info:
            extract_archive(archive, tmp_path / "out")

        assert isinstance(exc_info.value, ExtractionError)

    def test_missing_archive(self, tmp_path):
        """Test a missing archive raises ArchiveExtractionError."""
        with pytest.raises(ArchiveExtractionError, match="not found"):
            extract_archive(tmp_path / "missing.zip", tmp_path / "out")


class TestExecutableBits:
    """Tests for is_executable and make_executable."""

    def test_missing_file_not_executable(self, tmp_path):
        assert not is_executable(tmp_path / "missing")

    def test_directory_not_executable(self, tmp_path):
        assert not is_executable(tmp_path)

    @pytest.mark.posix_only
    def test_make_executable(self, tmp_path):
        """Test make_executable adds execute permission."""
        path = tmp_path / "v"
        path.write_text("#!/bin/sh\n")
        path.chmod(0o644)
        assert not is_executable(path)

        make_executable(path)

        assert is_executable(path)
        assert path.stat().st_mode & 0o777 == 0o755


class TestAtomicWrite:
    """Tests for atomic_write."""

    def test_write_text(self, tmp_path):
        target = tmp_path / "v" / ".vsetup-version"

        atomic_write(target, "0.4.8")

        assert target.read_text() == "0.4.8"

    def test_overwrite(self, tmp_path):
        target = tmp_path / "marker"
        target.write_text("0.4.7")

        atomic_write(target, "0.4.8")

        assert target.read_text() == "0.4.8"
        assert list(tmp_path.iterdir()) == [target]

    def test_write_bytes(self, tmp_path):
        target = tmp_path / "blob"

        atomic_write(target, b"\x00\x01")

        assert target.read_bytes() == b"\x00\x01"


class TestSafeRmtree:
    """Tests for safe_rmtree."""

    def test_removes_directory(self, tmp_path):
        tree = tmp_path / "v"
        (tree / "vlib").mkdir(parents=True)
        (tree / "vlib" / "a.v").write_text("x")

        safe_rmtree(tree, require_prefix=tmp_path)

        assert not tree.exists()

    def test_missing_directory_is_noop(self, tmp_path):
        safe_rmtree(tmp_path / "missing", require_prefix=tmp_path)

    def test_refuses_outside_prefix(self, tmp_path):
        """Test paths outside the prefix are never deleted."""
        outside = tmp_path / "outside"
        outside.mkdir()
        prefix = tmp_path / "root"
        prefix.mkdir()

        with pytest.raises(ValueError, match="Refusing to delete"):
            safe_rmtree(outside, require_prefix=prefix)

        assert outside.exists()

    def test_refuses_prefix_itself(self, tmp_path):
        """Test the prefix directory itself cannot be deleted."""
        with pytest.raises(ValueError):
            safe_rmtree(tmp_path, require_prefix=tmp_path)

        assert tmp_path.exists()

    def test_refuses_file(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")

        with pytest.raises(FilesystemError, match="not a directory"):
            safe_rmtree(path, require_prefix=tmp_path)

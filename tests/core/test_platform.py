"""
Unit tests for platform detection.
"""

import pytest
from unittest.mock import patch

from vsetup.core.exceptions import ConfigError
from vsetup.core.platform import (
    PlatformInfo,
    clear_platform_cache,
    detect_platform,
    normalize_arch,
    with_arch,
)


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_platform_cache()
    yield
    clear_platform_cache()


class TestNormalizeArch:
    """Tests for normalize_arch."""

    @pytest.mark.parametrize(
        "machine,expected",
        [
            ("x86_64", "x64"),
            ("AMD64", "x64"),
            ("aarch64", "arm64"),
            ("arm64", "arm64"),
            ("i686", "x86"),
            ("armv7l", "arm"),
            ("riscv64", "riscv64"),
        ],
    )
    def test_normalize(self, machine, expected):
        assert normalize_arch(machine) == expected


class TestDetectPlatform:
    """Tests for detect_platform."""

    @pytest.mark.parametrize(
        "system,expected",
        [
            ("Linux", "linux"),
            ("Darwin", "macos"),
            ("Windows", "windows"),
            ("MINGW64_NT-10.0", "windows"),
            ("MSYS_NT-10.0", "windows"),
            ("CYGWIN_NT-10.0", "windows"),
        ],
    )
    def test_os_mapping(self, system, expected):
        with patch("platform.system", return_value=system), patch(
            "platform.machine", return_value="x86_64"
        ):
            info = detect_platform()

        assert info == PlatformInfo(expected, "x64")

    def test_unsupported_os(self):
        """Test an unknown OS raises ConfigError."""
        with patch("platform.system", return_value="Plan9"), patch(
            "platform.machine", return_value="x86_64"
        ):
            with pytest.raises(ConfigError, match="Unsupported OS"):
                detect_platform()

    def test_result_is_cached(self):
        with patch("platform.system", return_value="Linux"), patch(
            "platform.machine", return_value="aarch64"
        ) as machine:
            detect_platform()
            detect_platform()

        assert machine.call_count == 1


class TestPlatformInfo:
    """Tests for PlatformInfo helpers."""

    def test_platform_string(self):
        assert PlatformInfo("macos", "arm64").platform_string() == "macos-arm64"
        assert str(PlatformInfo("linux", "x64")) == "linux-x64"

    def test_executable_name(self):
        assert PlatformInfo("windows", "x64").executable_name("v") == "v.exe"
        assert PlatformInfo("linux", "x64").executable_name("v") == "v"

    def test_with_arch_override(self):
        info = PlatformInfo("macos", "arm64")

        assert with_arch(info, "x86_64") == PlatformInfo("macos", "x64")
        assert with_arch(info, None) is info

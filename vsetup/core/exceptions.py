"""
Centralized exception hierarchy for vsetup.

Every failure the installer can report maps onto one of these classes so the
CLI can translate it into a message and an exit code in one place.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class VSetupError(Exception):
    """Base exception for all vsetup errors."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(VSetupError):
    """Bad flags, unreadable version file or invalid configuration."""

    pass


class MissingToolError(ConfigError):
    """Raised when a required external tool is not on PATH."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"{tool} is not installed.")


# ============================================================================
# Execution Exceptions
# ============================================================================


class NetworkError(VSetupError):
    """Version resolution or artifact download failed."""

    pass


class ExtractionError(VSetupError):
    """Archive is malformed or the expected binary is missing after extract."""

    pass


class BuildError(VSetupError):
    """Platform build step failed."""

    def __init__(self, message: str, output: str = ""):
        self.output = output
        if output:
            message = f"{message}\n{output.rstrip()}"
        super().__init__(message)


class LinkWarning(VSetupError):
    """PATH link creation or post-install verification failed (non-fatal)."""

    pass


class LockTimeout(VSetupError):
    """Another invocation holds the install-root lock."""

    pass


__all__ = [
    "VSetupError",
    "ConfigError",
    "MissingToolError",
    "NetworkError",
    "ExtractionError",
    "BuildError",
    "LinkWarning",
    "LockTimeout",
]

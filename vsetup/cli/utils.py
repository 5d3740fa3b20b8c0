"""
Shared utilities for the vsetup CLI.

Configuration file loading, console output that survives narrow encodings,
and CI output reporting.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from vsetup.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "vsetup.yaml"

# key -> accepted types
CONFIG_KEYS = {
    "version": (str, int, float),
    "dir": (str,),
    "link": (bool,),
    "link_dir": (str,),
    "repo": (str,),
    "from_source": (bool,),
    "timeout": (int,),
    "lock_timeout": (int, float),
}


# ============================================================================
# Configuration Management
# ============================================================================


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and validate a vsetup YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty if the file is absent and optional)

    Raises:
        ConfigError: If the file is required but missing, is not valid YAML,
            or holds a value of the wrong type

    Example:
        >>> config = load_yaml_config(Path("vsetup.yaml"))
        >>> config.get("dir", "~")
    """
    if not config_file.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    return _validate_config(config, config_file)


def _validate_config(config: Dict[str, Any], config_file: Path) -> Dict[str, Any]:
    validated = {}
    for key, value in config.items():
        accepted = CONFIG_KEYS.get(key)
        if accepted is None:
            logger.warning(f"⚠️ Ignoring unknown key '{key}' in {config_file}")
            continue
        # bool is an int subclass; only allow it where bool is expected
        if not isinstance(value, accepted) or (
            isinstance(value, bool) and bool not in accepted
        ):
            names = "/".join(t.__name__ for t in accepted)
            raise ConfigError(
                f"Invalid value for '{key}' in {config_file}: expected {names}"
            )
        validated[key] = str(value) if key == "version" else value
    return validated


def find_config(explicit: Optional[Path], cwd: Path) -> Optional[Path]:
    """
    Pick the configuration file to load.

    Returns:
        The explicit path if given, ``<cwd>/vsetup.yaml`` if it exists,
        otherwise None
    """
    if explicit is not None:
        return Path(explicit)
    default = cwd / DEFAULT_CONFIG_NAME
    return default if default.exists() else None


# ============================================================================
# Output Helpers
# ============================================================================


def safe_print(message: str, file=None):
    """
    Print message with safe encoding handling for Windows console.

    Falls back to ASCII-safe markers if Unicode emojis can't be encoded.
    """
    try:
        print(message, file=file)
    except UnicodeEncodeError:
        safe_message = (
            message.replace("⚠️", "WARNING:")
            .replace("✅", "[OK]")
            .replace("❌", "[ERROR]")
            .replace("🔍", "[CHECK]")
        )
        print(safe_message.encode("ascii", "replace").decode("ascii"), file=file)


def write_github_outputs(output_file: Path, values: Dict[str, str]) -> None:
    """
    Append ``key=value`` lines to a GitHub Actions output file.

    Args:
        output_file: File named by the GITHUB_OUTPUT variable
        values: Output names and values
    """
    with open(output_file, "a", encoding="utf-8") as f:
        for key, value in values.items():
            f.write(f"{key}={value}\n")
    logger.debug(f"Wrote {len(values)} output(s) to {output_file}")


__all__ = [
    "load_yaml_config",
    "find_config",
    "safe_print",
    "write_github_outputs",
    "DEFAULT_CONFIG_NAME",
]

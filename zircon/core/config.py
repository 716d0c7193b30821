"""
Configuration loading for Zircon.

Settings come from an optional YAML file (``<root>/config.yaml`` or the path
given with ``--config``). Every key is optional; missing keys fall back to
the defaults below.

Example config.yaml:
    toolchain_repo: https://github.com/zirco-lang/zrc.git
    self_repo: https://github.com/zirco-lang/zircon.git
    release_url: https://github.com/zirco-lang/zrc/releases/download
    build_command: [cargo, build, --release]
    binaries: [zrc, zircop]
    lock_timeout: 30
    update_check: true
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TOOLCHAIN_REPO = "https://github.com/zirco-lang/zrc.git"
DEFAULT_SELF_REPO = "https://github.com/zirco-lang/zircon.git"
DEFAULT_RELEASE_URL = "https://github.com/zirco-lang/zrc/releases/download"

# First entry is the primary executable every toolchain must provide
DEFAULT_BINARIES = ["zrc", "zircop"]


@dataclass
class ZirconConfig:
    """Effective Zircon configuration."""

    toolchain_repo: str = DEFAULT_TOOLCHAIN_REPO
    self_repo: str = DEFAULT_SELF_REPO
    release_url: str = DEFAULT_RELEASE_URL
    build_command: List[str] = field(
        default_factory=lambda: ["cargo", "build", "--release"]
    )
    binaries: List[str] = field(default_factory=lambda: list(DEFAULT_BINARIES))
    lock_timeout: float = 30
    update_check: bool = True

    @property
    def primary_binary(self) -> str:
        """The executable whose presence makes a toolchain valid."""
        return self.binaries[0]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZirconConfig":
        """
        Build a configuration from a parsed YAML mapping.

        Raises:
            ConfigurationError: If a known key has the wrong type
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}

        for key, value in data.items():
            if key not in known:
                logger.debug(f"Ignoring unknown configuration key: {key}")
                continue
            values[key] = value

        for key in ("toolchain_repo", "self_repo", "release_url"):
            if key in values and not isinstance(values[key], str):
                raise ConfigurationError(f"'{key}' must be a string")

        for key in ("build_command", "binaries"):
            if key in values:
                value = values[key]
                if isinstance(value, str):
                    value = value.split()
                if not isinstance(value, list) or not value or not all(
                    isinstance(item, str) for item in value
                ):
                    raise ConfigurationError(
                        f"'{key}' must be a non-empty list of strings"
                    )
                values[key] = value

        if "lock_timeout" in values:
            timeout = values["lock_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigurationError("'lock_timeout' must be a number")

        if "update_check" in values and not isinstance(values["update_check"], bool):
            raise ConfigurationError("'update_check' must be true or false")

        if "release_url" in values:
            values["release_url"] = values["release_url"].rstrip("/")

        return cls(**values)


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        ConfigurationError: If the file is required but missing, or is not
            valid YAML mapping
    """
    if not config_file.exists():
        if required:
            raise ConfigurationError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Configuration in {config_file} must be a mapping, "
            f"got {type(config).__name__}"
        )
    return config


def load_config(
    config_file: Path, explicit: bool = False, overrides: Optional[Dict[str, Any]] = None
) -> ZirconConfig:
    """
    Load the effective configuration.

    Args:
        config_file: YAML file to read
        explicit: True when the user named the file (it must then exist)
        overrides: Values from command-line flags; None entries are ignored

    Returns:
        ZirconConfig with file values and overrides applied over defaults
    """
    data = load_yaml_config(config_file, required=explicit)
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return ZirconConfig.from_dict(data)


__all__ = [
    "ZirconConfig",
    "DEFAULT_TOOLCHAIN_REPO",
    "DEFAULT_SELF_REPO",
    "DEFAULT_RELEASE_URL",
    "DEFAULT_BINARIES",
    "load_yaml_config",
    "load_config",
]

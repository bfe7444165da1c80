# sshsync Configuration Loader
# Load YAML configuration files and merge command line overrides

import os
from pathlib import Path
from typing import Any, Optional

import yaml

from sshsync.config.schema import SshSyncConfig


def get_config_dir() -> Path:
    """Get the sshsync configuration directory."""
    return Path.home() / ".config" / "sshsync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get("SSHSYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> SshSyncConfig:
    """
    Load configuration from YAML file.

    The configuration file is optional: when no path is given and the
    default file does not exist, built-in defaults are returned.

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        SshSyncConfig: Validated configuration object.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the file does not hold a mapping.
        ValidationError: If config values are invalid.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        return SshSyncConfig()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    return SshSyncConfig.model_validate(data)


def apply_overrides(config: SshSyncConfig, overrides: dict[str, dict[str, Any]]) -> SshSyncConfig:
    """
    Return a copy of config with per-section overrides applied.

    Args:
        config: Base configuration.
        overrides: Mapping of section name to field values. None values are ignored.

    Returns:
        New validated SshSyncConfig.
    """
    data = config.model_dump()
    for section, values in overrides.items():
        for key, value in values.items():
            if value is not None:
                data[section][key] = value
    return SshSyncConfig.model_validate(data)

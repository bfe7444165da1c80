# sshsync Configuration Module
# Handles YAML-based configuration loading and validation

from sshsync.config.loader import apply_overrides, get_config_path, load_config
from sshsync.config.schema import (
    DEFAULT_CONTROL_PATH,
    DEFAULT_WATCH_EVENTS,
    ConnectionConfig,
    OutputConfig,
    SshSyncConfig,
    SyncTarget,
    TransferConfig,
    WatchConfig,
)

__all__ = [
    # Schema
    "SshSyncConfig",
    "ConnectionConfig",
    "TransferConfig",
    "WatchConfig",
    "OutputConfig",
    "SyncTarget",
    "DEFAULT_CONTROL_PATH",
    "DEFAULT_WATCH_EVENTS",
    # Loader
    "load_config",
    "get_config_path",
    "apply_overrides",
]

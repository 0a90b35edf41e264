# KBSync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from kbsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from kbsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from kbsync.config.schema import (
    CheckpointConfig,
    CompareMode,
    DestinationConfig,
    KbSyncConfig,
    OutputConfig,
    SourceConfig,
    SyncSettings,
)

__all__ = [
    # Schema
    "KbSyncConfig",
    "SourceConfig",
    "DestinationConfig",
    "SyncSettings",
    "CheckpointConfig",
    "OutputConfig",
    "CompareMode",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]

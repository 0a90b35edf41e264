# KBSync Configuration Loader
# Load, save, and manage YAML configuration files

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from kbsync.config.defaults import generate_default_config, get_default_config
from kbsync.config.schema import KbSyncConfig, SyncSettings

ENV_PREFIX = "KBSYNC_"


def get_config_dir() -> Path:
    """Get the kbsync configuration directory."""
    return Path.home() / ".config" / "kbsync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get("KBSYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_config(config_path: Optional[Path] = None, *, environ: Optional[dict[str, str]] = None) -> KbSyncConfig:
    """
    Load configuration from YAML file.

    Sync settings can be overridden with KBSYNC_<SETTING> environment variables.

    Args:
        config_path: Optional path to config file. Uses default if not provided.
        environ: Environment to read overrides from. Defaults to os.environ.

    Returns:
        KbSyncConfig: Validated configuration object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config file is invalid.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}\nRun 'kbsync config init' to create one.")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    merged = _merge_with_defaults(data)
    _apply_env_overrides(merged, os.environ if environ is None else environ)

    return KbSyncConfig.model_validate(merged)


def save_config(config: KbSyncConfig, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save.
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Use mode='json' to serialize Enums as their string values
    data = config.model_dump(mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without loading it into the system.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    errors: list[str] = []

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Configuration file is empty"]

    if not isinstance(data, dict):
        return False, ["Configuration must be a mapping"]

    try:
        KbSyncConfig.model_validate(_merge_with_defaults(data))
    except ValidationError as e:
        for error in e.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")
        return False, errors

    # Additional validation
    if not (data.get("source") or {}).get("path"):
        errors.append("Missing 'source.path'")

    if not (data.get("destination") or {}).get("path"):
        errors.append("Missing 'destination.path'")

    return len(errors) == 0, errors


def _merge_with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Merge loaded data with default values for missing keys."""
    result = get_default_config()

    for section, values in data.items():
        if isinstance(values, dict) and isinstance(result.get(section), dict):
            result[section] = {**result[section], **values}
        else:
            result[section] = values

    return result


def _apply_env_overrides(data: dict[str, Any], environ: Any) -> None:
    """Apply KBSYNC_<SETTING> overrides to the sync section."""
    sync = data.setdefault("sync", {})
    for name in SyncSettings.model_fields:
        value = environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            sync[name] = value

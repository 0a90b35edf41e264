# KBSync Object Utilities
# Dot-path access into nested dictionaries

from typing import Any

_MISSING = object()


def _walk(data: Any, path: str) -> Any:
    current = data
    for key in path.split("."):
        if isinstance(current, dict) and key in current:
            current = current[key]
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return _MISSING
    return current


def has_path(data: Any, path: str) -> bool:
    """Check if a dot-path like ``published.alternatives`` exists."""
    return _walk(data, path) is not _MISSING


def get_path(data: Any, path: str, default: Any = None) -> Any:
    """Get the value at a dot-path, or default if missing."""
    value = _walk(data, path)
    return default if value is _MISSING else value


def set_path(data: dict[str, Any], path: str, value: Any) -> None:
    """
    Set the value at a dot-path, creating intermediate dictionaries.

    Intermediate keys holding None are replaced by dictionaries.
    """
    keys = path.split(".")
    current = data
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value

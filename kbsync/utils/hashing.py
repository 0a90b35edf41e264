# KBSync Hashing Utilities
# Content hashing used as a modification marker

import hashlib
import json
from typing import Any


def content_hash(content: str | bytes, *, algorithm: str = "sha256") -> str:
    """
    Calculate hash of content.

    Args:
        content: String or bytes content.
        algorithm: Hash algorithm (default sha256).

    Returns:
        Hex digest of hash.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    hasher = hashlib.new(algorithm)
    hasher.update(content)
    return hasher.hexdigest()


def record_hash(record: dict[str, Any], *, algorithm: str = "sha256") -> str:
    """
    Calculate a stable hash of a JSON-serializable record.

    Keys are sorted so that field order does not change the hash.

    Args:
        record: Dictionary to hash.
        algorithm: Hash algorithm (default sha256).

    Returns:
        Hex digest of hash.
    """
    return content_hash(json.dumps(record, sort_keys=True, default=str), algorithm=algorithm)

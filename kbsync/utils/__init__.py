# KBSync Utilities Module
# Paging, runtime control, path handling and small helpers

from kbsync.utils.generated import GeneratedValue, is_generated_value, resolve_generated_values
from kbsync.utils.hashing import content_hash, record_hash
from kbsync.utils.objects import get_path, has_path, set_path
from kbsync.utils.pager import Pager
from kbsync.utils.paths import atomic_write, ensure_dir
from kbsync.utils.runtime import HookEvent, Runtime
from kbsync.utils.source_matcher import add_external_id_prefix, is_from_same_source, remove_external_id_prefix

__all__ = [
    # Paging and runtime
    "Pager",
    "Runtime",
    "HookEvent",
    # Objects
    "get_path",
    "has_path",
    "set_path",
    # Source matching
    "is_from_same_source",
    "add_external_id_prefix",
    "remove_external_id_prefix",
    # Generated values
    "GeneratedValue",
    "is_generated_value",
    "resolve_generated_values",
    # Paths
    "ensure_dir",
    "atomic_write",
    # Hashing
    "content_hash",
    "record_hash",
]

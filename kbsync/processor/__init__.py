# KBSync Processor Module
# Item transformations run by the worker, highest priority first

from kbsync.processor.name_conflict import NameConflictResolver, resolve_name_conflicts
from kbsync.processor.prefix_external_id import PrefixExternalId
from kbsync.processor.reference_resolver import ReferenceResolver

__all__ = [
    "PrefixExternalId",
    "ReferenceResolver",
    "NameConflictResolver",
    "resolve_name_conflicts",
]

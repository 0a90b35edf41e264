# KBSync Filter Module
# Checks deciding whether a loaded item enters the worker

from kbsync.filter.duplicate import DuplicateFilter
from kbsync.filter.modification_date import ModificationDateFilter

__all__ = [
    "ModificationDateFilter",
    "DuplicateFilter",
]

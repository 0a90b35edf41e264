# KBSync Aggregator Module
# Diffing of collected entities against the destination

from kbsync.aggregator.diff import DiffAggregator, filter_same_source, verify_not_to_delete_everything

__all__ = [
    "DiffAggregator",
    "filter_same_source",
    "verify_not_to_delete_everything",
]

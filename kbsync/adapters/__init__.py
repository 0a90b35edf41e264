# KBSync Adapters Module
# Source and destination systems behind stable interfaces

from kbsync.adapters.base import AdapterPair, DestinationAdapter, SourceAdapter
from kbsync.adapters.file_destination import DELETE_BATCH_SIZE, FileDestinationAdapter
from kbsync.adapters.file_source import FileSourceAdapter
from kbsync.adapters.loader import FileLoader

__all__ = [
    "AdapterPair",
    "SourceAdapter",
    "DestinationAdapter",
    "FileSourceAdapter",
    "FileDestinationAdapter",
    "FileLoader",
    "DELETE_BATCH_SIZE",
]

# KBSync Pipe Module
# Run orchestration, worker, tasks and resumable context

from kbsync.pipe.checkpoint import ContextFileRepository, ContextRepository
from kbsync.pipe.context import AdapterContext, FailedItems, PipeContext, PipeState
from kbsync.pipe.task import Aggregator, Filter, Loader, Processor, Runnable, Task, Uploader
from kbsync.pipe.worker import Worker

__all__ = [
    # Context
    "PipeContext",
    "PipeState",
    "AdapterContext",
    "FailedItems",
    "ContextRepository",
    "ContextFileRepository",
    # Tasks
    "Task",
    "Runnable",
    "Loader",
    "Filter",
    "Processor",
    "Aggregator",
    "Uploader",
    "Worker",
]

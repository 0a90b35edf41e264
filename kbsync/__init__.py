"""KBSync - Knowledge Base Sync.

One-way synchronization of categories, labels and documents from a source
system into a destination knowledge base, uploading only what changed and
resuming interrupted runs from a checkpoint.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "Pipe",
    "SyncResult",
    "Runtime",
    "PipeContext",
    "DiffAggregator",
    "KbSyncConfig",
    "load_config",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("Pipe", "SyncResult"):
        from kbsync.pipe import pipe

        return getattr(pipe, name)
    if name == "Runtime":
        from kbsync.utils.runtime import Runtime

        return Runtime
    if name == "PipeContext":
        from kbsync.pipe.context import PipeContext

        return PipeContext
    if name == "DiffAggregator":
        from kbsync.aggregator.diff import DiffAggregator

        return DiffAggregator
    if name in ("KbSyncConfig", "load_config"):
        from kbsync import config

        return getattr(config, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

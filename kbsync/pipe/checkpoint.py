# KBSync Checkpoint
# Persistence of the pipe context between interrupted runs

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from kbsync.logger import SyncLogger
from kbsync.pipe.context import PipeContext
from kbsync.utils.paths import atomic_write


class ContextRepository(ABC):
    """Storage for the checkpointed pipe context."""

    @abstractmethod
    async def exists(self) -> bool:
        """Check if a checkpoint is present."""

    @abstractmethod
    async def load(self) -> Optional[PipeContext]:
        """Load the checkpoint, None if absent or unreadable."""

    @abstractmethod
    async def save(self, context: PipeContext) -> None:
        """Persist the context."""

    @abstractmethod
    async def clear(self) -> None:
        """Discard the checkpoint."""


class ContextFileRepository(ContextRepository):
    """
    Checkpoint stored as a JSON file.

    A corrupt file is treated like a missing one, which leads to a fresh run.
    """

    def __init__(self, path: Optional[Path] = None, logger: Optional[SyncLogger] = None):
        """
        Initialize repository.

        Args:
            path: Checkpoint file path. Defaults to ./context.json
            logger: Optional logger.
        """
        self.path = path or Path("context.json")
        self.logger = logger or SyncLogger()

    async def exists(self) -> bool:
        return self.path.exists()

    async def load(self) -> Optional[PipeContext]:
        if not self.path.exists():
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return PipeContext.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable checkpoint {self.path}: {e}")
            return None

    async def save(self, context: PipeContext) -> None:
        atomic_write(self.path, json.dumps(context.to_dict(), indent=2, ensure_ascii=False))
        self.logger.info(f"Checkpoint saved to {self.path}")

    async def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            self.logger.debug(f"Checkpoint {self.path} removed")

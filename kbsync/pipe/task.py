# KBSync Tasks
# Base classes for everything that can be plugged into a Pipe

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Optional

from kbsync.logger import SyncLogger
from kbsync.model import Category, Document, EntityType, ExternalIdentifiable, Label

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair
    from kbsync.config.schema import KbSyncConfig
    from kbsync.model import SyncableContents
    from kbsync.pipe.context import FailedItems, PipeContext


class Task(ABC):
    """Base of every pipe task. Tasks are initialized once per run."""

    logger: SyncLogger

    async def initialize(
        self,
        config: KbSyncConfig,
        adapters: AdapterPair,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        """
        Bind the task to a run.

        Args:
            config: Run configuration.
            adapters: Source and destination adapters.
            context: Shared pipe context.
            logger: Logger of the pipe.
        """
        self.logger = logger or SyncLogger()

    @property
    def name(self) -> str:
        return self.__class__.__name__


class Runnable(Task):
    """Task invoked once per entity, with one method per entity type."""

    @abstractmethod
    async def run_on_category(self, item: Category, first_try: bool = True) -> Any: ...

    @abstractmethod
    async def run_on_label(self, item: Label, first_try: bool = True) -> Any: ...

    @abstractmethod
    async def run_on_document(self, item: Document, first_try: bool = True) -> Any: ...

    async def run_on(self, entity_type: EntityType, item: ExternalIdentifiable, first_try: bool = True) -> Any:
        """Dispatch to the method of the given entity type."""
        method = getattr(self, f"run_on_{entity_type.value}")
        return await method(item, first_try=first_try)


class Processor(Runnable):
    """Transforms an entity and returns the same shape."""

    def get_priority(self) -> int:
        """Processors with higher priority run first."""
        return 0


class Filter(Runnable):
    """Decides whether an entity continues through the pipe."""


class Aggregator(Runnable):
    """Collects processed entities into the syncable contents."""


class Loader(Task):
    """Fetches entities from the source system."""

    @abstractmethod
    def category_iterator(self) -> AsyncIterator[Category]: ...

    @abstractmethod
    def label_iterator(self) -> AsyncIterator[Label]: ...

    @abstractmethod
    def document_iterator(self) -> AsyncIterator[Document]: ...

    def iterator(self, entity_type: EntityType) -> AsyncIterator[ExternalIdentifiable]:
        """Iterator for an entity type."""
        return getattr(self, f"{entity_type.value}_iterator")()


class Uploader(Task):
    """Final task: pushes the collected changes to the destination."""

    @abstractmethod
    async def run(self, contents: SyncableContents, failed_items: FailedItems) -> None: ...

# KBSync Adapters
# Boundary between the sync engine and the source and destination systems

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from kbsync.logger import SyncLogger
from kbsync.model import BulkDeleteResponse, Document, ExternalContent, SyncDataResponse, SyncModel
from kbsync.utils.runtime import Runtime

if TYPE_CHECKING:
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext


class SourceAdapter(ABC):
    """
    Reads raw records from a source system.

    Iterators are resumable through ``context.adapter``: whatever a pager
    buffered but did not deliver is kept there and served first next time.
    """

    logger: SyncLogger

    @abstractmethod
    async def initialize(
        self,
        config: KbSyncConfig,
        runtime: Runtime,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        """Bind the adapter to a run."""

    @abstractmethod
    def category_iterator(self) -> AsyncIterator[dict[str, Any]]:
        """Raw category records."""

    @abstractmethod
    def label_iterator(self) -> AsyncIterator[dict[str, Any]]:
        """Raw label records."""

    @abstractmethod
    def article_iterator(self) -> AsyncIterator[dict[str, Any]]:
        """Raw article records."""

    async def construct_document_link(self, external_id: str) -> Optional[str]:
        """Link to a document in the source system, if the source has one."""
        return None


class DestinationAdapter(ABC):
    """Writes to the destination knowledge base."""

    logger: SyncLogger

    @abstractmethod
    async def initialize(self, config: KbSyncConfig, runtime: Runtime, logger: Optional[SyncLogger] = None) -> None:
        """Bind the adapter to a run, authenticating if needed."""

    @abstractmethod
    async def export_all_entities(self) -> ExternalContent:
        """Full current content of the knowledge base."""

    @abstractmethod
    async def sync_data(self, data: SyncModel) -> SyncDataResponse:
        """Apply an upload payload."""

    @abstractmethod
    async def delete_articles(self, documents: Sequence[Document]) -> list[BulkDeleteResponse]:
        """Delete documents in batches."""


@dataclass
class AdapterPair:
    """Source and destination adapter of one pipe."""

    source_adapter: Optional[SourceAdapter] = None
    destination_adapter: Optional[DestinationAdapter] = None

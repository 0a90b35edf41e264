# KBSync Duplicate Filter
# Drop documents the source returns more than once

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from kbsync.logger import SyncLogger
from kbsync.model import Category, Document, Label
from kbsync.pipe.task import Filter
from kbsync.utils.source_matcher import add_external_id_prefix

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext


class DuplicateFilter(Filter):
    """Drops a document whose external id was already processed or is pending."""

    def __init__(self, external_id_prefix: Optional[str] = None):
        self.external_id_prefix = external_id_prefix
        self.context: Optional[PipeContext] = None

    async def initialize(
        self,
        config: KbSyncConfig,
        adapters: AdapterPair,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        await super().initialize(config, adapters, context, logger)
        self.context = context
        self.external_id_prefix = config.sync.external_id_prefix or None

    async def run_on_category(self, item: Category, first_try: bool = True) -> bool:
        return True

    async def run_on_label(self, item: Label, first_try: bool = True) -> bool:
        return True

    async def run_on_document(self, item: Document, first_try: bool = True) -> bool:
        candidates = {item.external_id, add_external_id_prefix(item.external_id, self.external_id_prefix)}
        pipe = self.context.pipe

        duplicate = next(
            (
                d
                for d in [*pipe.processed_items.documents, *pipe.unprocessed_items.documents]
                if d.external_id in candidates
            ),
            None,
        )
        if duplicate is None:
            return True

        self.logger.warning(
            f"Duplicate document found with id {item.external_id}: "
            f"url {item.external_url} (original {duplicate.external_url}), "
            f"version {item.external_version_id} (original {duplicate.external_version_id})"
        )
        return False

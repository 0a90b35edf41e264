# KBSync Modification Date Filter
# Skip documents whose version marker did not change

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from kbsync.config.schema import CompareMode
from kbsync.logger import SyncLogger
from kbsync.model import Category, Document, Label
from kbsync.pipe.task import Filter
from kbsync.utils.source_matcher import add_external_id_prefix

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext


class ModificationDateFilter(Filter):
    """
    Drops documents with an unchanged ``external_version_id``.

    Only active in MODIFICATION_DATE compare mode. A dropped document is
    still present in the source, so it is taken out of the deleted set.
    """

    def __init__(
        self,
        compare_mode: CompareMode = CompareMode.MODIFICATION_DATE,
        external_id_prefix: Optional[str] = None,
    ):
        self.compare_mode = compare_mode
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
        self.compare_mode = config.sync.compare_mode
        self.external_id_prefix = config.sync.external_id_prefix or None

    async def run_on_category(self, item: Category, first_try: bool = True) -> bool:
        return True

    async def run_on_label(self, item: Label, first_try: bool = True) -> bool:
        return True

    async def run_on_document(self, item: Document, first_try: bool = True) -> bool:
        if self.compare_mode != CompareMode.MODIFICATION_DATE:
            return True

        external_id = add_external_id_prefix(item.external_id, self.external_id_prefix)
        stored = next(
            (d for d in self.context.stored.documents if d is not None and d.external_id == external_id),
            None,
        )

        if stored and item.external_version_id and item.external_version_id == stored.external_version_id:
            self.logger.debug(f"Document {external_id} unchanged since version {item.external_version_id}")
            deleted = self.context.syncable_contents.documents.deleted
            deleted[:] = [d for d in deleted if d.external_id != external_id]
            return False

        return True

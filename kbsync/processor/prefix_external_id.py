# KBSync Prefix External Id
# Namespace external ids of one source

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, TypeVar

from kbsync.logger import SyncLogger
from kbsync.model import Category, Document, ExternalIdentifiable, Label
from kbsync.pipe.task import Processor
from kbsync.utils.source_matcher import add_external_id_prefix

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext

T = TypeVar("T", bound=ExternalIdentifiable)


class PrefixExternalId(Processor):
    """
    Prepends ``external_id_prefix`` to every external id.

    The prefix tells apart entities of different sources sharing one
    destination, so obsolete entities are only removed for the running source.
    """

    def __init__(self, external_id_prefix: Optional[str] = None):
        self.external_id_prefix = external_id_prefix

    async def initialize(
        self,
        config: KbSyncConfig,
        adapters: AdapterPair,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        await super().initialize(config, adapters, context, logger)
        self.external_id_prefix = config.sync.external_id_prefix or None

    async def run_on_category(self, item: Category, first_try: bool = True) -> Category:
        return self._replace_external_id(item)

    async def run_on_label(self, item: Label, first_try: bool = True) -> Label:
        return self._replace_external_id(item)

    async def run_on_document(self, item: Document, first_try: bool = True) -> Document:
        return self._replace_external_id(item)

    def get_priority(self) -> int:
        # must run before anything looking at external ids
        return 10000

    def _replace_external_id(self, item: T) -> T:
        item.external_id = add_external_id_prefix(item.external_id, self.external_id_prefix)
        return item

# KBSync Reference Resolver
# Resolve parent, category and label references and fill the lookup tables

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional, TypeVar

from kbsync.errors import MissingReferenceError
from kbsync.logger import SyncLogger
from kbsync.model import (
    Category,
    CategoryReference,
    Document,
    DocumentVersion,
    ExternalIdentifiable,
    ExternalLink,
    Label,
    LabelReference,
)
from kbsync.pipe.task import Processor
from kbsync.utils.source_matcher import add_external_id_prefix

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext

T = TypeVar("T", bound=ExternalIdentifiable)


class ReferenceResolver(Processor):
    """
    Checks that every referenced category and label is known.

    References carry the source id of the referenced entity. They are looked
    up among the entities processed so far and the stored snapshot; the name
    of the match is copied onto the reference. An unknown reference raises
    MissingReferenceError, so the worker retries the item once after all
    other items of its type are processed. This lets a child category come
    before its parent in the source.

    Resolved entities are registered in the lookup tables of the context.
    """

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

    def get_priority(self) -> int:
        # after PrefixExternalId, before NameConflictResolver
        return 5000

    async def run_on_category(self, item: Category, first_try: bool = True) -> Category:
        if item.parent_category:
            self._resolve_category(item.parent_category)

        stored = self._find(item.external_id, self.context.stored.categories)
        self.context.category_lookup_table[item.external_id] = CategoryReference(
            id=stored.id if stored else None,
            name=item.name,
        )
        return item

    async def run_on_label(self, item: Label, first_try: bool = True) -> Label:
        stored = self._find(item.external_id, self.context.stored.labels)
        self.context.label_lookup_table[item.external_id] = LabelReference(
            id=stored.id if stored else None,
            name=item.name,
        )
        return item

    async def run_on_document(self, item: Document, first_try: bool = True) -> Document:
        for version in (item.published, item.draft):
            if version:
                self._resolve_version(version)

        self.context.article_lookup_table[item.external_id] = ExternalLink(
            external_document_id=item.external_id,
            external_url=item.external_url,
            title=item.title,
        )
        return item

    def _resolve_version(self, version: DocumentVersion) -> None:
        if version.category:
            self._resolve_category(version.category)
        for label in version.labels or []:
            self._resolve_label(label)

    def _resolve_category(self, reference: CategoryReference) -> None:
        if reference.id is None:
            return
        category = self._find_referenced(
            reference.id,
            self.context.pipe.processed_items.categories,
            self.context.stored.categories,
        )
        if category is None:
            raise MissingReferenceError("category", reference.id)
        reference.name = category.name

    def _resolve_label(self, reference: LabelReference) -> None:
        if reference.id is None:
            return
        label = self._find_referenced(
            reference.id,
            self.context.pipe.processed_items.labels,
            self.context.stored.labels,
        )
        if label is None:
            raise MissingReferenceError("label", reference.id)
        reference.name = label.name

    def _find_referenced(self, reference_id: str, *candidates: Sequence[T]) -> Optional[T]:
        external_id = add_external_id_prefix(reference_id, self.external_id_prefix)
        for items in candidates:
            found = self._find(external_id, items)
            if found is not None:
                return found
        return None

    @staticmethod
    def _find(external_id: Optional[str], items: Sequence[T]) -> Optional[T]:
        return next((i for i in items if i is not None and i.external_id == external_id), None)

# KBSync Diff Aggregator
# Three-way diff of collected entities against the destination snapshot

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from kbsync.config.schema import CompareMode
from kbsync.errors import ConfigurerError
from kbsync.logger import SyncLogger
from kbsync.model import (
    Category,
    CategoryReference,
    Document,
    DocumentVersion,
    ExternalIdentifiable,
    ImportableContent,
    Label,
    LabelReference,
    Variation,
)
from kbsync.pipe.task import Aggregator
from kbsync.utils.generated import is_generated_value
from kbsync.utils.objects import get_path, has_path, set_path
from kbsync.utils.source_matcher import is_from_same_source

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext

T = TypeVar("T", bound=ExternalIdentifiable)
Normalizer = Callable[[T], T]

# Fields that never take part in change detection
IGNORED_FIELDS = ("id", "source_id", "external_version_id")

PRUNE_ALL_MESSAGE = (
    "Prune all entities are not allowed. This protection can be disabled with "
    "allow_prune_all_entities: true (or KBSYNC_ALLOW_PRUNE_ALL_ENTITIES=true) in the configuration."
)


def filter_same_source(
    items: Iterable[T],
    source_id: Optional[str],
    external_id_prefix: Optional[str],
) -> list[T]:
    """Keep only the items produced by the running source."""
    return [item for item in items if item is not None and is_from_same_source(item, source_id, external_id_prefix)]


def verify_not_to_delete_everything(
    content: ImportableContent,
    stored_items: Sequence[ExternalIdentifiable],
    source_id: Optional[str],
    external_id_prefix: Optional[str],
    allow_prune_all_entities: bool,
    logger: Optional[SyncLogger] = None,
) -> None:
    """
    Refuse a diff that would delete every stored entity of the running source.

    A diff qualifies when nothing is created, something is deleted and the
    deleted set covers the whole same-source stored subset. This is what an
    unexpectedly empty source export looks like.

    Raises:
        ConfigurerError: Unless ``allow_prune_all_entities`` is set.
    """
    if allow_prune_all_entities or content.created or not content.deleted:
        return

    same_source_ids = {item.external_id for item in filter_same_source(stored_items, source_id, external_id_prefix)}
    deleted_ids = [item.external_id for item in content.deleted]

    if len(deleted_ids) == len(same_source_ids) and all(i in same_source_ids for i in deleted_ids):
        if logger:
            logger.error(PRUNE_ALL_MESSAGE)
        raise ConfigurerError("Prune all entities are not allowed", cause="prune.all.entities")


class DiffAggregator(Aggregator):
    """
    Classifies collected entities into created, updated and deleted sets.

    Items are matched to the destination snapshot by ``external_id``. Both
    sides are normalized first, so only meaningful differences count:
    titles are trimmed, references are reduced to the current name of the
    referenced entity, empty optional fields become None and destination ids
    are dropped.

    Inside a pipe the aggregator works per item (``run_on_*``) and removes
    every matched entity from the deleted set seeded with the snapshot. The
    same-source filter and the prune-all guard are then applied by the
    uploader. ``collect_modified_items`` runs the complete diff in one go.
    """

    def __init__(
        self,
        *,
        protected_fields: Optional[Sequence[str]] = None,
        external_id_prefix: Optional[str] = None,
        source_id: Optional[str] = None,
        compare_mode: CompareMode = CompareMode.MODIFICATION_DATE,
        allow_prune_all_entities: bool = False,
    ):
        self.protected_fields = list(protected_fields or [])
        self.external_id_prefix = external_id_prefix or ""
        self.source_id = source_id
        self.compare_mode = compare_mode
        self.allow_prune_all_entities = allow_prune_all_entities
        self.context: Optional[PipeContext] = None
        self.logger = SyncLogger()

    async def initialize(
        self,
        config: KbSyncConfig,
        adapters: AdapterPair,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        await super().initialize(config, adapters, context, logger)
        self.context = context

        settings = config.sync
        self.protected_fields = settings.get_protected_fields()
        self.external_id_prefix = settings.external_id_prefix or ""
        self.source_id = settings.source_id
        self.compare_mode = settings.compare_mode
        self.allow_prune_all_entities = settings.allow_prune_all_entities

    # ------------------------------------------------------------------
    # Per item, inside the worker
    # ------------------------------------------------------------------

    async def run_on_category(self, item: Category, first_try: bool = True) -> Category:
        context = self._require_context()
        stored = context.stored
        all_categories = [*context.pipe.processed_items.categories, *stored.categories]

        return self.collect_modified_item(
            item,
            stored.categories,
            lambda c: self.normalize_category(c, all_categories),
            context.syncable_contents.categories,
        )

    async def run_on_label(self, item: Label, first_try: bool = True) -> Label:
        context = self._require_context()

        return self.collect_modified_item(
            item,
            context.stored.labels,
            self.normalize_label,
            context.syncable_contents.labels,
        )

    async def run_on_document(self, item: Document, first_try: bool = True) -> Document:
        context = self._require_context()
        stored = context.stored
        processed = context.pipe.processed_items
        all_categories = [*processed.categories, *stored.categories]
        all_labels = [*processed.labels, *stored.labels]

        return self.collect_modified_item(
            item,
            stored.documents,
            lambda d: self.normalize_document(d, all_categories, all_labels),
            context.syncable_contents.documents,
            force_update=self.compare_mode == CompareMode.NONE,
        )

    def collect_modified_item(
        self,
        collected_item: T,
        stored_items: Sequence[T],
        normalizer: Normalizer,
        result: ImportableContent,
        *,
        force_update: bool = False,
    ) -> T:
        """
        Diff one collected item against the stored items.

        Args:
            collected_item: Processed item from the source.
            stored_items: Destination snapshot of the same type.
            normalizer: Normalizer of the entity type.
            result: Partition the item is classified into.
            force_update: Treat a matched item as updated without comparing.

        Returns:
            The normalized collected item, protected fields applied.
        """
        normalized = normalizer(collected_item)
        stored_item = next(
            (s for s in stored_items if s is not None and s.external_id == normalized.external_id),
            None,
        )

        if stored_item is None:
            self.logger.debug(f"New entity {normalized.external_id}")
            result.created.append(normalized)
            return normalized

        normalized_stored = normalizer(stored_item)
        normalized = self._copy_protected_fields(normalized_stored, normalized)

        if force_update or not self.is_equal(normalized, normalized_stored):
            self.logger.debug(f"Changed entity {normalized.external_id}")
            result.updated.append(normalized)

        result.deleted[:] = [d for d in result.deleted if d.external_id != normalized.external_id]
        return normalized

    # ------------------------------------------------------------------
    # Whole collection
    # ------------------------------------------------------------------

    def collect_modified_items(
        self,
        collected_items: Sequence[T],
        stored_items: Sequence[T],
        normalizer: Normalizer,
        *,
        force_update: bool = False,
    ) -> ImportableContent:
        """
        Diff a complete collection against the stored items.

        Args:
            collected_items: Items from the source.
            stored_items: Destination snapshot of the same type.
            normalizer: Normalizer of the entity type.
            force_update: Treat every matched item as updated.

        Returns:
            ImportableContent with the created, updated and deleted items.

        Raises:
            ConfigurerError: If the diff would delete every same-source entity.
        """
        result: ImportableContent = ImportableContent()
        unmatched = [s for s in stored_items if s is not None]

        for collected_item in collected_items:
            normalized = normalizer(collected_item)
            index = next((i for i, s in enumerate(unmatched) if s.external_id == normalized.external_id), None)

            if index is None:
                result.created.append(normalized)
                continue

            normalized_stored = normalizer(unmatched.pop(index))
            normalized = self._copy_protected_fields(normalized_stored, normalized)

            if force_update or not self.is_equal(normalized, normalized_stored):
                result.updated.append(normalized)

        result.deleted = filter_same_source(unmatched, self.source_id, self.external_id_prefix)

        verify_not_to_delete_everything(
            result,
            stored_items,
            self.source_id,
            self.external_id_prefix,
            self.allow_prune_all_entities,
            self.logger,
        )
        return result

    # ------------------------------------------------------------------
    # Normalizers
    # ------------------------------------------------------------------

    def normalize_category(self, category: Category, all_categories: Sequence[Category] = ()) -> Category:
        return Category(
            external_id=category.external_id or None,
            external_id_alternatives=category.external_id_alternatives or None,
            external_version_id=category.external_version_id,
            name=category.name,
            parent_category=self._normalize_category_reference(category.parent_category, all_categories),
        )

    def normalize_label(self, label: Label) -> Label:
        return Label(
            external_id=label.external_id or None,
            external_id_alternatives=label.external_id_alternatives or None,
            external_version_id=label.external_version_id,
            name=label.name,
            color=label.color,
        )

    def normalize_document(
        self,
        document: Document,
        all_categories: Sequence[Category] = (),
        all_labels: Sequence[Label] = (),
    ) -> Document:
        return Document(
            external_id=document.external_id or None,
            external_id_alternatives=document.external_id_alternatives or None,
            external_version_id=document.external_version_id,
            external_url=document.external_url or None,
            published=self._normalize_version(document.published, all_categories, all_labels),
            draft=self._normalize_version(document.draft, all_categories, all_labels),
        )

    def _normalize_version(
        self,
        version: Optional[DocumentVersion],
        all_categories: Sequence[Category],
        all_labels: Sequence[Label],
    ) -> Optional[DocumentVersion]:
        if not version:
            return None

        labels = None
        if version.labels:
            labels = [self._normalize_label_reference(label, all_labels) for label in version.labels]

        return DocumentVersion(
            title=version.title.strip() if version.title else version.title,
            visible=version.visible,
            alternatives=copy.deepcopy(version.alternatives) or None,
            category=self._normalize_category_reference(version.category, all_categories),
            labels=labels,
            variations=[
                Variation(body=copy.deepcopy(v.body), name=v.name, priority=v.priority) for v in version.variations
            ],
        )

    def _normalize_category_reference(
        self,
        reference: Optional[CategoryReference],
        all_categories: Sequence[Category],
    ) -> Optional[CategoryReference]:
        if not reference:
            return None

        category = self._find_referenced(reference.id, all_categories)
        return CategoryReference(id=None, name=category.name if category else reference.name)

    def _normalize_label_reference(self, reference: LabelReference, all_labels: Sequence[Label]) -> LabelReference:
        label = self._find_referenced(reference.id, all_labels)
        return LabelReference(id=None, name=label.name if label else reference.name)

    def _find_referenced(self, reference_id: Optional[str], items: Sequence[T]) -> Optional[T]:
        if reference_id is None:
            return None
        external_id = self.external_id_prefix + reference_id
        return next((i for i in items if i is not None and i.external_id == external_id), None)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def is_equal(self, collected: ExternalIdentifiable, stored: ExternalIdentifiable) -> bool:
        """Compare two normalized items, ignoring bookkeeping fields."""
        collected_data = collected.to_dict()
        stored_data = stored.to_dict()
        for key in IGNORED_FIELDS:
            collected_data.pop(key, None)
            stored_data.pop(key, None)
        return _values_equal(collected_data, stored_data)

    def _copy_protected_fields(self, stored: T, collected: T) -> T:
        if not self.protected_fields:
            return collected

        stored_data = stored.to_dict()
        collected_data = collected.to_dict()
        for path in self.protected_fields:
            if has_path(stored_data, path):
                set_path(collected_data, path, copy.deepcopy(get_path(stored_data, path)))

        return type(collected).from_dict(collected_data)

    def _require_context(self) -> PipeContext:
        if self.context is None:
            raise RuntimeError(f"{self.name} used before initialize()")
        return self.context


def _values_equal(collected: Any, stored: Any) -> bool:
    # generated placeholders always accept the stored value
    if is_generated_value(collected):
        return True

    if isinstance(collected, dict) and isinstance(stored, dict):
        if collected.keys() != stored.keys():
            return False
        return all(_values_equal(collected[k], stored[k]) for k in collected)

    if isinstance(collected, list) and isinstance(stored, list):
        if collected and isinstance(collected[0], str):
            return all(isinstance(s, str) for s in stored) and sorted(collected) == sorted(stored)
        if len(collected) != len(stored):
            return False
        return all(_values_equal(c, s) for c, s in zip(collected, stored))

    return collected == stored

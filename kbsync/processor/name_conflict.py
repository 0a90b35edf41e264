# KBSync Name Conflict Resolver
# Keep category and label names unique at the destination

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional, Union

from kbsync.errors import ConfigurerError
from kbsync.logger import SyncLogger
from kbsync.model import Category, Document, Label
from kbsync.pipe.task import Processor

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext

NamedEntity = Union[Category, Label]


def has_name_conflict(item: NamedEntity, existing: Sequence[NamedEntity]) -> bool:
    """Check if another entity already uses the name, ignoring case."""
    name = (item.name or "").lower()
    return any(
        other is not None and (other.name or "").lower() == name and other.external_id != item.external_id
        for other in existing
    )


def resolve_name_conflicts(
    items: Sequence[NamedEntity],
    existing: Sequence[NamedEntity],
    suffix: Optional[str],
) -> list[NamedEntity]:
    """
    Rename collected items clashing with existing ones.

    Each item is checked against ``existing`` plus the items resolved before
    it. The suffix is appended until the name is unique.

    Args:
        items: Collected items, renamed in place.
        existing: Items already known (processed so far and stored).
        suffix: Suffix appended on conflict.

    Returns:
        The items.

    Raises:
        ConfigurerError: If there is a conflict and no suffix is configured.
    """
    known = list(existing)
    for item in items:
        resolve_name_conflict(item, known, suffix)
        known.append(item)
    return list(items)


def resolve_name_conflict(item: NamedEntity, existing: Sequence[NamedEntity], suffix: Optional[str]) -> NamedEntity:
    """Rename a single item, see ``resolve_name_conflicts``."""
    if not has_name_conflict(item, existing):
        return item

    if not suffix:
        raise ConfigurerError(
            f'Name conflict found "{item.name}". Try to use the "name_conflict_suffix" setting',
            cause="name.conflict",
        )

    while has_name_conflict(item, existing):
        item.name = (item.name or "") + suffix
    return item


class NameConflictResolver(Processor):
    """Appends ``name_conflict_suffix`` to categories and labels whose name is taken."""

    def __init__(self, name_conflict_suffix: Optional[str] = None):
        self.name_conflict_suffix = name_conflict_suffix
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
        self.name_conflict_suffix = config.sync.name_conflict_suffix or None

    async def run_on_category(self, item: Category, first_try: bool = True) -> Category:
        existing = [*self.context.pipe.processed_items.categories, *self.context.stored.categories]
        return self._resolve(item, existing)

    async def run_on_label(self, item: Label, first_try: bool = True) -> Label:
        existing = [*self.context.pipe.processed_items.labels, *self.context.stored.labels]
        return self._resolve(item, existing)

    async def run_on_document(self, item: Document, first_try: bool = True) -> Document:
        return item

    def _resolve(self, item: NamedEntity, existing: Sequence[NamedEntity]) -> NamedEntity:
        original_name = item.name
        resolve_name_conflict(item, existing, self.name_conflict_suffix)
        if item.name != original_name:
            self.logger.warning(f'Renamed "{original_name}" to "{item.name}" to avoid a name conflict')
        return item

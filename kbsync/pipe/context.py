# KBSync Pipe Context
# Complete resumable state of one sync run

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from kbsync.model import (
    CategoryReference,
    EntityType,
    ExternalContent,
    ExternalLink,
    FailedEntity,
    LabelReference,
    SyncableContents,
)


@dataclass
class FailedItems:
    """Terminal failures per entity type."""

    categories: list[FailedEntity] = field(default_factory=list)
    labels: list[FailedEntity] = field(default_factory=list)
    documents: list[FailedEntity] = field(default_factory=list)

    def of(self, entity_type: EntityType) -> list[FailedEntity]:
        return getattr(self, entity_type.plural)

    def to_dict(self) -> dict[str, Any]:
        return {t.plural: [f.to_dict() for f in self.of(t)] for t in EntityType}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FailedItems":
        return cls(
            **{t.plural: [FailedEntity.from_dict(f, t.entity_class) for f in data.get(t.plural, [])] for t in EntityType}
        )


@dataclass
class PipeState:
    """Worker bookkeeping: every item ends up in exactly one of these lists."""

    processed_items: ExternalContent = field(default_factory=ExternalContent)
    unprocessed_items: ExternalContent = field(default_factory=ExternalContent)
    failed_items: FailedItems = field(default_factory=FailedItems)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed_items": self.processed_items.to_dict(),
            "unprocessed_items": self.unprocessed_items.to_dict(),
            "failed_items": self.failed_items.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipeState":
        return cls(
            processed_items=ExternalContent.from_dict(data.get("processed_items", {})),
            unprocessed_items=ExternalContent.from_dict(data.get("unprocessed_items", {})),
            failed_items=FailedItems.from_dict(data.get("failed_items", {})),
        )


@dataclass
class AdapterContext:
    """
    Resumable state owned by the source adapter.

    ``unprocessed_items`` holds raw source records buffered by a pager,
    ``cursors`` holds adapter specific paging positions. Both must be plain
    JSON values.
    """

    unprocessed_items: dict[str, list[Any]] = field(
        default_factory=lambda: {"categories": [], "labels": [], "articles": []}
    )
    cursors: dict[str, Any] = field(default_factory=dict)

    def buffer(self, name: str) -> list[Any]:
        """Get the leftover buffer for a record type, creating it if needed."""
        return self.unprocessed_items.setdefault(name, [])

    def to_dict(self) -> dict[str, Any]:
        return {"unprocessed_items": self.unprocessed_items, "cursors": self.cursors}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AdapterContext":
        context = cls()
        context.unprocessed_items.update(data.get("unprocessed_items") or {})
        context.cursors.update(data.get("cursors") or {})
        return context


@dataclass
class PipeContext:
    """
    Full run state shared by the pipe, tasks and adapters.

    Created fresh at run start or loaded from a checkpoint, saved when the
    run is interrupted and discarded when it completes.
    """

    pipe: PipeState = field(default_factory=PipeState)
    adapter: AdapterContext = field(default_factory=AdapterContext)
    stored_content: Optional[ExternalContent] = None
    syncable_contents: SyncableContents = field(default_factory=SyncableContents)
    category_lookup_table: dict[str, CategoryReference] = field(default_factory=dict)
    label_lookup_table: dict[str, LabelReference] = field(default_factory=dict)
    article_lookup_table: dict[str, ExternalLink] = field(default_factory=dict)

    @classmethod
    def create(cls, stored_content: ExternalContent) -> "PipeContext":
        """
        Build a fresh context from a destination snapshot.

        Every stored entity starts out in the deleted set; the diff removes
        the ones that are still present in the source.
        """
        context = cls(stored_content=stored_content)
        for entity_type in EntityType:
            context.syncable_contents.of(entity_type).deleted = list(stored_content.of(entity_type))
        return context

    @property
    def stored(self) -> ExternalContent:
        """Stored snapshot, empty if none was fetched."""
        return self.stored_content or ExternalContent()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the checkpoint file."""
        return {
            "pipe": self.pipe.to_dict(),
            "adapter": self.adapter.to_dict(),
            "stored_content": self.stored_content.to_dict() if self.stored_content is not None else None,
            "syncable_contents": self.syncable_contents.to_dict(),
            "category_lookup_table": {k: asdict(v) for k, v in self.category_lookup_table.items()},
            "label_lookup_table": {k: asdict(v) for k, v in self.label_lookup_table.items()},
            "article_lookup_table": {k: asdict(v) for k, v in self.article_lookup_table.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipeContext":
        """Create from checkpoint dictionary."""
        stored = data.get("stored_content")
        return cls(
            pipe=PipeState.from_dict(data["pipe"]),
            adapter=AdapterContext.from_dict(data.get("adapter") or {}),
            stored_content=ExternalContent.from_dict(stored) if stored is not None else None,
            syncable_contents=SyncableContents.from_dict(data["syncable_contents"]),
            category_lookup_table={
                k: CategoryReference(**v) for k, v in (data.get("category_lookup_table") or {}).items()
            },
            label_lookup_table={k: LabelReference(**v) for k, v in (data.get("label_lookup_table") or {}).items()},
            article_lookup_table={k: ExternalLink(**v) for k, v in (data.get("article_lookup_table") or {}).items()},
        )

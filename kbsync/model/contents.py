# KBSync Contents
# Per entity type collections: external content and three-way diff results

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from kbsync.model.entities import Category, Document, EntityType, ExternalIdentifiable, Label

T = TypeVar("T", bound=ExternalIdentifiable)


@dataclass
class ImportableContent(Generic[T]):
    """Three-way partition of one entity type."""

    created: list[T] = field(default_factory=list)
    updated: list[T] = field(default_factory=list)
    deleted: list[T] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.created or self.updated or self.deleted)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "created": [item.to_dict() for item in self.created],
            "updated": [item.to_dict() for item in self.updated],
            "deleted": [item.to_dict() for item in self.deleted],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], entity_class: type) -> "ImportableContent":
        """Create from dictionary."""
        return cls(
            created=[entity_class.from_dict(i) for i in data.get("created", [])],
            updated=[entity_class.from_dict(i) for i in data.get("updated", [])],
            deleted=[entity_class.from_dict(i) for i in data.get("deleted", [])],
        )


@dataclass
class SyncableContents:
    """Diff result for categories, labels and documents."""

    categories: ImportableContent[Category] = field(default_factory=ImportableContent)
    labels: ImportableContent[Label] = field(default_factory=ImportableContent)
    documents: ImportableContent[Document] = field(default_factory=ImportableContent)

    def of(self, entity_type: EntityType) -> ImportableContent:
        """Get the partition for an entity type."""
        return getattr(self, entity_type.plural)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {t.plural: self.of(t).to_dict() for t in EntityType}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncableContents":
        """Create from dictionary."""
        return cls(
            **{t.plural: ImportableContent.from_dict(data.get(t.plural, {}), t.entity_class) for t in EntityType}
        )


@dataclass
class ExternalContent:
    """Plain entity lists, e.g. a full export of the destination."""

    categories: list[Category] = field(default_factory=list)
    labels: list[Label] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)

    def of(self, entity_type: EntityType) -> list:
        """Get the list for an entity type."""
        return getattr(self, entity_type.plural)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {t.plural: [item.to_dict() for item in self.of(t)] for t in EntityType}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExternalContent":
        """Create from dictionary."""
        return cls(**{t.plural: [t.entity_class.from_dict(i) for i in data.get(t.plural) or []] for t in EntityType})

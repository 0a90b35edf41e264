# KBSync Entities
# Syncable knowledge base entities: categories, labels and documents

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from kbsync.model.errors import ErrorBody


@dataclass
class ExternalIdentifiable:
    """
    Base shape of every syncable entity.

    ``external_id`` is the join key between collected and stored entities.
    ``id`` is assigned by the destination and is never set by the source side.
    """

    id: Optional[str] = None
    external_id: Optional[str] = None
    external_id_alternatives: Optional[list[str]] = None
    source_id: Optional[str] = None
    external_version_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @staticmethod
    def _identity(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": data.get("id"),
            "external_id": data.get("external_id"),
            "external_id_alternatives": data.get("external_id_alternatives"),
            "source_id": data.get("source_id"),
            "external_version_id": data.get("external_version_id"),
        }


@dataclass
class CategoryReference:
    """Reference to a category by id and name."""

    id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["CategoryReference"]:
        if not data:
            return None
        return cls(id=data.get("id"), name=data.get("name"))


@dataclass
class LabelReference:
    """Reference to a label by id and name."""

    id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LabelReference":
        return cls(id=data.get("id"), name=data.get("name"))


@dataclass
class Category(ExternalIdentifiable):
    """Knowledge base category, optionally nested under a parent."""

    name: Optional[str] = None
    parent_category: Optional[CategoryReference] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        """Create from dictionary."""
        return cls(
            **cls._identity(data),
            name=data.get("name"),
            parent_category=CategoryReference.from_dict(data.get("parent_category")),
        )


@dataclass
class Label(ExternalIdentifiable):
    """Knowledge base label."""

    name: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Label":
        """Create from dictionary."""
        return cls(**cls._identity(data), name=data.get("name"), color=data.get("color"))


@dataclass
class DocumentAlternative:
    """Alternative phrasing of a document title."""

    phrase: str
    autocomplete: bool = False


@dataclass
class Variation:
    """Content variation of a document version."""

    body: Optional[dict[str, Any]] = None
    name: Optional[str] = None
    priority: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Variation":
        return cls(body=data.get("body"), name=data.get("name"), priority=data.get("priority"))


@dataclass
class DocumentVersion:
    """Published or draft state of a document."""

    title: Optional[str] = None
    visible: bool = True
    alternatives: Optional[list[DocumentAlternative]] = None
    category: Optional[CategoryReference] = None
    labels: Optional[list[LabelReference]] = None
    variations: list[Variation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["DocumentVersion"]:
        if not data:
            return None
        alternatives = data.get("alternatives")
        labels = data.get("labels")
        return cls(
            title=data.get("title"),
            visible=data.get("visible", True),
            alternatives=[DocumentAlternative(**a) for a in alternatives] if alternatives is not None else None,
            category=CategoryReference.from_dict(data.get("category")),
            labels=[LabelReference.from_dict(label) for label in labels] if labels is not None else None,
            variations=[Variation.from_dict(v) for v in data.get("variations") or []],
        )


@dataclass
class Document(ExternalIdentifiable):
    """Knowledge base document with published and draft versions."""

    external_url: Optional[str] = None
    published: Optional[DocumentVersion] = None
    draft: Optional[DocumentVersion] = None

    @property
    def title(self) -> Optional[str]:
        """Title of the published version, falling back to the draft."""
        version = self.published or self.draft
        return version.title if version else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Create from dictionary."""
        return cls(
            **cls._identity(data),
            external_url=data.get("external_url"),
            published=DocumentVersion.from_dict(data.get("published")),
            draft=DocumentVersion.from_dict(data.get("draft")),
        )


T = TypeVar("T", bound=ExternalIdentifiable)


@dataclass
class FailedEntity(Generic[T]):
    """An entity which could not be processed, with the reasons why."""

    entity: T
    errors: list[ErrorBody]

    @property
    def external_id(self) -> Optional[str]:
        return self.entity.external_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, errors next to the entity fields."""
        return {**self.entity.to_dict(), "errors": [e.to_dict() for e in self.errors]}

    @classmethod
    def from_dict(cls, data: dict[str, Any], entity_class: type) -> "FailedEntity":
        """Create from dictionary."""
        errors = [ErrorBody.from_dict(e) for e in data.get("errors") or []]
        entity_data = {k: v for k, v in data.items() if k != "errors"}
        return cls(entity=entity_class.from_dict(entity_data), errors=errors)


@dataclass
class ExternalLink:
    """Source side link of a document, used for link rewriting."""

    external_document_id: str
    external_url: Optional[str] = None
    title: Optional[str] = None


class EntityType(str, Enum):
    """Entity types processed by the pipe, in processing order."""

    CATEGORY = "category"
    LABEL = "label"
    DOCUMENT = "document"

    @property
    def plural(self) -> str:
        """Collection name used in contents and payloads."""
        return {"category": "categories", "label": "labels", "document": "documents"}[self.value]

    @property
    def entity_class(self) -> type:
        """Dataclass representing this entity type."""
        return {"category": Category, "label": Label, "document": Document}[self.value]

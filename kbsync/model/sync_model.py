# KBSync Sync Model
# Upload payload and destination responses

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ImportAction:
    """Entities to create or update at the destination, as dictionaries."""

    knowledge_base_id: str
    source_id: Optional[str] = None
    categories: list[dict[str, Any]] = field(default_factory=list)
    labels: list[dict[str, Any]] = field(default_factory=list)
    documents: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class DeleteAction:
    """Destination ids to delete."""

    categories: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    documents: list[str] = field(default_factory=list)


@dataclass
class SyncModel:
    """Payload uploaded to the destination."""

    import_action: ImportAction
    delete_action: DeleteAction = field(default_factory=DeleteAction)
    version: int = 3

    @property
    def is_empty(self) -> bool:
        """Check if the payload carries no change at all."""
        return not (
            self.import_action.categories
            or self.import_action.labels
            or self.import_action.documents
            or self.delete_action.categories
            or self.delete_action.labels
            or self.delete_action.documents
        )


@dataclass
class SyncDataResponse:
    """Result of a sync upload."""

    id: str
    status: str
    failed_entities: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class BulkDeleteResponse:
    """Result of one bulk delete batch."""

    results: list[dict[str, Any]] = field(default_factory=list)
    error_count: int = 0
    error_indexes: list[int] = field(default_factory=list)

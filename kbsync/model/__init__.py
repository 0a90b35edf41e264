# KBSync Model Module
# Entities, diff results and upload payloads

from kbsync.model.contents import ExternalContent, ImportableContent, SyncableContents
from kbsync.model.entities import (
    Category,
    CategoryReference,
    Document,
    DocumentAlternative,
    DocumentVersion,
    EntityType,
    ExternalIdentifiable,
    ExternalLink,
    FailedEntity,
    Label,
    LabelReference,
    Variation,
)
from kbsync.model.errors import ErrorBody
from kbsync.model.sync_model import BulkDeleteResponse, DeleteAction, ImportAction, SyncDataResponse, SyncModel

__all__ = [
    # Entities
    "ExternalIdentifiable",
    "Category",
    "CategoryReference",
    "Label",
    "LabelReference",
    "Document",
    "DocumentVersion",
    "DocumentAlternative",
    "Variation",
    "FailedEntity",
    "ExternalLink",
    "EntityType",
    "ErrorBody",
    # Contents
    "ImportableContent",
    "SyncableContents",
    "ExternalContent",
    # Payload
    "SyncModel",
    "ImportAction",
    "DeleteAction",
    "SyncDataResponse",
    "BulkDeleteResponse",
]

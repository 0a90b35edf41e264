# KBSync File Destination Adapter
# Knowledge base kept in a local JSON store

from __future__ import annotations

import json
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from kbsync.adapters.base import DestinationAdapter
from kbsync.errors import ApiError, validate_non_null
from kbsync.logger import SyncLogger
from kbsync.model import BulkDeleteResponse, Document, EntityType, ExternalContent, SyncDataResponse, SyncModel
from kbsync.utils.paths import atomic_write
from kbsync.utils.runtime import Runtime

if TYPE_CHECKING:
    from kbsync.config.schema import KbSyncConfig

DELETE_BATCH_SIZE = 100

StoreData = dict[str, Any]


def _empty_knowledge_base() -> dict[str, list[dict[str, Any]]]:
    return {entity_type.plural: [] for entity_type in EntityType}


class FileDestinationAdapter(DestinationAdapter):
    """
    Destination storing knowledge bases in a JSON file.

    Layout::

        {
          "knowledge_bases": {"<id>": {"categories": [], "labels": [], "documents": []}},
          "sync_jobs": [{"id": ..., "status": ..., "finished_at": ...}]
        }

    Entities are upserted by ``external_id`` and get a generated ``id`` when
    created. References arrive by name and are stored with the id of the
    referenced entity, like a knowledge base API would return them.
    """

    def __init__(self):
        self.path: Optional[Path] = None
        self.knowledge_base_id = "default"
        self.runtime: Optional[Runtime] = None
        self.logger = SyncLogger()

    async def initialize(self, config: KbSyncConfig, runtime: Runtime, logger: Optional[SyncLogger] = None) -> None:
        validate_non_null(config.destination.path, "Missing destination path")
        validate_non_null(config.destination.knowledge_base_id, "Missing knowledge base id")

        self.path = Path(config.destination.path)
        self.knowledge_base_id = config.destination.knowledge_base_id
        self.runtime = runtime
        self.logger = logger or self.logger

        # fail early on an unreadable store
        self._read_store()

    async def export_all_entities(self) -> ExternalContent:
        knowledge_base = self._knowledge_base(self._read_store(), self.knowledge_base_id)
        content = ExternalContent.from_dict(knowledge_base)
        self.logger.debug(
            f"Exported {len(content.categories)} categories, {len(content.labels)} labels "
            f"and {len(content.documents)} documents"
        )
        return content

    async def sync_data(self, data: SyncModel) -> SyncDataResponse:
        store = self._read_store()
        action = data.import_action
        knowledge_base = self._knowledge_base(store, action.knowledge_base_id)
        failed: list[dict[str, Any]] = []

        for entity_type in EntityType:
            for entity in getattr(action, entity_type.plural):
                if entity.get("errors"):
                    failed.append(entity)
                    continue
                self._upsert(knowledge_base, entity_type, entity, action.source_id)

        for entity_type in reversed(EntityType):
            ids = set(getattr(data.delete_action, entity_type.plural))
            if ids:
                entities = knowledge_base[entity_type.plural]
                entities[:] = [e for e in entities if e.get("id") not in ids]

        response = SyncDataResponse(
            id=str(uuid.uuid4()),
            status="PartialCompleted" if failed else "Completed",
            failed_entities=failed,
        )
        store.setdefault("sync_jobs", []).append(
            {
                "id": response.id,
                "status": response.status,
                "finished_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        self._write_store(store)
        return response

    async def delete_articles(self, documents: Sequence[Document]) -> list[BulkDeleteResponse]:
        """
        Delete documents in batches of DELETE_BATCH_SIZE.

        Args:
            documents: Documents to delete, matched by destination id.

        Returns:
            One response per batch.
        """
        responses: list[BulkDeleteResponse] = []
        for start in range(0, len(documents), DELETE_BATCH_SIZE):
            batch = documents[start : start + DELETE_BATCH_SIZE]
            responses.append(self._delete_batch(batch))
        return responses

    def _delete_batch(self, batch: Sequence[Document]) -> BulkDeleteResponse:
        store = self._read_store()
        entities = self._knowledge_base(store, self.knowledge_base_id)["documents"]
        existing_ids = {e.get("id") for e in entities}

        response = BulkDeleteResponse()
        for index, document in enumerate(batch):
            found = document.id is not None and document.id in existing_ids
            response.results.append({"id": document.id, "success": found})
            if not found:
                response.error_count += 1
                response.error_indexes.append(index)

        ids = {d.id for d in batch}
        entities[:] = [e for e in entities if e.get("id") not in ids]
        self._write_store(store)
        return response

    def _upsert(
        self,
        knowledge_base: dict[str, list[dict[str, Any]]],
        entity_type: EntityType,
        entity: dict[str, Any],
        source_id: Optional[str],
    ) -> None:
        entities = knowledge_base[entity_type.plural]
        existing = next((e for e in entities if e.get("external_id") == entity.get("external_id")), None)

        stored = dict(entity)
        stored["id"] = existing["id"] if existing else str(uuid.uuid4())
        stored["source_id"] = source_id

        if entity_type == EntityType.CATEGORY:
            stored["parent_category"] = self._reference(knowledge_base["categories"], stored.get("parent_category"))
        elif entity_type == EntityType.DOCUMENT:
            for version_name in ("published", "draft"):
                version = stored.get(version_name)
                if version:
                    version["category"] = self._reference(knowledge_base["categories"], version.get("category"))
                    if version.get("labels"):
                        version["labels"] = [self._reference(knowledge_base["labels"], r) for r in version["labels"]]

        if existing:
            entities[entities.index(existing)] = stored
        else:
            entities.append(stored)

    @staticmethod
    def _reference(candidates: list[dict[str, Any]], reference: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
        if not reference:
            return None
        name = reference.get("name")
        match = next((c for c in candidates if c.get("name") == name), None)
        return {"id": match["id"] if match else None, "name": name}

    def _knowledge_base(self, store: StoreData, knowledge_base_id: str) -> dict[str, list[dict[str, Any]]]:
        knowledge_bases = store.setdefault("knowledge_bases", {})
        knowledge_base = knowledge_bases.setdefault(knowledge_base_id, _empty_knowledge_base())
        for entity_type in EntityType:
            knowledge_base.setdefault(entity_type.plural, [])
        return knowledge_base

    def _read_store(self) -> StoreData:
        if not self.path.exists():
            return {"knowledge_bases": {}}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ApiError(f"Cannot read knowledge base store {self.path}: {e}", path=str(self.path)) from e

        if not isinstance(data, dict):
            raise ApiError(f"Knowledge base store {self.path} must contain an object", path=str(self.path))
        return data

    def _write_store(self, store: StoreData) -> None:
        atomic_write(self.path, json.dumps(store, indent=2, ensure_ascii=False))

# KBSync File Loader
# Map raw export records to syncable entities

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from kbsync.logger import SyncLogger
from kbsync.model import (
    Category,
    CategoryReference,
    Document,
    DocumentAlternative,
    DocumentVersion,
    Label,
    LabelReference,
    Variation,
)
from kbsync.pipe.task import Loader
from kbsync.utils.generated import GeneratedValue
from kbsync.utils.hashing import record_hash

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair, SourceAdapter
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext

T = TypeVar("T")


def text_to_blocks(text: Optional[str]) -> dict[str, Any]:
    """Split plain text into paragraph blocks on blank lines."""
    paragraphs = [p.strip() for p in (text or "").split("\n\n") if p.strip()]
    return {"blocks": [{"type": "paragraph", "text": p} for p in paragraphs]}


def _as_id(value: Any) -> Optional[str]:
    return None if value is None or value == "" else str(value)


def _version_marker(record: dict[str, Any]) -> str:
    updated_at = record.get("updated_at")
    return str(updated_at) if updated_at else record_hash(record)


class FileLoader(Loader):
    """
    Loads categories, labels and articles through the source adapter.

    Record shapes::

        categories: {id, name, parent_id?, parent_name?, updated_at?}
        labels:     {id, name, color?, updated_at?}
        articles:   {id, title, body?, variations?, status?, visible?, url?,
                     category_id?, label_ids?, alternatives?, alternative_ids?,
                     updated_at?}

    Without ``updated_at`` a hash of the record is the version marker. A label
    without color gets one generated on upload.
    """

    def __init__(self):
        self.source: Optional[SourceAdapter] = None
        self.fetch_categories = True
        self.fetch_labels = True
        self.fetch_articles = True
        self.logger = SyncLogger()

    async def initialize(
        self,
        config: KbSyncConfig,
        adapters: AdapterPair,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        await super().initialize(config, adapters, context, logger)
        self.source = adapters.source_adapter
        self.fetch_categories = config.source.fetch_categories
        self.fetch_labels = config.source.fetch_labels
        self.fetch_articles = config.source.fetch_articles

    async def category_iterator(self) -> AsyncIterator[Category]:
        if not self.fetch_categories:
            return
        async for category in self._map(self.source.category_iterator(), self.to_category):
            yield category

    async def label_iterator(self) -> AsyncIterator[Label]:
        if not self.fetch_labels:
            return
        async for label in self._map(self.source.label_iterator(), self.to_label):
            yield label

    async def document_iterator(self) -> AsyncIterator[Document]:
        if not self.fetch_articles:
            return
        async for document in self._map(self.source.article_iterator(), self.to_document):
            yield document

    async def _map(
        self,
        records: AsyncIterator[dict[str, Any]],
        mapper: Callable[[dict[str, Any]], T],
    ) -> AsyncIterator[T]:
        async for record in records:
            if not isinstance(record, dict) or _as_id(record.get("id")) is None:
                self.logger.warning(f"Skipping record without id: {record!r}")
                continue
            yield mapper(record)

    @staticmethod
    def to_category(record: dict[str, Any]) -> Category:
        parent_id = _as_id(record.get("parent_id"))
        return Category(
            external_id=_as_id(record["id"]),
            external_version_id=_version_marker(record),
            name=record.get("name"),
            parent_category=CategoryReference(id=parent_id, name=record.get("parent_name")) if parent_id else None,
        )

    @staticmethod
    def to_label(record: dict[str, Any]) -> Label:
        return Label(
            external_id=_as_id(record["id"]),
            external_version_id=_version_marker(record),
            name=record.get("name"),
            color=record.get("color") or GeneratedValue.COLOR.value,
        )

    @staticmethod
    def to_document(record: dict[str, Any]) -> Document:
        category_id = _as_id(record.get("category_id"))
        label_ids = [_as_id(i) for i in record.get("label_ids") or []]

        variations = [
            Variation(body=text_to_blocks(v.get("body")), name=v.get("name"), priority=v.get("priority"))
            for v in record.get("variations") or []
        ]
        if not variations:
            variations = [Variation(body=text_to_blocks(record.get("body")))]

        version = DocumentVersion(
            title=record.get("title"),
            visible=record.get("visible", True),
            alternatives=[
                DocumentAlternative(phrase=a) if isinstance(a, str) else DocumentAlternative(**a)
                for a in record.get("alternatives") or []
            ]
            or None,
            category=CategoryReference(id=category_id) if category_id else None,
            labels=[LabelReference(id=i) for i in label_ids if i] or None,
            variations=variations,
        )

        is_draft = str(record.get("status", "published")).lower() == "draft"
        return Document(
            external_id=_as_id(record["id"]),
            external_id_alternatives=[str(i) for i in record.get("alternative_ids") or []] or None,
            external_version_id=_version_marker(record),
            external_url=record.get("url"),
            published=None if is_draft else version,
            draft=version if is_draft else None,
        )

# KBSync File Source Adapter
# Serve a YAML or JSON export file page by page

from __future__ import annotations

import copy
import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml

from kbsync.adapters.base import SourceAdapter
from kbsync.errors import ApiError, validate_non_null
from kbsync.logger import SyncLogger
from kbsync.utils.pager import Pager
from kbsync.utils.runtime import Runtime

if TYPE_CHECKING:
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import PipeContext

RECORD_TYPES = ("categories", "labels", "articles")


class FileSourceAdapter(SourceAdapter):
    """
    Source reading ``categories``, ``labels`` and ``articles`` from one file.

    Records are handed out in pages of ``source.page_size``. The offset of
    the next page is kept in ``context.adapter.cursors`` and the undelivered
    rest of the current page in ``context.adapter.unprocessed_items``, so an
    interrupted run continues exactly where it stopped.
    """

    def __init__(self):
        self.path: Optional[Path] = None
        self.page_size = 50
        self.runtime: Optional[Runtime] = None
        self.context: Optional[PipeContext] = None
        self._records: Optional[dict[str, list[dict[str, Any]]]] = None
        self.logger = SyncLogger()

    async def initialize(
        self,
        config: KbSyncConfig,
        runtime: Runtime,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        validate_non_null(config.source.path, "Missing source path")

        self.path = Path(config.source.path)
        self.page_size = config.source.page_size
        self.runtime = runtime
        self.context = context
        self.logger = logger or self.logger
        self._records = None

        if not self.path.exists():
            raise ApiError(f"Source file not found: {self.path}", path=str(self.path))

    def category_iterator(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterator("categories")

    def label_iterator(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterator("labels")

    def article_iterator(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterator("articles")

    async def construct_document_link(self, external_id: str) -> Optional[str]:
        return f"{self.path}#{external_id}" if self.path else None

    def _iterator(self, record_type: str) -> AsyncIterator[dict[str, Any]]:
        pager: Pager[dict[str, Any]] = Pager(
            self.context.adapter.buffer(record_type),
            lambda: self._next_page(record_type),
            self.logger,
        )
        return pager.fetch()

    async def _next_page(self, record_type: str) -> Optional[list[dict[str, Any]]]:
        self.runtime.check()

        records = self._load()[record_type]
        cursors = self.context.adapter.cursors
        start = cursors.get(record_type, 0)
        if start >= len(records):
            return None

        page = records[start : start + self.page_size]
        cursors[record_type] = start + len(page)
        self.logger.debug(f"Read {record_type} {start}-{start + len(page)} of {len(records)}")
        return copy.deepcopy(page)

    def _load(self) -> dict[str, list[dict[str, Any]]]:
        if self._records is not None:
            return self._records

        try:
            with open(self.path, encoding="utf-8") as f:
                if self.path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ApiError(f"Cannot read source file {self.path}: {e}", path=str(self.path)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ApiError(f"Source file {self.path} must contain a mapping", path=str(self.path))

        self._records = {name: list(data.get(name) or []) for name in RECORD_TYPES}
        return self._records

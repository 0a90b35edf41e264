# KBSync Obsolete Document Remover
# Bulk delete documents which were removed from the source

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from kbsync.errors import validate_non_null
from kbsync.logger import SyncLogger
from kbsync.model import SyncableContents
from kbsync.pipe.task import Uploader

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair, DestinationAdapter
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import FailedItems, PipeContext


class ObsoleteDocumentRemover(Uploader):
    """
    Deletes the documents of the diff through the destination's bulk delete.

    Runs after DiffUploader, which has already restricted the deleted
    documents to the running source and left them out of its payload.
    """

    def __init__(self):
        self.destination: Optional[DestinationAdapter] = None
        self.external_id_prefix: Optional[str] = None

    async def initialize(
        self,
        config: KbSyncConfig,
        adapters: AdapterPair,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        await super().initialize(config, adapters, context, logger)
        self.destination = adapters.destination_adapter
        self.external_id_prefix = config.sync.external_id_prefix or None

    async def run(self, contents: SyncableContents, failed_items: FailedItems) -> None:
        validate_non_null(self.destination, "Missing destination adapter")

        to_delete = contents.documents.deleted
        if self.external_id_prefix:
            to_delete = [
                item for item in to_delete if item.external_id and item.external_id.startswith(self.external_id_prefix)
            ]

        self.logger.info(f"Documents to remove: {len(to_delete)}")
        if not to_delete:
            return

        responses = await self.destination.delete_articles(to_delete)
        error_count = sum(response.error_count for response in responses)

        self.logger.info(f"Documents removed: {len(to_delete) - error_count}")
        if error_count:
            failed = [
                str(result.get("id"))
                for response in responses
                for result in response.results
                if not result.get("success")
            ]
            self.logger.warning(f"Errors: {error_count} documents could not be removed: {', '.join(failed)}")

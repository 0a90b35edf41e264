# KBSync Diff Uploader
# Build the sync payload from the diff and upload it to the destination

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from kbsync.aggregator.diff import filter_same_source, verify_not_to_delete_everything
from kbsync.errors import validate_non_null
from kbsync.logger import SyncLogger
from kbsync.model import DeleteAction, EntityType, ExternalContent, ImportAction, SyncableContents, SyncModel
from kbsync.pipe.task import Uploader
from kbsync.utils.generated import resolve_generated_values
from kbsync.utils.source_matcher import remove_external_id_prefix

if TYPE_CHECKING:
    from kbsync.adapters.base import AdapterPair, DestinationAdapter, SourceAdapter
    from kbsync.config.schema import KbSyncConfig
    from kbsync.pipe.context import FailedItems, PipeContext


class DiffUploader(Uploader):
    """
    Uploads new, changed and deleted entities in one sync payload.

    Before building the payload the deleted sets are restricted to entities
    of the running source and checked by the prune-all guard.
    """

    def __init__(self):
        self.knowledge_base_id: Optional[str] = None
        self.destination: Optional[DestinationAdapter] = None
        self.source: Optional[SourceAdapter] = None
        self.context: Optional[PipeContext] = None
        self.external_id_prefix: Optional[str] = None
        self.source_id: Optional[str] = None
        self.allow_prune_all_entities = False
        self.bulk_delete_documents = False

    async def initialize(
        self,
        config: KbSyncConfig,
        adapters: AdapterPair,
        context: PipeContext,
        logger: Optional[SyncLogger] = None,
    ) -> None:
        await super().initialize(config, adapters, context, logger)
        self.knowledge_base_id = config.destination.knowledge_base_id
        self.destination = adapters.destination_adapter
        self.source = adapters.source_adapter
        self.context = context
        self.external_id_prefix = config.sync.external_id_prefix or None
        self.source_id = config.sync.source_id or None
        self.allow_prune_all_entities = config.sync.allow_prune_all_entities
        self.bulk_delete_documents = config.sync.bulk_delete_documents

    async def run(self, contents: SyncableContents, failed_items: FailedItems) -> None:
        """
        Upload the diff.

        Args:
            contents: Accumulated diff of the run.
            failed_items: Entities that failed processing, reported with their errors.

        Raises:
            ValidationError: If knowledge base or destination are missing.
            ConfigurerError: If the run would delete every entity of the source.
        """
        validate_non_null(self.knowledge_base_id, "Missing knowledge base id")
        validate_non_null(self.destination, "Missing destination adapter")

        for entity_type in EntityType:
            content = contents.of(entity_type)
            content.deleted = filter_same_source(content.deleted, self.source_id, self.external_id_prefix)

        try:
            await self._log_deleted_documents(contents)
        except Exception as e:
            self.logger.error(f"Error verifying document deletion - {e}")

        stored = self.context.stored if self.context else ExternalContent()
        for entity_type in EntityType:
            verify_not_to_delete_everything(
                contents.of(entity_type),
                stored.of(entity_type),
                self.source_id,
                self.external_id_prefix,
                self.allow_prune_all_entities,
                self.logger,
            )

        data = self.construct_sync_model(contents, failed_items)

        processed = self.context.pipe.processed_items if self.context else ExternalContent()
        self.log_statistics(contents, processed)

        if self.should_upload(data):
            await self.upload(data)
        else:
            self.logger.info("There is no change to upload.")

    def construct_sync_model(self, contents: SyncableContents, failed_items: FailedItems) -> SyncModel:
        """Assemble the payload. Items without a destination id cannot be deleted."""
        import_action = ImportAction(knowledge_base_id=self.knowledge_base_id, source_id=self.source_id)
        delete_action = DeleteAction()

        for entity_type in EntityType:
            content = contents.of(entity_type)
            to_import = [resolve_generated_values(item.to_dict()) for item in [*content.created, *content.updated]]
            to_import.extend(failed.to_dict() for failed in failed_items.of(entity_type))

            setattr(import_action, entity_type.plural, to_import)
            if entity_type == EntityType.DOCUMENT and self.bulk_delete_documents:
                # removed in batches by ObsoleteDocumentRemover
                continue
            setattr(delete_action, entity_type.plural, [item.id for item in content.deleted if item.id is not None])

        return SyncModel(import_action=import_action, delete_action=delete_action)

    def log_statistics(self, contents: SyncableContents, processed: ExternalContent) -> None:
        for entity_type in EntityType:
            content = contents.of(entity_type)
            total = len(processed.of(entity_type))
            name = entity_type.plural.capitalize()
            self.logger.info(f"{name} to create: {len(content.created)} out of: {total}")
            self.logger.info(f"{name} to update: {len(content.updated)} out of: {total}")
            self.logger.info(f"{name} to delete: {len(content.deleted)} out of: {total}")

    def should_upload(self, data: SyncModel) -> bool:
        return not data.is_empty

    async def upload(self, data: SyncModel) -> None:
        self.logger.info("Uploading data...")

        response = await self.destination.sync_data(data)

        self.logger.success("Upload finished")
        self.logger.info(f"Sync job id: {response.id}")
        self.logger.info(f"Sync job status: {response.status}")
        if response.failed_entities:
            self.logger.warning(f"Errors during import: {len(response.failed_entities)} entities failed")

    async def _log_deleted_documents(self, contents: SyncableContents) -> None:
        deleted = contents.documents.deleted
        if not deleted or self.source is None:
            return

        self.logger.info(f"Verify {len(deleted)} documents before deleting")
        if not self.logger.verbose:
            return

        for document in deleted:
            if not document.external_id:
                continue
            link = await self.source.construct_document_link(
                remove_external_id_prefix(document.external_id, self.external_id_prefix)
            )
            self.logger.debug(f"Deleting document {document.external_id}{f' ({link})' if link else ''}")

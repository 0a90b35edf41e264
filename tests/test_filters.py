# KBSync Filter Tests
# Tests for the modification date and duplicate filters

import pytest

from kbsync.adapters.base import AdapterPair
from kbsync.config.schema import KbSyncConfig
from kbsync.filter import DuplicateFilter, ModificationDateFilter
from kbsync.model import Category, Document, ExternalContent, Label
from kbsync.pipe.context import PipeContext


async def initialized(task, context, logger, **sync):
    config = KbSyncConfig.model_validate({"sync": sync})
    await task.initialize(config, AdapterPair(), context, logger)
    return task


def stored_context(*documents):
    return PipeContext.create(ExternalContent(documents=list(documents)))


class TestModificationDateFilter:
    """Tests for ModificationDateFilter."""

    @pytest.mark.asyncio
    async def test_unchanged_version_is_dropped(self, logger):
        context = stored_context(Document(id="x", external_id="d1", external_version_id="v1"))
        task = await initialized(ModificationDateFilter(), context, logger)

        keep = await task.run_on_document(Document(external_id="d1", external_version_id="v1"))

        assert keep is False
        assert context.syncable_contents.documents.deleted == []

    @pytest.mark.asyncio
    async def test_changed_version_passes(self, logger):
        context = stored_context(Document(external_id="d1", external_version_id="v1"))
        task = await initialized(ModificationDateFilter(), context, logger)

        keep = await task.run_on_document(Document(external_id="d1", external_version_id="v2"))

        assert keep is True
        assert len(context.syncable_contents.documents.deleted) == 1

    @pytest.mark.asyncio
    async def test_new_document_passes(self, logger):
        task = await initialized(ModificationDateFilter(), stored_context(), logger)

        assert await task.run_on_document(Document(external_id="d1", external_version_id="v1")) is True

    @pytest.mark.asyncio
    async def test_missing_version_passes(self, logger):
        context = stored_context(Document(external_id="d1", external_version_id=None))
        task = await initialized(ModificationDateFilter(), context, logger)

        assert await task.run_on_document(Document(external_id="d1")) is True

    @pytest.mark.asyncio
    async def test_stored_lookup_uses_prefix(self, logger):
        """Test that the filter runs before the prefix is applied."""
        context = stored_context(Document(external_id="zd-d1", external_version_id="v1"))
        task = await initialized(ModificationDateFilter(), context, logger, external_id_prefix="zd-")

        assert await task.run_on_document(Document(external_id="d1", external_version_id="v1")) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("compare_mode", ["CONTENT", "NONE"])
    async def test_inactive_in_other_modes(self, logger, compare_mode):
        context = stored_context(Document(external_id="d1", external_version_id="v1"))
        task = await initialized(ModificationDateFilter(), context, logger, compare_mode=compare_mode)

        assert await task.run_on_document(Document(external_id="d1", external_version_id="v1")) is True

    @pytest.mark.asyncio
    async def test_categories_and_labels_pass(self, logger):
        task = await initialized(ModificationDateFilter(), stored_context(), logger)

        assert await task.run_on_category(Category(external_id="c1")) is True
        assert await task.run_on_label(Label(external_id="l1")) is True


class TestDuplicateFilter:
    """Tests for DuplicateFilter."""

    @pytest.mark.asyncio
    async def test_first_occurrence_passes(self, logger):
        task = await initialized(DuplicateFilter(), PipeContext(), logger)

        assert await task.run_on_document(Document(external_id="d1")) is True

    @pytest.mark.asyncio
    async def test_processed_duplicate_dropped(self, logger):
        context = PipeContext()
        context.pipe.processed_items.documents.append(Document(external_id="zd-d1", external_url="https://x/1"))
        task = await initialized(DuplicateFilter(), context, logger, external_id_prefix="zd-")

        keep = await task.run_on_document(Document(external_id="d1", external_url="https://x/2"))

        assert keep is False
        assert "Duplicate document" in logger.console.file.getvalue()

    @pytest.mark.asyncio
    async def test_pending_duplicate_dropped(self, logger):
        context = PipeContext()
        context.pipe.unprocessed_items.documents.append(Document(external_id="d1"))
        task = await initialized(DuplicateFilter(), context, logger)

        assert await task.run_on_document(Document(external_id="d1")) is False

# KBSync Checkpoint Tests
# Tests for context serialization and the checkpoint file repository

import json

import pytest

from kbsync.model import (
    Category,
    CategoryReference,
    Document,
    DocumentAlternative,
    DocumentVersion,
    ErrorBody,
    ExternalContent,
    ExternalLink,
    FailedEntity,
    Label,
    LabelReference,
    Variation,
)
from kbsync.pipe import ContextFileRepository, PipeContext


@pytest.fixture
def populated_context() -> PipeContext:
    """Context in the middle of a run."""
    stored = ExternalContent(
        categories=[Category(id="uuid-c1", external_id="c1", name="Billing", source_id="s1")],
        documents=[
            Document(
                id="uuid-d9",
                external_id="d9",
                published=DocumentVersion(
                    title="Old",
                    category=CategoryReference(id="uuid-c1", name="Billing"),
                    labels=[LabelReference(id="uuid-l1", name="Urgent")],
                    alternatives=[DocumentAlternative(phrase="old", autocomplete=True)],
                    variations=[Variation(body={"blocks": [{"type": "paragraph", "text": "x"}]})],
                ),
            )
        ],
    )
    context = PipeContext.create(stored)
    context.pipe.processed_items.categories.append(Category(external_id="c2", name="Invoices"))
    context.pipe.unprocessed_items.labels.append(Label(external_id="l3", name="Pending", color="#00ff00"))
    context.pipe.failed_items.documents.append(
        FailedEntity(
            entity=Document(external_id="d2", draft=DocumentVersion(title="Broken")),
            errors=[
                ErrorBody(
                    code="not.found",
                    message_with_params="Referred entity not found",
                    entity_name="label",
                    message_params={"entity_type": "label", "entity_id": "l9"},
                )
            ],
        )
    )
    context.syncable_contents.categories.created.append(Category(external_id="c2", name="Invoices"))
    context.adapter.buffer("articles").append({"id": "a7", "title": "Raw"})
    context.adapter.cursors["articles"] = 10
    context.category_lookup_table["c2"] = CategoryReference(name="Invoices")
    context.label_lookup_table["l1"] = LabelReference(id="uuid-l1", name="Urgent")
    context.article_lookup_table["d2"] = ExternalLink(external_document_id="d2", title="Broken")
    return context


class TestPipeContext:
    """Tests for PipeContext."""

    def test_create_seeds_deleted_with_snapshot(self):
        stored = ExternalContent(labels=[Label(external_id="l1")], documents=[Document(external_id="d1")])

        context = PipeContext.create(stored)

        assert context.syncable_contents.labels.deleted == stored.labels
        assert context.syncable_contents.documents.deleted == stored.documents
        assert context.syncable_contents.categories.deleted == []

    def test_round_trip_through_json(self, populated_context):
        data = json.loads(json.dumps(populated_context.to_dict()))

        assert PipeContext.from_dict(data) == populated_context

    def test_stored_defaults_to_empty(self):
        assert PipeContext().stored == ExternalContent()


class TestContextFileRepository:
    """Tests for ContextFileRepository."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, checkpoint_file, logger, populated_context):
        repository = ContextFileRepository(checkpoint_file, logger)

        await repository.save(populated_context)

        assert await repository.exists()
        assert await repository.load() == populated_context

    @pytest.mark.asyncio
    async def test_load_missing(self, checkpoint_file, logger):
        repository = ContextFileRepository(checkpoint_file, logger)

        assert not await repository.exists()
        assert await repository.load() is None

    @pytest.mark.asyncio
    async def test_corrupt_checkpoint_is_ignored(self, checkpoint_file, logger):
        checkpoint_file.write_text('{"pipe": ', encoding="utf-8")
        repository = ContextFileRepository(checkpoint_file, logger)

        assert await repository.load() is None
        assert "Ignoring unreadable checkpoint" in logger.console.file.getvalue()

    @pytest.mark.asyncio
    async def test_incomplete_checkpoint_is_ignored(self, checkpoint_file, logger):
        checkpoint_file.write_text('{"adapter": {}}', encoding="utf-8")

        assert await ContextFileRepository(checkpoint_file, logger).load() is None

    @pytest.mark.asyncio
    async def test_clear(self, checkpoint_file, logger, populated_context):
        repository = ContextFileRepository(checkpoint_file, logger)
        await repository.save(populated_context)

        await repository.clear()
        await repository.clear()

        assert not checkpoint_file.exists()

# KBSync Worker Tests
# Tests for the two-pass execution and item bookkeeping

import pytest

from kbsync.errors import ConfigurerError, Interrupted, MissingReferenceError, TransformationError
from kbsync.model import Category, EntityType
from kbsync.pipe.task import Aggregator, Processor
from kbsync.pipe.worker import Worker
from kbsync.utils.runtime import Runtime


async def iterate(items):
    for item in items:
        yield item


def categories(*ids):
    return [Category(external_id=i, name=f"Category {i}") for i in ids]


class FakeProcessor(Processor):
    """Appends a marker to the name; ``behaviour`` may raise per external id."""

    def __init__(self, behaviour=None):
        self.behaviour = behaviour or {}
        self.calls = []

    async def run_on_category(self, item, first_try=True):
        self.calls.append((item.external_id, first_try))
        item.name = f"{item.name}*"
        action = self.behaviour.get(item.external_id)
        if action:
            action(item, first_try)
        return item

    async def run_on_label(self, item, first_try=True):
        return item

    async def run_on_document(self, item, first_try=True):
        return item


class CollectingAggregator(Aggregator):
    def __init__(self):
        self.seen = []

    async def run_on_category(self, item, first_try=True):
        self.seen.append(item.external_id)
        return "ignored"

    async def run_on_label(self, item, first_try=True):
        return None

    async def run_on_document(self, item, first_try=True):
        return None


def make_worker(runtime, logger, *iterators, processors=(), aggregators=()):
    processed, unprocessed, failed = [], [], []
    worker = Worker(
        EntityType.CATEGORY,
        iterators=lambda: [iterate(items) for items in iterators],
        processors=processors,
        aggregators=aggregators,
        processed_items=processed,
        unprocessed_items=unprocessed,
        failed_items=failed,
        runtime=runtime,
        logger=logger,
    )
    return worker, processed, unprocessed, failed


def raise_error(error):
    def action(item, first_try):
        raise error

    return action


def fail_first_try(item, first_try):
    if first_try:
        raise MissingReferenceError("category", "parent")


class TestFirstPass:
    """Tests for the first pass."""

    @pytest.mark.asyncio
    async def test_all_items_processed_in_order(self, logger):
        aggregator = CollectingAggregator()
        worker, processed, unprocessed, failed = make_worker(
            Runtime(logger), logger, categories("1", "2", "3"), processors=[FakeProcessor()], aggregators=[aggregator]
        )

        await worker.execute()

        assert [c.external_id for c in processed] == ["1", "2", "3"]
        assert aggregator.seen == ["1", "2", "3"]
        assert unprocessed == []
        assert failed == []

    @pytest.mark.asyncio
    async def test_processors_work_on_copies(self, logger):
        """Test that the loaded item is never mutated."""
        items = categories("1")
        worker, processed, _, _ = make_worker(Runtime(logger), logger, items, processors=[FakeProcessor()])

        await worker.execute()

        assert items[0].name == "Category 1"
        assert processed[0].name == "Category 1*"

    @pytest.mark.asyncio
    async def test_aggregator_result_is_ignored(self, logger):
        worker, processed, _, _ = make_worker(
            Runtime(logger), logger, categories("1"), aggregators=[CollectingAggregator()]
        )

        await worker.execute()

        assert isinstance(processed[0], Category)

    @pytest.mark.asyncio
    async def test_iterators_drained_in_order(self, logger):
        worker, processed, _, _ = make_worker(Runtime(logger), logger, categories("a1", "a2"), categories("b1"))

        await worker.execute()

        assert [c.external_id for c in processed] == ["a1", "a2", "b1"]

    @pytest.mark.asyncio
    async def test_other_error_fails_without_retry(self, logger):
        processor = FakeProcessor({"2": raise_error(ValueError("broken body"))})
        worker, processed, unprocessed, failed = make_worker(
            Runtime(logger), logger, categories("1", "2", "3"), processors=[processor]
        )

        await worker.execute()

        assert [c.external_id for c in processed] == ["1", "3"]
        assert len(failed) == 1
        assert failed[0].entity.external_id == "2"
        assert failed[0].entity.name == "Category 2"
        assert failed[0].errors[0].code == "internal.server.error"
        assert failed[0].errors[0].message_with_params == "broken body"
        assert ("2", False) not in processor.calls


class TestSecondPass:
    """Tests for the retry of deferred items."""

    @pytest.mark.asyncio
    async def test_deferred_item_succeeds_on_retry(self, logger):
        processor = FakeProcessor({"1": fail_first_try})
        worker, processed, unprocessed, failed = make_worker(
            Runtime(logger), logger, categories("1", "2"), processors=[processor]
        )

        await worker.execute()

        assert [c.external_id for c in processed] == ["2", "1"]
        assert processed[1].name == "Category 1*"
        assert processor.calls == [("1", True), ("2", True), ("1", False)]
        assert unprocessed == []
        assert failed == []

    @pytest.mark.asyncio
    async def test_retry_happens_exactly_once(self, logger):
        processor = FakeProcessor({"1": raise_error(MissingReferenceError("category", "parent"))})
        worker, processed, unprocessed, failed = make_worker(
            Runtime(logger), logger, categories("1"), processors=[processor]
        )

        await worker.execute()

        assert processor.calls == [("1", True), ("1", False)]
        assert processed == []
        assert unprocessed == []
        assert failed[0].errors[0].code == "not.found"
        assert failed[0].errors[0].message_params == {"entity_type": "category", "entity_id": "parent"}

    @pytest.mark.asyncio
    async def test_deferred_items_retried_latest_first(self, logger):
        """Test that deferred items are pushed to the front of the queue."""
        processor = FakeProcessor({"1": fail_first_try, "2": fail_first_try})
        worker, processed, _, _ = make_worker(Runtime(logger), logger, categories("1", "2"), processors=[processor])

        await worker.execute()

        assert [c.external_id for c in processed] == ["2", "1"]

    @pytest.mark.asyncio
    async def test_pending_items_from_checkpoint_are_retried(self, logger):
        processed, unprocessed, failed = [], categories("old"), []
        worker = Worker(
            EntityType.CATEGORY,
            iterators=lambda: [iterate(categories("new"))],
            processors=[],
            aggregators=[],
            processed_items=processed,
            unprocessed_items=unprocessed,
            failed_items=failed,
            runtime=Runtime(logger),
            logger=logger,
        )

        await worker.execute()

        assert [c.external_id for c in processed] == ["new", "old"]


class TestInterruption:
    """Tests for interruption in both passes."""

    @pytest.mark.asyncio
    async def test_interrupt_requeues_item_in_flight(self, logger):
        runtime = Runtime(logger)

        def interrupt(item, first_try):
            runtime.interrupt()

        worker, processed, unprocessed, failed = make_worker(
            runtime, logger, categories("1", "2", "3"), processors=[FakeProcessor({"1": interrupt})]
        )

        with pytest.raises(Interrupted):
            await worker.execute()

        assert [c.external_id for c in processed] == ["1"]
        assert [c.external_id for c in unprocessed] == ["2"]
        assert unprocessed[0].name == "Category 2"
        assert failed == []

    @pytest.mark.asyncio
    async def test_interrupt_raised_by_processor(self, logger):
        worker, processed, unprocessed, _ = make_worker(
            Runtime(logger), logger, categories("1", "2"), processors=[FakeProcessor({"2": raise_error(Interrupted())})]
        )

        with pytest.raises(Interrupted):
            await worker.execute()

        assert [c.external_id for c in processed] == ["1"]
        assert [c.external_id for c in unprocessed] == ["2"]
        assert unprocessed[0].name == "Category 2"

    @pytest.mark.asyncio
    async def test_interrupt_in_second_pass_keeps_order(self, logger):
        runtime = Runtime(logger)

        def defer_then_interrupt(item, first_try):
            if first_try:
                raise TransformationError()
            runtime.interrupt()
            raise Interrupted()

        processor = FakeProcessor({"1": defer_then_interrupt, "2": fail_first_try})
        worker, processed, unprocessed, failed = make_worker(
            runtime, logger, categories("2", "1"), processors=[processor]
        )

        with pytest.raises(Interrupted):
            await worker.execute()

        # queue after first pass: [1, 2]; 1 is interrupted and put back in front
        assert [c.external_id for c in unprocessed] == ["1", "2"]
        assert processed == []
        assert failed == []

    @pytest.mark.asyncio
    async def test_partition_is_complete_after_resume(self, logger):
        """Test that no item is lost or duplicated across an interruption."""
        runtime = Runtime(logger)
        items = categories("1", "2", "3", "4", "5")
        remaining = list(items)

        async def source():
            while remaining:
                yield remaining.pop(0)

        def interrupt(item, first_try):
            runtime.interrupt()

        processed, unprocessed, failed = [], [], []

        def build(processors):
            return Worker(
                EntityType.CATEGORY,
                iterators=lambda: [source()],
                processors=processors,
                aggregators=[],
                processed_items=processed,
                unprocessed_items=unprocessed,
                failed_items=failed,
                runtime=runtime,
                logger=logger,
            )

        processors = [FakeProcessor({"2": interrupt, "4": raise_error(ValueError("bad"))})]
        with pytest.raises(Interrupted):
            await build(processors).execute()

        runtime.reset()
        await build([FakeProcessor({"4": raise_error(ValueError("bad"))})]).execute()

        ids = [c.external_id for c in processed] + [f.entity.external_id for f in failed]
        assert sorted(ids) == ["1", "2", "3", "4", "5"]
        assert len(ids) == len(items)
        assert unprocessed == []


class TestFatalErrors:
    """Tests for run level errors."""

    @pytest.mark.asyncio
    async def test_configurer_error_propagates(self, logger):
        processor = FakeProcessor({"1": raise_error(ConfigurerError("name conflict"))})
        worker, processed, unprocessed, failed = make_worker(
            Runtime(logger), logger, categories("1"), processors=[processor]
        )

        with pytest.raises(ConfigurerError):
            await worker.execute()

        assert failed == []

# KBSync Worker
# Two-pass execution of one entity type through processors and aggregators

import copy
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Optional

from kbsync.errors import FATAL_ERRORS, Interrupted, TransformationError, error_body_from
from kbsync.logger import SyncLogger
from kbsync.model import EntityType, ExternalIdentifiable, FailedEntity
from kbsync.pipe.task import Aggregator, Processor, Runnable
from kbsync.utils.runtime import Runtime

IteratorFactory = Callable[[], Sequence[AsyncIterator[ExternalIdentifiable]]]


class Worker:
    """
    Streams the items of one entity type through the pipe.

    First pass: items are pulled from the iterators (each drained before the
    next starts), processed, aggregated and collected. Items failing with a
    TransformationError are deferred to the front of ``unprocessed_items``.

    Second pass: deferred items get exactly one more attempt, after which any
    error is terminal.

    Every item ends in exactly one of ``processed_items``, ``failed_items``
    or, only while a resumption is pending, ``unprocessed_items``.
    """

    def __init__(
        self,
        entity_type: EntityType,
        *,
        iterators: IteratorFactory,
        processors: Sequence[Processor],
        aggregators: Sequence[Aggregator],
        processed_items: list,
        unprocessed_items: list,
        failed_items: list,
        runtime: Runtime,
        logger: Optional[SyncLogger] = None,
    ):
        """
        Initialize worker.

        Args:
            entity_type: Entity type handled by this worker.
            iterators: Factory returning one iterator per loader.
            processors: Processors in execution order.
            aggregators: Aggregators, run after the processors.
            processed_items: Target list for successfully processed items.
            unprocessed_items: Deferred items, shared with the checkpoint.
            failed_items: Target list for failed entities.
            runtime: Cancellation token of the run.
            logger: Optional logger.
        """
        self.entity_type = entity_type
        self.iterators = iterators
        self.processors = list(processors)
        self.aggregators = list(aggregators)
        self.processed_items = processed_items
        self.unprocessed_items = unprocessed_items
        self.failed_items = failed_items
        self.runtime = runtime
        self.logger = logger or SyncLogger()

    async def execute(self) -> None:
        """
        Run both passes.

        Raises:
            Interrupted: If the run is interrupted. The item in flight is
                put back to the front of ``unprocessed_items``.
            ConfigurerError: On a policy violation, the run cannot continue.
            ValidationError: If a required value is missing.
        """
        async for item in self._consume_iterators():
            self.logger.debug(f"Worker load next {self.entity_type.value} with external id: {item.external_id}")
            try:
                await self._process(item, first_try=True)
            except Interrupted:
                self.unprocessed_items.insert(0, item)
                raise
            except FATAL_ERRORS:
                raise
            except TransformationError as e:
                self.logger.warning(f"Postponing {self.entity_type.value} {item.external_id}: {e}")
                self.unprocessed_items.insert(0, item)
            except Exception as e:
                self._fail(item, e)

        self.logger.debug(f"Processing {len(self.unprocessed_items)} postponed {self.entity_type.plural}")
        while self.unprocessed_items:
            item = self.unprocessed_items.pop(0)
            try:
                await self._process(item, first_try=False)
            except Interrupted:
                self.unprocessed_items.insert(0, item)
                raise
            except FATAL_ERRORS:
                raise
            except Exception as e:
                self._fail(item, e)

    async def _consume_iterators(self) -> AsyncIterator[ExternalIdentifiable]:
        for iterator in self.iterators():
            async for item in iterator:
                yield item

    async def _process(self, item: ExternalIdentifiable, *, first_try: bool) -> None:
        # work on a copy, a processor failing halfway must not taint the retry
        working_item = copy.deepcopy(item)
        self.runtime.check()

        working_item = await self._execute_runnables(working_item, self.processors, first_try)
        await self._execute_runnables(working_item, self.aggregators, first_try, keep_result=False)

        self.processed_items.append(working_item)

    async def _execute_runnables(
        self,
        item: ExternalIdentifiable,
        runnables: Sequence[Runnable],
        first_try: bool,
        *,
        keep_result: bool = True,
    ) -> ExternalIdentifiable:
        for runnable in runnables:
            result = await runnable.run_on(self.entity_type, item, first_try=first_try)
            if keep_result and result is not None:
                item = result
        return item

    def _fail(self, item: ExternalIdentifiable, error: Exception) -> None:
        self.logger.warning(f"Error processing {self.entity_type.value} {item.external_id}: {error}")
        self.failed_items.append(FailedEntity(entity=item, errors=[error_body_from(error)]))

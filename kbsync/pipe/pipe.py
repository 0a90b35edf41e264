# KBSync Pipe
# Orchestrates one sync run: initialize, process every entity type, upload

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from kbsync.adapters.base import AdapterPair, DestinationAdapter, SourceAdapter
from kbsync.errors import Interrupted, validate_non_null
from kbsync.logger import SyncLogger
from kbsync.model import EntityType, ExternalIdentifiable
from kbsync.pipe.checkpoint import ContextRepository
from kbsync.pipe.context import PipeContext
from kbsync.pipe.task import Aggregator, Filter, Loader, Processor, Task, Uploader
from kbsync.pipe.worker import Worker
from kbsync.utils.runtime import HookEvent, HookFunction, Runtime

if TYPE_CHECKING:
    from kbsync.config.schema import KbSyncConfig


@dataclass
class EntityStats:
    """Outcome of one entity type."""

    processed: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    failed: int = 0


@dataclass
class SyncResult:
    """Result of a complete sync run."""

    success: bool
    interrupted: bool = False
    resumed: bool = False
    stats: dict[str, EntityStats] = field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        """Check if any entity failed."""
        return any(s.failed for s in self.stats.values())


class Pipe:
    """
    Wires adapters and tasks together and drives a sync run.

    The run is ``initialize -> categories -> labels -> documents -> upload``.
    When a checkpoint repository is set, an interrupted run saves its context
    and the next run resumes from it; a clean run discards it.

    Example::

        result = await (
            Pipe()
            .source(FileSourceAdapter())
            .destination(FileDestinationAdapter())
            .loaders(FileLoader())
            .processors(PrefixExternalId())
            .aggregator(DiffAggregator())
            .uploaders(DiffUploader())
            .start(config)
        )
    """

    def __init__(self, runtime: Optional[Runtime] = None, logger: Optional[SyncLogger] = None):
        """
        Initialize pipe.

        Args:
            runtime: Cancellation token of the run. Creates one if not provided.
            logger: Optional logger shared with tasks and adapters.
        """
        self.logger = logger or SyncLogger()
        self.runtime = runtime or Runtime(self.logger)
        self.context: Optional[PipeContext] = None
        self._adapters = AdapterPair()
        self._loaders: list[Loader] = []
        self._filters: list[Filter] = []
        self._processors: list[Processor] = []
        self._aggregators: list[Aggregator] = []
        self._uploaders: list[Uploader] = []
        self._context_repository: Optional[ContextRepository] = None

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def source(self, adapter: SourceAdapter) -> Pipe:
        self._adapters.source_adapter = adapter
        return self

    def destination(self, adapter: DestinationAdapter) -> Pipe:
        self._adapters.destination_adapter = adapter
        return self

    def loaders(self, *loaders: Loader) -> Pipe:
        self._loaders.extend(loaders)
        return self

    def filters(self, *filters: Filter) -> Pipe:
        self._filters.extend(filters)
        return self

    def processors(self, *processors: Processor) -> Pipe:
        self._processors.extend(processors)
        return self

    def aggregator(self, aggregator: Aggregator) -> Pipe:
        self._aggregators = [aggregator]
        return self

    def uploaders(self, *uploaders: Uploader) -> Pipe:
        self._uploaders.extend(uploaders)
        return self

    def context_repository(self, repository: Optional[ContextRepository]) -> Pipe:
        self._context_repository = repository
        return self

    def configurer(self, configurer: Callable[[Pipe], None]) -> Pipe:
        """Let a configurer function wire adapters and tasks."""
        configurer(self)
        return self

    def hooks(self, event: HookEvent, *callbacks: HookFunction) -> Pipe:
        for callback in callbacks:
            self.runtime.register_hook(event, callback)
        return self

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def start(self, config: KbSyncConfig) -> SyncResult:
        """
        Execute the run.

        Args:
            config: Run configuration.

        Returns:
            SyncResult. ``interrupted`` is set when the run was stopped and
            its context checkpointed.

        Raises:
            ValidationError: If adapters are missing.
            ConfigurerError: On a policy violation, e.g. the prune-all guard.
        """
        validate_non_null(self._adapters.source_adapter, "Missing source adapter")
        validate_non_null(self._adapters.destination_adapter, "Missing destination adapter")

        result = SyncResult(success=False)
        kill_after = config.sync.kill_after_long_running_seconds
        if kill_after:
            self.runtime.start_kill_timer(kill_after)

        try:
            result.resumed = await self._initialize(config)

            for entity_type in EntityType:
                await self._process(entity_type)

            # upload must not be killed halfway
            self.runtime.stop_kill_timer()
            await self._upload()
        except Interrupted:
            self.logger.warning("Sync interrupted")
            await self.runtime.trigger_event(HookEvent.ON_TIMEOUT)
            await self._save_context()
            result.interrupted = True
            return result
        except Exception:
            # the next run starts over from a fresh destination export
            if self._context_repository:
                await self._context_repository.clear()
            raise
        finally:
            self.runtime.stop_kill_timer()

        if self._context_repository:
            await self._context_repository.clear()

        result.success = True
        result.stats = self._collect_stats()
        self.logger.success("Sync finished")
        return result

    async def _initialize(self, config: KbSyncConfig) -> bool:
        destination = self._adapters.destination_adapter
        source = self._adapters.source_adapter

        self.logger.info("Initializing destination")
        await destination.initialize(config, self.runtime, self.logger)

        resumed = False
        context = None
        if self._context_repository and await self._context_repository.exists():
            context = await self._context_repository.load()
            if context is not None:
                self.logger.info("Resuming from checkpoint")
                resumed = True

        if context is None:
            self.logger.info("Exporting destination content")
            context = PipeContext.create(await destination.export_all_entities())
        self.context = context

        await source.initialize(config, self.runtime, context, self.logger)
        for task in self._tasks():
            self.logger.debug(f"Initializing {task.name}")
            await task.initialize(config, self._adapters, context, self.logger)

        return resumed

    async def _process(self, entity_type: EntityType) -> None:
        self.runtime.check()
        self.logger.info(f"Processing {entity_type.plural}")

        state = self.context.pipe
        worker = Worker(
            entity_type,
            iterators=lambda: [self._filtered(entity_type, loader.iterator(entity_type)) for loader in self._loaders],
            processors=sorted(self._processors, key=lambda p: p.get_priority(), reverse=True),
            aggregators=self._aggregators,
            processed_items=state.processed_items.of(entity_type),
            unprocessed_items=state.unprocessed_items.of(entity_type),
            failed_items=state.failed_items.of(entity_type),
            runtime=self.runtime,
            logger=self.logger,
        )
        await worker.execute()

        self.logger.info(
            f"Processed {len(state.processed_items.of(entity_type))} {entity_type.plural}, "
            f"{len(state.failed_items.of(entity_type))} failed"
        )

    async def _filtered(
        self,
        entity_type: EntityType,
        items: AsyncIterator[ExternalIdentifiable],
    ) -> AsyncIterator[ExternalIdentifiable]:
        async for item in items:
            accepted = True
            for item_filter in self._filters:
                if not await item_filter.run_on(entity_type, item):
                    accepted = False
                    break
            if accepted:
                yield item

    async def _upload(self) -> None:
        for uploader in self._uploaders:
            self.logger.debug(f"Running {uploader.name}")
            await uploader.run(self.context.syncable_contents, self.context.pipe.failed_items)

    async def _save_context(self) -> None:
        if self._context_repository is None:
            self.logger.warning("No checkpoint repository configured, progress is lost")
            return
        if self.context is None:
            return
        await self._context_repository.save(self.context)

    def _collect_stats(self) -> dict[str, EntityStats]:
        stats: dict[str, EntityStats] = {}
        for entity_type in EntityType:
            content = self.context.syncable_contents.of(entity_type)
            stats[entity_type.plural] = EntityStats(
                processed=len(self.context.pipe.processed_items.of(entity_type)),
                created=len(content.created),
                updated=len(content.updated),
                deleted=len(content.deleted),
                failed=len(self.context.pipe.failed_items.of(entity_type)),
            )
        return stats

    def _tasks(self) -> list[Task]:
        return [*self._loaders, *self._filters, *self._processors, *self._aggregators, *self._uploaders]

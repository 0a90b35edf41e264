# KBSync Configurers
# Wire a pipe for a source type

from collections.abc import Callable
from pathlib import Path
from typing import Optional

from kbsync.adapters import FileDestinationAdapter, FileLoader, FileSourceAdapter
from kbsync.aggregator import DiffAggregator
from kbsync.config.schema import KbSyncConfig
from kbsync.errors import ConfigurerError
from kbsync.filter import DuplicateFilter, ModificationDateFilter
from kbsync.pipe import ContextFileRepository
from kbsync.pipe.pipe import Pipe
from kbsync.processor import NameConflictResolver, PrefixExternalId, ReferenceResolver
from kbsync.uploader import DiffUploader, ObsoleteDocumentRemover

Configurer = Callable[[Pipe], None]


def file_configurer(pipe: Pipe) -> None:
    """Sync from a YAML or JSON export file into a JSON knowledge base store."""
    (
        pipe.source(FileSourceAdapter())
        .destination(FileDestinationAdapter())
        .loaders(FileLoader())
        .filters(ModificationDateFilter(), DuplicateFilter())
        .processors(PrefixExternalId(), ReferenceResolver(), NameConflictResolver())
        .aggregator(DiffAggregator())
        .uploaders(DiffUploader())
    )


CONFIGURERS: dict[str, Configurer] = {
    "file": file_configurer,
}


def load_configurer(config: KbSyncConfig) -> Configurer:
    """
    Get the configurer of the configured source type.

    Raises:
        ConfigurerError: If the source type is unknown.
    """
    source_type = config.source.type
    configurer = CONFIGURERS.get(source_type)
    if configurer is None:
        available = ", ".join(sorted(CONFIGURERS))
        raise ConfigurerError(f"Unknown source type '{source_type}'. Available: {available}")
    if config.destination.type != "file":
        raise ConfigurerError(f"Unknown destination type '{config.destination.type}'. Available: file")
    return configurer


def build_pipe(config: KbSyncConfig, pipe: Optional[Pipe] = None) -> Pipe:
    """Configure a pipe, including the checkpoint repository, from config."""
    pipe = pipe or Pipe()
    pipe.configurer(load_configurer(config))
    if config.sync.bulk_delete_documents:
        pipe.uploaders(ObsoleteDocumentRemover())
    if config.checkpoint.enabled:
        pipe.context_repository(ContextFileRepository(Path(config.checkpoint.path), pipe.logger))
    return pipe

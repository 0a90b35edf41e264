# KBSync Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class CompareMode(str, Enum):
    """How documents are checked for changes."""

    MODIFICATION_DATE = "MODIFICATION_DATE"
    CONTENT = "CONTENT"
    NONE = "NONE"


class SourceConfig(BaseModel):
    """Source system settings."""

    type: str = Field(default="file", description="Source adapter type")
    path: str = Field(default="", description="Path of the source export file")
    page_size: int = Field(default=50, ge=1, description="Records fetched per page")
    fetch_categories: bool = Field(default=True, description="Load categories from the source")
    fetch_labels: bool = Field(default=True, description="Load labels from the source")
    fetch_articles: bool = Field(default=True, description="Load articles from the source")

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser()) if v else v


class DestinationConfig(BaseModel):
    """Destination knowledge base settings."""

    type: str = Field(default="file", description="Destination adapter type")
    path: str = Field(default="", description="Path of the destination store file")
    knowledge_base_id: str = Field(default="default", description="Knowledge base to sync into")

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser()) if v else v


class SyncSettings(BaseModel):
    """Diff and safety settings of the sync engine."""

    protected_fields: str | None = Field(
        default=None,
        description="Comma separated dot-paths kept from the destination, e.g. published.alternatives",
    )
    compare_mode: CompareMode = Field(default=CompareMode.MODIFICATION_DATE, description="Document change detection")
    external_id_prefix: str | None = Field(default=None, description="Prefix added to every external id")
    source_id: str | None = Field(default=None, description="Marks destination entities owned by this source")
    allow_prune_all_entities: bool = Field(
        default=False, description="Allow a run to delete every entity of this source"
    )
    name_conflict_suffix: str | None = Field(default=None, description="Suffix appended to conflicting names")
    bulk_delete_documents: bool = Field(
        default=False, description="Remove obsolete documents through batched bulk deletes"
    )
    kill_after_long_running_seconds: int | None = Field(
        default=None, ge=1, description="Interrupt the run after this many seconds"
    )

    @field_validator("compare_mode", mode="before")
    @classmethod
    def upper_compare_mode(cls, v: object) -> object:
        """Accept compare modes in any case."""
        return v.upper() if isinstance(v, str) else v

    def get_protected_fields(self) -> list[str]:
        """Protected field paths as a list."""
        return [p.strip() for p in (self.protected_fields or "").split(",") if p.strip()]


class CheckpointConfig(BaseModel):
    """Checkpoint settings for resuming interrupted runs."""

    enabled: bool = Field(default=True, description="Persist the context when interrupted")
    path: str = Field(default="context.json", description="Checkpoint file path")

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")


class KbSyncConfig(BaseModel):
    """Root configuration model for kbsync."""

    source: SourceConfig = Field(default_factory=SourceConfig, description="Source settings")
    destination: DestinationConfig = Field(default_factory=DestinationConfig, description="Destination settings")
    sync: SyncSettings = Field(default_factory=SyncSettings, description="Sync engine settings")
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig, description="Checkpoint settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

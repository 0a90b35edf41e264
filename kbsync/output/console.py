# KBSync Console Output
# Rich-based console output for user-friendly display

from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from kbsync.config.schema import KbSyncConfig
from kbsync.logger import SyncLogger
from kbsync.model import EntityType
from kbsync.pipe.context import PipeContext
from kbsync.pipe.pipe import SyncResult


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for sync runs and checkpoints.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(no_color=not colored, highlight=colored)

    @property
    def rich(self) -> RichConsole:
        """Underlying Rich console."""
        return self._console

    def create_logger(self) -> SyncLogger:
        """Logger writing to this console."""
        return SyncLogger(console=self._console, verbose=self.verbose)

    def print_sync_result(self, result: SyncResult) -> None:
        """
        Print sync result summary.

        Args:
            result: Result of the run.
        """
        self._console.print()

        if result.interrupted:
            self._console.print(
                Panel(
                    "[yellow]Sync interrupted[/yellow]\n"
                    "Progress was saved to the checkpoint. Run 'kbsync sync' again to resume.",
                    title="Summary",
                    border_style="yellow",
                )
            )
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Entity")
        table.add_column("Processed", justify="right")
        table.add_column("Created", justify="right", style="green")
        table.add_column("Updated", justify="right", style="yellow")
        table.add_column("Deleted", justify="right", style="red")
        table.add_column("Failed", justify="right")

        for name, stats in result.stats.items():
            failed = f"[red]{stats.failed}[/red]" if stats.failed else "0"
            table.add_row(
                name, str(stats.processed), str(stats.created), str(stats.updated), str(stats.deleted), failed
            )

        self._console.print(table)

        resumed = " (resumed from checkpoint)" if result.resumed else ""
        if result.has_failures:
            self._console.print(
                Panel(
                    f"[yellow]Sync completed with failed entities{resumed}[/yellow]",
                    title="Summary",
                    border_style="yellow",
                )
            )
        else:
            self._console.print(
                Panel(f"[green]Sync completed{resumed}[/green]", title="Summary", border_style="green")
            )

    def print_checkpoint_status(self, context: Optional[PipeContext], checkpoint_path: str) -> None:
        """
        Print the state of a saved checkpoint.

        Args:
            context: Loaded checkpoint, None if there is none.
            checkpoint_path: Path of the checkpoint file.
        """
        if context is None:
            self._console.print(f"[dim]No checkpoint at {checkpoint_path}[/dim]")
            return

        self._console.print(f"[bold]Checkpoint:[/bold] {checkpoint_path}")

        table = Table(show_header=True, header_style="bold")
        table.add_column("Entity")
        table.add_column("Processed", justify="right")
        table.add_column("Pending", justify="right", style="yellow")
        table.add_column("Failed", justify="right", style="red")

        for entity_type in EntityType:
            table.add_row(
                entity_type.plural,
                str(len(context.pipe.processed_items.of(entity_type))),
                str(len(context.pipe.unprocessed_items.of(entity_type))),
                str(len(context.pipe.failed_items.of(entity_type))),
            )

        self._console.print(table)

        buffered = sum(len(items) for items in context.adapter.unprocessed_items.values())
        if buffered:
            self._console.print(f"[dim]{buffered} source records buffered[/dim]")

        if self.verbose:
            for entity_type in EntityType:
                for failed in context.pipe.failed_items.of(entity_type):
                    reasons = ", ".join(e.message_with_params for e in failed.errors)
                    self._console.print(f"    [red]✗[/red] {entity_type.value} {failed.external_id}: {reasons}")

    def print_config_summary(self, config_path: str, config: KbSyncConfig) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\n"
                f"Source: {config.source.type} {config.source.path}\n"
                f"Destination: {config.destination.type} {config.destination.path} "
                f"(knowledge base {config.destination.knowledge_base_id})\n"
                f"Compare mode: {config.sync.compare_mode.value}\n"
                f"Checkpoint: {config.checkpoint.path if config.checkpoint.enabled else 'disabled'}",
                title="KBSync Configuration",
                border_style="blue",
            )
        )


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)

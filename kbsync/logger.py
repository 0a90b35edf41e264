"""Rich console logging for sync runs."""

from typing import Optional

from rich.console import Console


class SyncLogger:
    """Rich console output for sync operations."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        """Initialize logger.

        Args:
            console: Rich Console instance
            verbose: Enable debug output
        """
        self.console = console or Console()
        self.verbose = verbose

    def debug(self, message: str) -> None:
        """Dim debug message, only shown in verbose mode."""
        if self.verbose:
            self.console.print(f"[dim]· {message}[/dim]", highlight=False)

    def info(self, message: str) -> None:
        """Blue info message."""
        self.console.print(f"[blue]ℹ[/blue] {message}", highlight=False)

    def success(self, message: str) -> None:
        """Green success message."""
        self.console.print(f"[green]✓[/green] {message}", highlight=False)

    def warning(self, message: str) -> None:
        """Yellow warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}", highlight=False)

    def error(self, message: str) -> None:
        """Red error message."""
        self.console.print(f"[red]✗[/red] {message}", highlight=False)

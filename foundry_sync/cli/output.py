"""Terminal output handling using the Rich library.

Supports verbosity levels and --no-color.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.spinner import Spinner

from .models import ExportSummary


class OutputHandler:
    """Handles all terminal output.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Exported 3 notes")
        >>> with handler.spinner("Connecting..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display a spinner while a single operation runs."""
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    @contextmanager
    def progress_bar(self, total: int, description: str = "Exporting") -> Iterator[Progress]:
        """Display a progress bar for multi-note operations.

        Example:
            >>> with handler.progress_bar(10, "Exporting notes") as progress:
            ...     task = progress.add_task("Exporting notes", total=10)
            ...     progress.update(task, advance=1)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        with progress:
            yield progress

    def print_summary(self, summary: ExportSummary) -> None:
        """Display the export summary with color coding."""
        self.console.print("\n[bold]Export Summary:[/bold]")

        if summary.created_count > 0:
            self.console.print(f"  [green]+[/green] Created: {summary.created_count} page(s)")
        if summary.updated_count > 0:
            self.console.print(f"  [blue]↑[/blue] Updated: {summary.updated_count} page(s)")
        if summary.images_uploaded > 0:
            self.console.print(f"  [green]↑[/green] Images uploaded: {summary.images_uploaded}")
        if summary.images_skipped > 0:
            self.console.print(f"  [dim]─[/dim] Images already present: {summary.images_skipped}")
        if summary.images_failed > 0:
            self.console.print(f"  [red]✗[/red] Images failed: {summary.images_failed}")
        if summary.links_resolved > 0:
            self.console.print(f"  [green]↔[/green] Links resolved: {summary.links_resolved}")
        if summary.links_unresolved > 0:
            self.console.print(f"  [yellow]⚠[/yellow] Links pending: {summary.links_unresolved}")
        if summary.failed_count > 0:
            self.console.print(f"  [red]✗[/red] Failed: {summary.failed_count} note(s)")
            for path in summary.failed_notes:
                self.console.print(f"    • {path}")

        total = summary.created_count + summary.updated_count + summary.failed_count
        if total == 0 and summary.links_resolved == 0:
            self.console.print("\n[yellow]Nothing exported[/yellow]")
        elif summary.failed_count > 0:
            self.console.print("\n[red]Export completed with failures[/red]")
        else:
            self.console.print("\n[green]Export completed successfully[/green]")

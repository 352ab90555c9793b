"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from collections.abc import Iterable

    from covtree.merging.merger import ExecutionDataMerger

console = Console()

_UNICODE_ENCODINGS = ("utf-8", "utf8", "utf-16", "utf-32")


class CLIReporter:
    """Rich terminal output for coverage reports."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_lines(self, lines: Iterable[str]) -> None:
        """Print report lines verbatim.

        Markup and highlighting are disabled so that bracketed text and
        numbers in the report are not restyled, and soft wrapping keeps
        wide rows on one line.
        """
        for line in lines:
            self.console.print(line, markup=False, highlight=False, soft_wrap=True)

    def print_merge_summary(self, merger: ExecutionDataMerger) -> None:
        """Print counts gathered while merging exec files."""
        self.print_success(
            f"Merged {len(merger.loaded_files)} exec file(s): "
            f"{len(merger.processed_ids)} class(es), "
            f"{merger.duplicate_count} duplicate record(s), "
            f"{len(merger.sessions)} session(s)"
        )

    def supports_unicode(self) -> bool:
        """Return True if the console encoding can draw box characters."""
        return self.console.encoding.lower().replace("_", "-") in _UNICODE_ENCODINGS


# Singleton instance for easy import
reporter = CLIReporter()

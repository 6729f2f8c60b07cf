"""
CLI Reporter Module
===================

Provides rich terminal output for lifecycle runs using the Rich library.

This module renders:
- A mode banner (dry-run or live)
- One progress line per recorded result
- A summary table with per-status counts
- A table of failures

Classes
-------
CLIReporter
    Main reporter class for terminal output.

Example
-------
>>> from cloudkeeper.reporters import CLIReporter
>>>
>>> reporter = CLIReporter()
>>> reporter.print_mode_banner(dry_run=True, title="AMI Cleanup")
>>> reporter.report(summary, title="AMI Cleanup")

See Also
--------
rich : Python library for rich text and formatting.
CSVReporter : For data export.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cloudkeeper.cleaners.results import MutationResult, MutationStatus, MutationSummary

# Module logger
logger = logging.getLogger(__name__)

STATUS_ICONS = {
    MutationStatus.SUCCESS: "[green]✓[/green]",
    MutationStatus.FAILED: "[red]✗[/red]",
    MutationStatus.SKIPPED: "[dim]○[/dim]",
    MutationStatus.RETAINED: "[cyan]○[/cyan]",
    MutationStatus.DRY_RUN: "[yellow]~[/yellow]",
}


class CLIReporter:
    """
    Reporter for displaying run results in the terminal.

    Parameters
    ----------
    console : Console, optional
        Rich Console instance. If not provided, creates a new one.

    Attributes
    ----------
    console : Console
        The Rich Console used for output.

    Examples
    --------
    Hooking into a cleaner:

    >>> reporter = CLIReporter()
    >>> cleaner = AmiCleaner(client, config, progress_callback=reporter.print_progress)
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the CLI reporter with a Rich Console."""
        self.console = console or Console()
        logger.debug("Initialized CLIReporter")

    def print_mode_banner(self, dry_run: bool, title: str) -> None:
        """
        Print a panel stating whether changes will be made.

        Parameters
        ----------
        dry_run : bool
            Whether the run only logs what it would do.
        title : str
            Command name shown in the panel.
        """
        text = Text()
        text.append(f"{title}\n", style="bold blue")
        if dry_run:
            text.append("DRY-RUN MODE: ", style="yellow bold")
            text.append("no changes will be made")
            border = "yellow"
        else:
            text.append("LIVE MODE: ", style="red bold")
            text.append("resources will be modified")
            border = "red"
        self.console.print(Panel(text, border_style=border))

    def print_progress(self, result: MutationResult) -> None:
        """
        Print one line for a recorded result.

        Suitable as a cleaner ``progress_callback``.
        """
        icon = STATUS_ICONS.get(result.status, "?")
        line = f"  {icon} {result.action} {result.resource_id}"
        if result.status == MutationStatus.FAILED and result.error_message:
            line += f" [red]{result.error_message}[/red]"
        elif result.detail:
            line += f" [dim]{result.detail}[/dim]"
        self.console.print(line)

    def report(self, summary: MutationSummary, title: str = "Run") -> None:
        """
        Print the summary table, then any failures.

        Parameters
        ----------
        summary : MutationSummary
            Completed run summary.
        title : str
            Heading for the summary.
        """
        table = Table(title=f"\n{title} Summary", title_style="bold", show_header=False, box=None, padding=(0, 2))
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("Succeeded:", f"[green]{summary.succeeded}[/]")
        failed_style = "red" if summary.failed else "green"
        table.add_row("Failed:", f"[{failed_style}]{summary.failed}[/]")
        table.add_row("Retained:", str(summary.retained))
        table.add_row("Skipped:", str(summary.skipped))
        if summary.dry_run:
            table.add_row("Dry-run:", f"[yellow]{summary.dry_run}[/]")
        if summary.end_time:
            elapsed = (summary.end_time - summary.start_time).total_seconds()
            table.add_row("Duration:", f"{elapsed:.1f}s")

        self.console.print(table)

        failures = [r for r in summary.results if r.status == MutationStatus.FAILED]
        if failures:
            self._print_failures(failures)

    def _print_failures(self, failures) -> None:
        table = Table(title="\nFailures", title_style="bold red")
        table.add_column("Action", style="yellow", no_wrap=True)
        table.add_column("Resource", style="cyan", no_wrap=True)
        table.add_column("Error", style="red")

        for result in failures:
            table.add_row(result.action, result.resource_id, result.error_message or "")

        self.console.print(table)

    def print_completion_message(self, output_file: Optional[str] = None) -> None:
        """Print completion message, with the export path if any."""
        self.console.print("\n[green bold]Done![/green bold]")
        if output_file:
            self.console.print(f"[dim]Results saved to: {output_file}[/dim]")

    def __repr__(self) -> str:
        """Return string representation."""
        return "CLIReporter()"

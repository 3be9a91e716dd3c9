"""UI helpers for CLI interaction.

This module provides reusable UI components and helpers for the CLI,
keeping the presentation logic separate from business logic.
"""

from collections.abc import Callable
import functools
import json

from rich.console import Console
from rich.table import Table
import typer

from readinglists.application.use_cases.purge_reading_lists import (
    PurgeReadingListsResult,
)
from readinglists.config import get_logger

# Initialize console and logger
console = Console()
logger = get_logger(__name__)


def command_error_handler[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    This decorator wraps a command function to:
    1. Provide consistent error handling using Typer's Exit mechanism
    2. Log errors using Loguru with proper context
    3. Display user-friendly error messages with Rich

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with integrated error handling
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def display_purge_result(
    result: PurgeReadingListsResult, output_format: str = "table"
) -> None:
    """Show the cutoff and row counts of a purge run.

    Args:
        result: Purge outcome
        output_format: "table" or "json" output format
    """
    stats = result.stats
    rows = [
        ("Lists", stats.lists),
        ("Entries", stats.entries),
        ("List sortkeys", stats.list_sortkeys),
        ("Entry sortkeys", stats.entry_sortkeys),
    ]

    if output_format == "json":
        console.print_json(
            json.dumps({
                "cutoff": result.cutoff.isoformat(),
                "lists": stats.lists,
                "entries": stats.entries,
                "list_sortkeys": stats.list_sortkeys,
                "entry_sortkeys": stats.entry_sortkeys,
                "batches": stats.batches,
            })
        )
        return

    console.print(
        f"\n[bold blue]Purged data deleted before {result.cutoff.isoformat()}[/bold blue]"
    )

    summary_table = Table(show_header=True)
    summary_table.add_column("Record set", style="cyan")
    summary_table.add_column("Purged", style="green bold", justify="right")
    for name, count in rows:
        summary_table.add_row(name, str(count))
    summary_table.add_row("Total", str(stats.total), style="bold")

    console.print(summary_table)
    console.print(f"[dim]{stats.batches} batches[/dim]\n")

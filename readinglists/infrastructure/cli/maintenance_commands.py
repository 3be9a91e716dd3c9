"""Schema setup and scheduled maintenance commands."""

import asyncio
from datetime import datetime
from typing import Annotated

from rich.console import Console
import typer

from readinglists.application.use_cases.purge_reading_lists import (
    PurgeReadingListsCommand,
    PurgeReadingListsResult,
    PurgeReadingListsUseCase,
)
from readinglists.config import get_logger, is_central_deployment, settings
from readinglists.infrastructure.cli.ui import command_error_handler, display_purge_result
from readinglists.infrastructure.persistence.database.db_connection import (
    dispose_engines,
)
from readinglists.infrastructure.persistence.database.db_models import init_db
from readinglists.infrastructure.persistence.repositories.factories import (
    get_unit_of_work,
)

# Initialize console and logger
console = Console()
logger = get_logger(__name__)


def register_maintenance_commands(app: typer.Typer) -> None:
    """Register maintenance commands with the Typer app."""
    app.command(
        name="purge",
        help="Purge old deleted lists, entries and orphaned sortkeys",
        rich_help_panel="🧹 Maintenance",
    )(purge)
    app.command(
        name="init-db",
        help="Initialize the database schema",
        rich_help_panel="⚙️ System",
    )(initialize_database)


async def _run_purge(command: PurgeReadingListsCommand) -> PurgeReadingListsResult:
    try:
        return await PurgeReadingListsUseCase().execute(command, get_unit_of_work())
    finally:
        await dispose_engines()


async def _run_init_db() -> None:
    try:
        await init_db()
    finally:
        await dispose_engines()


@command_error_handler
def purge(
    before: Annotated[
        str | None,
        typer.Option(
            "--before",
            "-b",
            help="Purge rows deleted before this ISO-8601 timestamp "
            "(defaults to the retention window)",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table, json)"),
    ] = "table",
) -> None:
    """Purge reading list data deleted before a cutoff."""
    cutoff = None
    if before is not None:
        try:
            cutoff = datetime.fromisoformat(before)
        except ValueError:
            console.print(f"[bold red]Invalid timestamp:[/bold red] {before}")
            raise typer.Exit(code=1) from None

    command = PurgeReadingListsCommand(before=cutoff)
    logger.info(
        "Starting purge",
        before=before,
        retention_days=settings.readinglists.deleted_retention_days,
    )

    with console.status("[bold blue]Purging deleted reading list data..."):
        result = asyncio.run(_run_purge(command))

    display_purge_result(result, output_format)
    logger.info("Purge completed", total=result.total_purged)


@command_error_handler
def initialize_database() -> None:
    """Initialize the database schema based on current models.

    This command creates database tables that don't yet exist.
    Existing tables are left untouched. Only the central deployment
    owns the schema.
    """
    if not is_central_deployment():
        console.print(
            "[yellow]Not the central deployment; skipping schema setup.[/yellow]"
        )
        logger.info(
            "Skipped schema setup",
            deployment_id=settings.deployment_id,
            central_deployment=settings.readinglists.central_deployment,
        )
        return

    with console.status("[bold blue]Initializing database schema...") as status:
        asyncio.run(_run_init_db())
        status.update("[bold green]Database initialization complete!")

    console.print(
        "\n[bold green]✓ Database schema initialized successfully[/bold green]",
    )
    logger.info("Database initialization completed successfully")

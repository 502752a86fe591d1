"""
Command-line interface for rogue-audit.
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import AsyncIterator, List, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import LoggingConfig, RogueAuditConfig
from .database.connection import ConnectionPool
from .database.introspection import SchemaIntrospector
from .exceptions import ConfigurationError, RogueAuditError
from .metadata.factory import MetadataProviderFactory
from .schema.operations import SafeSchemaOperations
from .schema.orchestrator import CleanOptions, CleanStatus, DropOrchestrator
from .schema.patterns import parse_csv
from .schema.reconciler import RogueReconciler, summarize


console = Console()

BACKUP_REMINDER = "Review carefully before cleaning. Consider taking a backup."


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RogueAuditError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(0)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
            if "--debug" in sys.argv:
                import traceback
                traceback.print_exc()
            sys.exit(1)
    return wrapper


def config_option(func):
    """Shared --config option."""
    return click.option(
        "--config",
        "-c",
        type=click.Path(exists=True, dir_okay=False),
        default="rogue-audit.yaml",
        envvar="ROGUE_AUDIT_CONFIG",
        show_default=True,
        help="Configuration file path",
    )(func)


def setup_logging(config: LoggingConfig, debug: bool = False) -> None:
    """Configure the root logger from the logging configuration."""
    level = logging.DEBUG if debug else getattr(logging, config.level)

    handlers: List[logging.Handler] = [
        RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=debug)
    ]
    if config.file:
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(config.format))
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)


def _load_config(ctx: click.Context, path: str) -> RogueAuditConfig:
    config = RogueAuditConfig.from_yaml(path)
    debug = ctx.obj.get("debug", False) or config.debug
    setup_logging(config.logging, debug)
    return config


@asynccontextmanager
async def _audit_session(
    config: RogueAuditConfig,
) -> AsyncIterator[Tuple[RogueReconciler, SafeSchemaOperations]]:
    """Open the database and wire the reconciler to its collaborators."""
    database = config.get_database()
    module_registry = MetadataProviderFactory.create_module_registry(config.modules)
    entity_metadata = MetadataProviderFactory.create_entity_metadata(config.entities)

    async with ConnectionPool(database.to_connection_config()) as pool:
        reconciler = RogueReconciler(
            SchemaIntrospector(pool),
            module_registry,
            entity_metadata,
            schema=database.schema_name,
        )
        yield reconciler, SafeSchemaOperations(pool)


@click.group()
@click.version_option(__version__)
@click.option(
    "--debug", is_flag=True, help="Enable debug mode"
)
@click.pass_context
def main(ctx, debug):
    """rogue-audit: find and drop tables no installed module accounts for."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@config_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
@handle_errors
def scan(ctx, config: str, output_format: str):
    """List suspected rogue tables."""
    audit_config = _load_config(ctx, config)

    async def run_scan():
        async with _audit_session(audit_config) as (reconciler, _):
            return await reconciler.find_rogues()

    candidates = asyncio.run(run_scan())

    if output_format == "json":
        console.print_json(data=[
            {"table": c.table, "reason": c.reason.value, "description": c.description}
            for c in candidates
        ])
        return

    if not candidates:
        console.print("[green]✓[/green] No rogue tables detected.")
    else:
        table = Table(title="Rogue table candidates")
        table.add_column("Table", style="cyan")
        table.add_column("Reason", style="yellow")
        for candidate in candidates:
            table.add_row(candidate.table, candidate.description)
        console.print(table)

        summary = summarize(candidates)
        counts = ", ".join(
            f"{reason}: {count}" for reason, count in summary["by_reason"].items() if count
        )
        console.print(f"{summary['total']} candidates ({counts})")

    console.print(f"\n[yellow]Note:[/yellow] {BACKUP_REMINDER}")


@main.command()
@config_option
@click.option("--all", "drop_all", is_flag=True, help="Drop all detected candidates")
@click.option("--tables", default="", help="CSV of table names or patterns to include")
@click.option("--ignore", default="", help="CSV of table names or patterns to skip")
@click.option("--dry-run", is_flag=True, help="Show what would be dropped but do nothing")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
@handle_errors
def clean(ctx, config: str, drop_all: bool, tables: str, ignore: str, dry_run: bool, yes: bool):
    """Drop rogue tables."""
    audit_config = _load_config(ctx, config)

    options = CleanOptions(
        all=drop_all,
        include=parse_csv(tables),
        ignore=audit_config.clean.ignore + parse_csv(ignore),
        dry_run=dry_run,
    )

    def show_plan(plan: List[str]) -> None:
        console.print("\n[bold cyan]Drop plan[/bold cyan]")
        for table in plan:
            console.print(f" - {table}")

    def confirm(plan: List[str]) -> bool:
        if yes:
            return True
        # Blocks the event loop while waiting; clean runs as a single task
        return click.confirm("Proceed with dropping the tables listed above?", default=False)

    def show_dropped(table: str) -> None:
        console.print(f"Dropped {table}")

    async def run_clean():
        async with _audit_session(audit_config) as (reconciler, operations):
            orchestrator = DropOrchestrator(reconciler, operations)
            return await orchestrator.clean(
                options, confirm, on_plan=show_plan, on_dropped=show_dropped
            )

    result = asyncio.run(run_clean())

    if result.status == CleanStatus.NO_CANDIDATES:
        console.print("[green]✓[/green] No candidates to drop.")
    elif result.status == CleanStatus.NOTHING_SELECTED:
        console.print("[yellow]Warning:[/yellow] Nothing selected for drop. Use --all or --tables=")
    elif result.status == CleanStatus.DRY_RUN:
        console.print("[green]✓[/green] Dry run complete. No changes made.")
    elif result.status == CleanStatus.ABORTED:
        console.print("[yellow]Warning:[/yellow] Aborted.")
    else:
        for table in result.missing:
            console.print(f"[yellow]Already gone:[/yellow] {table}")
        console.print("[green]✓[/green] Drop complete.")


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="rogue-audit.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Initialize a new rogue-audit configuration file."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    _create_default_config().to_yaml(output)
    console.print(f"[green]✓[/green] Configuration file created: {output}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Edit the database connection")
    console.print("2. List installed modules and entity field storage, or point to a manifest")
    console.print(f"3. Run: rogue-audit validate-config -c {output}")
    console.print(f"4. Run: rogue-audit scan -c {output}")


@main.command()
@config_option
@handle_errors
def validate_config(config: str):
    """Validate configuration file."""
    console.print(f"Validating configuration: {config}")

    try:
        audit_config = RogueAuditConfig.from_yaml(config)
        audit_config.validate_config()
        MetadataProviderFactory.create_module_registry(audit_config.modules)
        MetadataProviderFactory.create_entity_metadata(audit_config.entities)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] Configuration error: {escape(str(e))}")
        sys.exit(1)

    console.print("[green]✓[/green] Configuration is valid")
    _display_config_summary(audit_config)


def _create_default_config() -> RogueAuditConfig:
    """Create a default configuration with examples."""
    from .config import (
        CleanDefaults,
        DatabaseConnection,
        EntitySourceConfig,
        ModuleSourceConfig,
    )

    return RogueAuditConfig(
        database=DatabaseConnection(
            host="${POSTGRES_HOST}",
            database="${POSTGRES_DB}",
            user="${POSTGRES_USER}",
            password="${POSTGRES_PASSWORD}",
        ),
        modules=ModuleSourceConfig(
            modules={
                "system": ["key_value", "sessions", "sequences"],
                "node": ["node", "node_revision", "node_field_data", "node_field_revision"],
            },
        ),
        entities=EntitySourceConfig(
            entity_types={
                "node": ["body", "field_tags"],
                "path_alias": None,
            },
        ),
        clean=CleanDefaults(ignore=["cache_*"]),
    )


def _display_config_summary(config: RogueAuditConfig) -> None:
    """Display a summary of the configuration."""
    console.print("\n[blue]Configuration Summary[/blue]")

    database = config.get_database()
    db_table = Table(title="Database")
    db_table.add_column("Target", style="cyan")
    db_table.add_column("Schema", style="green")
    db_table.add_row(
        database.url or f"{database.host}:{database.port}/{database.database}",
        database.schema_name,
    )
    console.print(db_table)

    source_table = Table(title="Metadata Sources")
    source_table.add_column("Source", style="cyan")
    source_table.add_column("Provider", style="magenta")
    source_table.add_column("Entries", style="yellow")
    source_table.add_row(
        "modules",
        config.modules.provider,
        config.modules.path or str(len(config.modules.modules)),
    )
    source_table.add_row(
        "entities",
        config.entities.provider,
        config.entities.path or str(len(config.entities.entity_types)),
    )
    console.print(source_table)

    if config.clean.ignore:
        console.print(f"Always ignored: {', '.join(config.clean.ignore)}")


if __name__ == "__main__":
    main()

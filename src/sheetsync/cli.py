"""
Command-line interface for sheetsync.
"""

import asyncio
import json
import sys
import time
from functools import wraps
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .columns import (
    ChangeType,
    ColumnDescriptor,
    ColumnSyncResult,
    infer_column_type,
    infer_options,
)
from .config import LoggingConfig, SheetsyncConfig, configure_logging
from .exceptions import ConfigurationError, SheetsyncError
from .sync import ColumnSyncService


console = Console()

_CHANGE_STYLES = {
    ChangeType.UNCHANGED: "dim",
    ChangeType.ADDED: "green",
    ChangeType.REMOVED: "red",
    ChangeType.RENAMED: "yellow",
}


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SheetsyncError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
        except (click.ClickException, click.Abort):
            raise
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(0)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {e}")
            if "--debug" in sys.argv:
                import traceback
                traceback.print_exc()
            sys.exit(1)
    return wrapper


config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
tab_option = click.option("--tab", "-t", help="Sheet tab (defaults to sync.default_tab)")


def _load_config(path: str) -> SheetsyncConfig:
    config = SheetsyncConfig.from_yaml(path)
    debug = config.debug or (click.get_current_context().obj or {}).get("debug", False)
    configure_logging(config.logging, debug=debug)
    return config


def _build_service(config: SheetsyncConfig) -> ColumnSyncService:
    return ColumnSyncService.from_config(config)


@click.group()
@click.version_option(__version__)
@click.option(
    "--debug", is_flag=True, help="Enable debug mode"
)
@click.pass_context
def main(ctx, debug):
    """sheetsync: Reconcile saved column metadata with live spreadsheets."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    configure_logging(LoggingConfig(), debug=debug)


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="sheetsync-config.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Initialize a new sheetsync configuration file."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    config = _create_default_config()
    config.to_yaml(output)

    console.print(f"[green]✓[/green] Configuration file created: {output}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Export GOOGLE_SHEETS_TOKEN and the POSTGRES_* variables")
    console.print(f"2. Run: sheetsync validate-config -c {output}")
    console.print(f"3. Run: sheetsync setup-store -c {output}")
    console.print(f"4. Run: sheetsync init-sheet SHEET_ID -c {output}")


@main.command()
@config_option
@handle_errors
def validate_config(config: str):
    """Validate configuration file."""
    console.print(f"Validating configuration: {config}")

    try:
        sheetsync_config = _load_config(config)
        sheetsync_config.validate_config()
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] Configuration error: {e}")
        sys.exit(1)

    console.print("[green]✓[/green] Configuration is valid")
    _display_config_summary(sheetsync_config)


@main.command()
@click.argument("values", nargs=-1)
@handle_errors
def infer(values: List[str]):
    """Infer the column type of sample VALUES."""
    column_type = infer_column_type(values)
    options = infer_options(values, column_type)

    console.print(f"Type: [cyan]{column_type.value}[/cyan]")
    if options:
        console.print(f"Options: {', '.join(options)}")


@main.command()
@click.argument("sheet_id")
@config_option
@tab_option
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@handle_errors
def check(sheet_id: str, config: str, tab: Optional[str], as_json: bool):
    """Report column drift for a sheet without saving anything."""
    sheetsync_config = _load_config(config)

    async def run_check():
        service = _build_service(sheetsync_config)
        async with service:
            return await service.check_changes(sheet_id, tab)

    result = asyncio.run(run_check())

    if as_json:
        payload = result.to_dict() if result is not None else None
        click.echo(json.dumps(payload, indent=2))
        return

    if result is None:
        console.print(f"[yellow]Sheet {sheet_id} is empty, nothing to compare[/yellow]")
        return

    _display_changes(result)


@main.command()
@click.argument("sheet_id")
@config_option
@tab_option
@click.option("--apply", is_flag=True, help="Save the merged columns")
@handle_errors
def sync(sheet_id: str, config: str, tab: Optional[str], apply: bool):
    """Reconcile a sheet and optionally save the merged columns."""
    sheetsync_config = _load_config(config)

    async def run_sync():
        service = _build_service(sheetsync_config)
        async with service:
            return await service.sync(sheet_id, tab, apply=apply)

    outcome = asyncio.run(run_sync())

    if outcome.is_empty_sheet:
        console.print(f"[yellow]Sheet {sheet_id} is empty, nothing to sync[/yellow]")
        return

    _display_changes(outcome.result)

    if outcome.applied:
        console.print(
            f"\n[green]✓[/green] Saved {len(outcome.persisted_columns)} columns for {sheet_id}"
        )
        if outcome.retired_columns:
            console.print(
                f"[dim]Retired columns kept: {len(outcome.retired_columns)}[/dim]"
            )
    elif not apply and outcome.has_changes:
        console.print("\n[yellow]Dry run - pass --apply to save the merged columns[/yellow]")


@main.command("init-sheet")
@click.argument("sheet_id")
@config_option
@tab_option
@click.option("--overwrite", is_flag=True, help="Replace existing metadata")
@handle_errors
def init_sheet(sheet_id: str, config: str, tab: Optional[str], overwrite: bool):
    """Save initial column metadata for a sheet."""
    sheetsync_config = _load_config(config)

    async def run_init():
        service = _build_service(sheetsync_config)
        async with service:
            return await service.initialize_columns(sheet_id, tab, overwrite=overwrite)

    columns = asyncio.run(run_init())

    _display_columns(columns, title=f"Columns saved for {sheet_id}")
    console.print(f"[green]✓[/green] Initialized {len(columns)} columns")


@main.command("push-headers")
@click.argument("sheet_id")
@config_option
@tab_option
@handle_errors
def push_headers(sheet_id: str, config: str, tab: Optional[str]):
    """Write saved column names back to the sheet's header row."""
    sheetsync_config = _load_config(config)

    async def run_push():
        service = _build_service(sheetsync_config)
        async with service:
            return await service.push_headers(sheet_id, tab)

    plan = asyncio.run(run_push())

    console.print(f"Range: {plan.range}")
    console.print(f"Headers: {', '.join(plan.headers)}")
    console.print(f"Updated in place: {plan.updated_in_place}")
    if plan.appended:
        console.print(f"Appended: [green]{', '.join(plan.appended)}[/green]")


@main.command("setup-store")
@config_option
@handle_errors
def setup_store(config: str):
    """Create the metadata schema and tables."""
    sheetsync_config = _load_config(config)

    from .store.postgres import PostgresMetadataStore

    async def run_setup():
        store = PostgresMetadataStore.from_config(sheetsync_config.metadata_store)
        async with store:
            await store.ensure_schema()
        return store.table

    table = asyncio.run(run_setup())
    console.print(f"[green]✓[/green] Metadata store ready: {table}")


@main.command("test-connection")
@config_option
@click.option("--sheet-id", help="Spreadsheet to check Sheets API access against")
@handle_errors
def test_connection(config: str, sheet_id: Optional[str]):
    """Test metadata store and Sheets API connections."""
    console.print("[blue]Testing connections...[/blue]")

    sheetsync_config = _load_config(config)

    async def run_connection_tests():
        from .sheets.google_client import GoogleSheetsReader
        from .store.postgres import PostgresMetadataStore

        total_passed = 0
        total_failed = 0

        console.print("\n[bold cyan]Metadata Store[/bold cyan]")
        try:
            start_time = time.time()
            store = PostgresMetadataStore.from_config(sheetsync_config.metadata_store)
            async with store:
                health = await store.health_check()
            response_time = (time.time() - start_time) * 1000

            if health.get("status") == "healthy":
                console.print(f"  ✅ [green]Connected[/green] ({response_time:.1f}ms)")
                total_passed += 1
            else:
                console.print(
                    f"  ⚠️  [yellow]Reachable but {health.get('status')}[/yellow] "
                    f"(run setup-store?)"
                )
                total_failed += 1
        except Exception as e:
            console.print(f"  ❌ [red]Connection failed: {e}[/red]")
            total_failed += 1

        console.print("\n[bold cyan]Google Sheets API[/bold cyan]")
        if not sheet_id:
            console.print("  ⏸️  [yellow]Skipped (pass --sheet-id)[/yellow]")
        else:
            try:
                async with GoogleSheetsReader(sheetsync_config.google) as reader:
                    health = await reader.health_check(sheet_id)

                if health.get("status") == "healthy":
                    console.print(
                        f"  ✅ [green]API healthy[/green] ({health['response_time_ms']}ms)"
                    )
                    console.print(f"     Title: {health.get('title')}")
                    console.print(f"     Tabs: {', '.join(t for t in health.get('tabs', []) if t)}")
                    total_passed += 1
                else:
                    console.print(f"  ❌ [red]API check failed: {health.get('error')}[/red]")
                    total_failed += 1
            except Exception as e:
                console.print(f"  ❌ [red]API test failed: {e}[/red]")
                total_failed += 1

        console.print("\n[bold]Connection Test Summary[/bold]")
        console.print(f"  Passed: [green]{total_passed}[/green]")
        console.print(f"  Failed: [red]{total_failed}[/red]")

        return 0 if total_failed == 0 else 1

    sys.exit(asyncio.run(run_connection_tests()))


def _display_changes(result: ColumnSyncResult):
    """Display per-position changes of a sync result."""
    table = Table(title="Column Changes")
    table.add_column("Index", style="cyan", justify="right")
    table.add_column("Change")
    table.add_column("Column", style="magenta")
    table.add_column("Details", style="green")

    for change in result.changes:
        style = _CHANGE_STYLES[change.type]
        details = ""
        if change.type == ChangeType.RENAMED:
            details = f"{change.old_name} → {change.new_name}"
        table.add_row(
            str(change.index),
            f"[{style}]{change.type.value}[/{style}]",
            change.name,
            details,
        )

    console.print(table)

    counts = result.summary()
    console.print(
        ", ".join(f"{label}: {count}" for label, count in counts.items())
    )
    if result.has_changes:
        console.print("[yellow]Column drift detected[/yellow]")
    elif not result.saved_columns:
        console.print("[blue]No saved metadata yet; all columns are new[/blue]")
    else:
        console.print("[green]✓[/green] Columns are in sync")


def _display_columns(columns: List[ColumnDescriptor], title: str):
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Name", style="magenta")
    table.add_column("Type", style="green")
    table.add_column("Options", style="yellow")

    for column in columns:
        table.add_row(
            str(column.original_index),
            column.name,
            column.type.value,
            ", ".join(column.options),
        )

    console.print(table)


def _create_default_config() -> SheetsyncConfig:
    """Create a default configuration with placeholders."""
    from .config import DatabaseConnection, GoogleSheetsConfig, MetadataStoreConfig

    return SheetsyncConfig(
        google=GoogleSheetsConfig(access_token="${GOOGLE_SHEETS_TOKEN}"),
        metadata_store=MetadataStoreConfig(
            connection=DatabaseConnection(
                host="${POSTGRES_HOST}",
                port=5432,
                database="${POSTGRES_DB}",
                user="${POSTGRES_USER}",
                password="${POSTGRES_PASSWORD}",
            ),
        ),
    )


def _display_config_summary(config: SheetsyncConfig):
    """Display a summary of the configuration."""
    console.print("\n[blue]Configuration Summary[/blue]")

    sheets_table = Table(title="Google Sheets")
    sheets_table.add_column("Setting", style="cyan")
    sheets_table.add_column("Value", style="green")
    sheets_table.add_row("Base URL", config.google.base_url)
    sheets_table.add_row("Columns read", f"A-{config.google.last_column}")
    sheets_table.add_row("Sample rows", str(config.google.sample_rows))
    sheets_table.add_row("Max retries", str(config.google.max_retries))
    console.print(sheets_table)

    store = config.metadata_store
    store_table = Table(title="Metadata Store")
    store_table.add_column("Setting", style="cyan")
    store_table.add_column("Value", style="green")
    if store.connection:
        store_table.add_row("Host", f"{store.connection.host}:{store.connection.port}")
        store_table.add_row("Database", store.connection.database)
    else:
        store_table.add_row("Connection", "[red]not configured[/red]")
    store_table.add_row("Table", f"{store.schema_name}.{store.table_name}")
    store_table.add_row("Pool", f"{store.min_pool_size}-{store.max_pool_size}")
    console.print(store_table)

    sync_table = Table(title="Sync")
    sync_table.add_column("Setting", style="cyan")
    sync_table.add_column("Value", style="green")
    sync_table.add_row("Drop removed on apply", str(config.sync.drop_removed_on_apply))
    sync_table.add_row("Infer types on init", str(config.sync.infer_types_on_init))
    sync_table.add_row("Default tab", config.sync.default_tab or "(first)")
    console.print(sync_table)


if __name__ == "__main__":
    main()

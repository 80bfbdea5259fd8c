"""
Command-line interface for the card ledger sync.
"""

from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from .codec.rows import decode_rows
from .config import (
    AppConfig,
    generate_default_config,
    load_config,
    with_sync_overrides,
)
from .models.transaction import SyncSummary
from .sources.csv_export import CsvExportSource
from .stores.workbook import WorkbookStore
from .sync.engine import SyncEngine
from .utils.exceptions import SyncError
from .utils.logging_config import level_from_name, setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """Sync card transactions into a workbook and reconcile refunds."""
    pass


@main.command()
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option(
    "-s",
    "--source",
    type=click.Path(exists=True, path_type=Path),
    help="Override the transaction export file",
)
@click.option(
    "-w", "--workbook", type=click.Path(path_type=Path), help="Override the workbook path"
)
@click.option("--fetch-days", type=int, default=None, help="Override the fetch window in days")
@click.option(
    "--reconcile-days", type=int, default=None, help="Override the matching window in days"
)
@click.option("--no-reconcile", is_flag=True, help="Skip matching debits and credits")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def sync(
    config: Optional[Path],
    source: Optional[Path],
    workbook: Optional[Path],
    fetch_days: Optional[int],
    reconcile_days: Optional[int],
    no_reconcile: bool,
    verbose: bool,
):
    """Fetch recent transactions and merge them into each card's sheet."""
    try:
        app_config = load_config(config)
        _setup_logging(app_config, verbose)

        app_config = with_sync_overrides(
            app_config,
            fetch_days=fetch_days,
            reconcile_days=reconcile_days,
            reconcile_on_sync=False if no_reconcile else None,
        )

        engine = _build_engine(app_config, source, workbook)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Syncing cards...", total=None)

            def on_card(card, completed, total):
                progress.update(
                    task,
                    completed=completed,
                    total=total,
                    description=f"Synced {card.name}",
                )

            summary = engine.sync(progress=on_card)

        _display_summary(summary)
        console.print(f"\n[green]Workbook updated: {app_config.store.workbook_path}[/green]")

    except (SyncError, ValueError) as e:
        _fail(e, verbose)


@main.command()
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option(
    "-s",
    "--source",
    type=click.Path(exists=True, path_type=Path),
    help="Override the transaction export file",
)
@click.option(
    "-w", "--workbook", type=click.Path(path_type=Path), help="Override the workbook path"
)
@click.option("--days", type=int, default=None, help="Override the matching window in days")
@click.option("--dry-run", is_flag=True, help="Show new pairs without writing them")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def reconcile(
    config: Optional[Path],
    source: Optional[Path],
    workbook: Optional[Path],
    days: Optional[int],
    dry_run: bool,
    verbose: bool,
):
    """Match debits with offsetting credits in the stored sheets."""
    try:
        app_config = load_config(config)
        _setup_logging(app_config, verbose)

        app_config = with_sync_overrides(app_config, reconcile_days=days)

        engine = _build_engine(app_config, source, workbook)
        results = engine.reconcile_stored(dry_run=dry_run)

        table = Table(title="New Matched Pairs")
        table.add_column("Card", style="cyan")
        table.add_column("Debit ID")
        table.add_column("Credit ID")

        for card_name, pairs in results.items():
            for pair in sorted(pairs):
                table.add_row(card_name, pair.debit_id, pair.credit_id)

        console.print(table)
        total = sum(len(pairs) for pairs in results.values())
        console.print(f"\nPairs found: {total}")

        if dry_run:
            console.print("\n[yellow]Dry run - workbook not modified[/yellow]")

    except (SyncError, ValueError) as e:
        _fail(e, verbose)


@main.command()
@click.argument("sheet")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option(
    "-w", "--workbook", type=click.Path(path_type=Path), help="Override the workbook path"
)
@click.option("--limit", type=int, default=20, show_default=True, help="Rows to display")
def show(sheet: str, config: Optional[Path], workbook: Optional[Path], limit: int):
    """
    Display the transactions stored for one card.

    SHEET: Card name (worksheet title)
    """
    try:
        app_config = load_config(config)
        store = WorkbookStore(workbook or Path(app_config.store.workbook_path), app_config.store)
        transactions = decode_rows(store.read_rows(sheet))

        table = Table(title=f"Transactions: {sheet}")
        table.add_column("Timestamp")
        table.add_column("Description")
        table.add_column("Amount", justify="right")
        table.add_column("Type")
        table.add_column("Matched ID")

        for txn in transactions[-limit:]:
            table.add_row(
                txn.timestamp.strftime("%Y-%m-%d %H:%M"),
                (
                    txn.description[:40] + "..."
                    if len(txn.description) > 40
                    else txn.description
                ),
                f"{txn.amount:,.2f} {txn.currency}",
                txn.type.value,
                txn.matched_id or "-",
            )

        console.print(table)

        if len(transactions) > limit:
            console.print(f"\n... and {len(transactions) - limit} earlier transactions")

        unmatched = sum(1 for t in transactions if not t.is_matched)
        console.print(f"\nTotal transactions: {len(transactions)} ({unmatched} unmatched)")

    except SyncError as e:
        _fail(e, False)


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _setup_logging(config: AppConfig, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else level_from_name(config.logging.level)
    log_file = Path(config.logging.file) if config.logging.file else None
    setup_logging(log_level, log_file=log_file, log_format=config.logging.format)


def _build_engine(
    config: AppConfig, source: Optional[Path], workbook: Optional[Path]
) -> SyncEngine:
    export_path = source or Path(config.source.export_path)
    workbook_path = workbook or Path(config.store.workbook_path)
    config.store.workbook_path = str(workbook_path)

    return SyncEngine(
        config,
        CsvExportSource(export_path, config.source),
        WorkbookStore(workbook_path, config.store),
    )


def _display_summary(summary: SyncSummary) -> None:
    """Display sync summary in console."""
    table = Table(title="Sync Summary")
    table.add_column("Card", style="cyan")
    table.add_column("Fetched", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Kept", justify="right")
    table.add_column("Stored", justify="right")
    table.add_column("Pairs", justify="right")

    for result in summary.results:
        table.add_row(
            result.card_name,
            str(result.fetched_count),
            str(result.inserted_count),
            str(result.updated_count),
            str(result.retained_count),
            str(result.total_count),
            str(len(result.matched_pairs)),
        )

    console.print(table)
    console.print(
        f"Window: {summary.window_start:%Y-%m-%d} to {summary.window_end:%Y-%m-%d}, "
        f"processing time {summary.processing_time_seconds:.2f}s"
    )


def _fail(error: Exception, verbose: bool) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    if verbose:
        console.print_exception()
    sys.exit(1)


if __name__ == "__main__":
    main()

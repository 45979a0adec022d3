"""
booksync CLI — command-line interface.

Usage:
    booksync status --total 100.00 --paid 40.00 --item 5:5
    booksync balances --tenant 1 --config booksync.yaml
    booksync refresh --tenant 1 --fail-fast
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from booksync import __version__

app = typer.Typer(
    name="booksync",
    help="booksync — document status and account balance reconciliation",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

_STATUS_COLORS = {
    "draft": "dim",
    "cancelled": "red",
    "paid_received": "bold green",
}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]booksync[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """booksync — keep bills, invoices and account balances honest."""


def _load_config(config: str | None):  # noqa: ANN202
    from booksync.config import BookSyncConfig

    config_path = config if config and Path(config).exists() else None
    cfg = BookSyncConfig.load(config_path)
    _setup_logging(cfg.log_level)
    return cfg


def _storage_failure(action: str, error: Exception) -> typer.Exit:
    console.print(f"[red]{action} failed: {escape(str(error))}[/red]")
    return typer.Exit(1)


def _build_reconciler(cfg):  # noqa: ANN001, ANN202
    from booksync.analyzers.balances import BalanceReconciler
    from booksync.errors import BookSyncError
    from booksync.stores.registry import create_store

    try:
        return BalanceReconciler(create_store(cfg), cfg.reconciler)
    except BookSyncError as e:
        raise _storage_failure("Opening the ledger store", e) from None


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_item(raw: str) -> tuple[int, int]:
    ordered, _, received = raw.partition(":")
    try:
        return int(ordered), int(received or 0)
    except ValueError:
        raise typer.BadParameter(f"Expected ORDERED:RECEIVED, got '{raw}'") from None


@app.command()
def status(
    total: str = typer.Option("0", "--total", "-t", help="Document total in dollars"),
    paid: str = typer.Option("0", "--paid", "-p", help="Amount paid so far in dollars"),
    item: Optional[List[str]] = typer.Option(
        None,
        "--item",
        "-i",
        help="Line quantities as ORDERED:RECEIVED (repeatable)",
    ),
    cancelled: bool = typer.Option(False, "--cancelled", help="Document is cancelled"),
    allow_over_receipt: bool = typer.Option(
        False,
        "--allow-over-receipt",
        help="Accept lines that received more than was ordered",
    ),
) -> None:
    """Classify a bill or invoice from its payment and receiving progress."""
    from booksync.analyzers.document_status import StatusClassifier, breakdown
    from booksync.config import StatusConfig
    from booksync.errors import ValidationError
    from booksync.models.document import Document, DocumentLine
    from booksync.money import format_cents, to_cents

    try:
        lines = [
            DocumentLine(quantity_ordered=o, quantity_received=r)
            for o, r in (_parse_item(raw) for raw in item or [])
        ]
        document = Document(
            total_amount=to_cents(total),
            amount_paid=to_cents(paid),
            items=lines,
            is_cancelled=cancelled,
        )
        classifier = StatusClassifier(StatusConfig(reject_over_receipt=not allow_over_receipt))
        result = classifier.classify(document)
    except ValidationError as e:
        console.print(f"[red]Invalid document: {e}[/red]")
        raise typer.Exit(1)

    color = _STATUS_COLORS.get(result.value, "cyan")
    console.print(f"[{color}]{result.label}[/{color}] ({result.value})")

    parts = breakdown(result)
    if parts:
        payment, fulfillment = parts
        console.print(
            f"[dim]payment: {payment.value}, fulfillment: {fulfillment.value}, "
            f"due: {format_cents(document.balance_due)}[/dim]"
        )


@app.command()
def balances(
    tenant: int = typer.Option(..., "--tenant", "-t", help="Tenant (business) id"),
    config: str = typer.Option(
        "booksync.yaml",
        "--config",
        "-c",
        help="Path to config file",
    ),
    live: bool = typer.Option(True, "--live/--cached", help="Recompute balances from the ledger"),
) -> None:
    """Show account balances for a tenant."""
    from booksync.errors import BookSyncError
    from booksync.money import format_cents

    reconciler = _build_reconciler(_load_config(config))

    try:
        if live:
            accounts = asyncio.run(reconciler.list_accounts_with_live_balances(tenant))
        else:
            accounts = asyncio.run(reconciler.store.list_accounts(tenant))
    except BookSyncError as e:
        raise _storage_failure("Loading balances", e) from None

    if not accounts:
        console.print(f"[yellow]No accounts for tenant {tenant}[/yellow]")
        return

    table = Table(title=f"Account Balances ({'live' if live else 'cached'})")
    table.add_column("ID", justify="right")
    table.add_column("Account", style="bold")
    table.add_column("Initial", justify="right")
    table.add_column("Current", justify="right")

    for account in accounts:
        table.add_row(
            str(account.id),
            account.name,
            format_cents(account.initial_balance),
            format_cents(account.current_balance),
        )
    console.print(table)


@app.command()
def refresh(
    tenant: int = typer.Option(..., "--tenant", "-t", help="Tenant (business) id"),
    config: str = typer.Option("booksync.yaml", "--config", "-c", help="Path to config file"),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Stop at the first failing account"),
) -> None:
    """Recompute and store the balance of every account of a tenant."""
    reconciler = _build_reconciler(_load_config(config))

    try:
        report = asyncio.run(reconciler.refresh_all_balances(tenant, fail_fast=fail_fast or None))
    except Exception as e:
        raise _storage_failure("Refresh", e) from None

    console.print(report.summary())
    for failure in report.failed:
        console.print(f"  [red]✗[/red] {failure}")
    if not report.ok:
        raise typer.Exit(1)


@app.command()
def reconcile(
    tenant: int = typer.Option(..., "--tenant", "-t", help="Tenant (business) id"),
    config: str = typer.Option("booksync.yaml", "--config", "-c", help="Path to config file"),
) -> None:
    """List accounts whose stored balance disagrees with the ledger."""
    from booksync.errors import BookSyncError
    from booksync.money import format_cents

    reconciler = _build_reconciler(_load_config(config))
    try:
        drifted = asyncio.run(reconciler.find_drift(tenant))
    except BookSyncError as e:
        raise _storage_failure("Reconcile", e) from None

    if not drifted:
        console.print("[green]✓[/green] All balances match the ledger")
        return

    table = Table(title="Balance Drift", show_lines=True)
    table.add_column("Account", style="bold")
    table.add_column("Stored", justify="right")
    table.add_column("Ledger", justify="right")
    table.add_column("Difference", justify="right")
    for account, cached, computed in drifted:
        table.add_row(
            f"{account.id} {account.name}",
            format_cents(cached),
            format_cents(computed),
            format_cents(computed - cached),
        )
    console.print(table)
    console.print("[dim]Run 'booksync refresh' to rewrite stored balances.[/dim]")


@app.command("init-db")
def init_db(
    config: str = typer.Option("booksync.yaml", "--config", "-c", help="Path to config file"),
) -> None:
    """Create the ledger tables in the configured SQL database."""
    from booksync.errors import BookSyncError
    from booksync.stores.sql import SQLLedgerStore

    store = _build_reconciler(_load_config(config)).store
    if not isinstance(store, SQLLedgerStore):
        console.print(f"[yellow]Store '{store.name}' has no tables to create[/yellow]")
        raise typer.Exit(1)

    try:
        store.create_tables()
    except BookSyncError as e:
        raise _storage_failure("Creating tables", e) from None
    console.print(Panel.fit(f"[green]✓[/green] Ledger tables ready on [bold]{store.engine.url.database}[/bold]"))


@app.command()
def stores() -> None:
    """List the built-in ledger stores."""
    from booksync.stores.registry import available_stores

    table = Table(title="Available Stores")
    table.add_column("Type", style="bold cyan")
    table.add_column("Class")
    for name, path in available_stores().items():
        table.add_row(name, path)
    console.print(table)


if __name__ == "__main__":
    app()

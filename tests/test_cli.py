"""Tests for the booksync CLI."""

import asyncio
from pathlib import Path

import pytest
from typer.testing import CliRunner

from booksync import __version__
from booksync.analyzers.balances import BalanceReconciler
from booksync.cli import app
from booksync.models.ledger import LedgerTransaction, TransactionType
from booksync.stores.sql import SQLLedgerStore

runner = CliRunner()


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """A SQLite ledger with one up-to-date and one stale account for tenant 1."""
    url = f"sqlite:///{tmp_path / 'ledger.db'}"

    async def seed() -> None:
        store = SQLLedgerStore(url)
        reconciler = BalanceReconciler(store)
        checking = await store.add_account(1, "Checking", initial_balance=100000)
        savings = await store.add_account(1, "Savings", initial_balance=5000)
        await reconciler.post_transaction(
            LedgerTransaction(tenant_id=1, account_id=checking.id, amount=5000, type=TransactionType.INCOME)
        )
        await reconciler.post_transaction(
            LedgerTransaction(tenant_id=1, account_id=checking.id, amount=2000, type=TransactionType.EXPENSE)
        )
        # written behind the reconciler's back: cache goes stale
        await store.add_transaction(
            LedgerTransaction(tenant_id=1, account_id=savings.id, amount=500, type=TransactionType.EXPENSE)
        )

    asyncio.run(seed())
    monkeypatch.setenv("BOOKSYNC_DATABASE_URL", url)
    return url


class TestStatusCommand:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_partially_paid_received(self) -> None:
        result = runner.invoke(app, ["status", "--total", "100.00", "--paid", "40.00", "--item", "5:5"])
        assert result.exit_code == 0
        assert "Partially Paid & Received" in result.stdout
        assert "$60.00" in result.stdout

    def test_draft(self) -> None:
        result = runner.invoke(app, ["status", "--total", "100", "--item", "5:0"])
        assert result.exit_code == 0
        assert "Draft" in result.stdout

    def test_cancelled(self) -> None:
        result = runner.invoke(app, ["status", "--total", "100", "--paid", "100", "--cancelled"])
        assert result.exit_code == 0
        assert "Cancelled" in result.stdout

    def test_over_receipt_rejected(self) -> None:
        result = runner.invoke(app, ["status", "--total", "100", "--item", "5:7"])
        assert result.exit_code == 1
        assert "Invalid document" in result.stdout

    def test_over_receipt_allowed(self) -> None:
        result = runner.invoke(app, ["status", "--total", "100", "--item", "5:7", "--allow-over-receipt"])
        assert result.exit_code == 0
        assert "Received" in result.stdout

    def test_bad_item(self) -> None:
        result = runner.invoke(app, ["status", "--item", "five"])
        assert result.exit_code != 0


@pytest.mark.integration
class TestLedgerCommands:
    def test_live_balances(self, database_url: str) -> None:
        result = runner.invoke(app, ["balances", "--tenant", "1"])
        assert result.exit_code == 0
        assert "$1,030.00" in result.stdout
        assert "$45.00" in result.stdout

    def test_cached_balances(self, database_url: str) -> None:
        result = runner.invoke(app, ["balances", "--tenant", "1", "--cached"])
        assert result.exit_code == 0
        assert "$50.00" in result.stdout

    def test_empty_tenant(self, database_url: str) -> None:
        result = runner.invoke(app, ["balances", "--tenant", "99"])
        assert result.exit_code == 0
        assert "No accounts" in result.stdout

    def test_reconcile_then_refresh(self, database_url: str) -> None:
        result = runner.invoke(app, ["reconcile", "--tenant", "1"])
        assert result.exit_code == 0
        assert "Balance Drift" in result.stdout

        result = runner.invoke(app, ["refresh", "--tenant", "1"])
        assert result.exit_code == 0
        assert "Refreshed 2/2" in result.stdout

        result = runner.invoke(app, ["reconcile", "--tenant", "1"])
        assert "All balances match" in result.stdout

    def test_init_db(self, database_url: str) -> None:
        result = runner.invoke(app, ["init-db"])
        assert result.exit_code == 0
        assert "Ledger tables ready" in result.stdout

    def test_stores(self) -> None:
        result = runner.invoke(app, ["stores"])
        assert result.exit_code == 0
        assert "memory" in result.stdout


@pytest.mark.integration
class TestStorageFailures:
    @pytest.fixture
    def unreachable_url(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
        url = f"sqlite:///{tmp_path / 'missing' / 'ledger.db'}"
        monkeypatch.setenv("BOOKSYNC_DATABASE_URL", url)
        return url

    @pytest.mark.parametrize("command", ["balances", "refresh", "reconcile"])
    def test_unreachable_database(self, unreachable_url: str, command: str) -> None:
        result = runner.invoke(app, [command, "--tenant", "1"])
        assert result.exit_code == 1
        assert "Opening the ledger store failed" in result.stdout
        assert isinstance(result.exception, SystemExit)
        assert "Traceback" not in result.stdout

    def test_unknown_dialect(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOOKSYNC_DATABASE_URL", "nosuchdialect://ledger")
        result = runner.invoke(app, ["balances", "--tenant", "1"])
        assert result.exit_code == 1
        assert "failed" in result.stdout
        assert isinstance(result.exception, SystemExit)

    def test_init_db_unreachable(self, unreachable_url: str) -> None:
        result = runner.invoke(app, ["init-db"])
        assert result.exit_code == 1
        assert "failed" in result.stdout
        assert isinstance(result.exception, SystemExit)

    def test_missing_tables(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BOOKSYNC_DATABASE_URL", raising=False)
        url = f"sqlite:///{tmp_path / 'empty.db'}"
        config_file = tmp_path / "booksync.yaml"
        config_file.write_text(f"store:\n  type: sql\n  options:\n    connection_string: '{url}'\n    create_tables: false\n")

        result = runner.invoke(app, ["reconcile", "--tenant", "1", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "Reconcile failed" in result.stdout
        assert isinstance(result.exception, SystemExit)

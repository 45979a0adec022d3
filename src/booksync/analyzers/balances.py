"""
Balance Reconciler — keeps cached account balances consistent with the ledger.

An account's balance is a pure function of its ledger:

    initial_balance + sum(income, transfer_in) - sum(expense, transfer_out)

``current_balance`` on the stored account is only a cache of that value.
The reconciler recomputes it, writes it back, and offers a read path that
bypasses the cache entirely.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from booksync.config import ReconcilerConfig
from booksync.errors import NotFound, StorageError, ValidationError
from booksync.models.ledger import (
    INFLOW_TYPES,
    OUTFLOW_TYPES,
    Account,
    LedgerTransaction,
    RefreshFailure,
    RefreshReport,
    Transfer,
    TransactionType,
)
from booksync.stores.base import BaseLedgerStore

logger = logging.getLogger("booksync.analyzers.balances")

_EDITABLE_FIELDS = frozenset({"amount", "type", "account_id", "description", "date", "reference"})


class BalanceReconciler:
    """Derives and persists account balances for a ledger store.

    Usage::

        reconciler = BalanceReconciler(store)
        balance = await reconciler.compute_balance(63, tenant_id=1)
        report = await reconciler.refresh_all_balances(tenant_id=1)
        if not report.ok:
            print(report.summary())
    """

    def __init__(self, store: BaseLedgerStore, config: ReconcilerConfig | None = None) -> None:
        self.store = store
        self.config = config or ReconcilerConfig()

    async def compute_balance(self, account_id: int, tenant_id: int) -> int:
        """Balance derived from the ledger, ignoring the cached value."""
        account = await self.store.get_account(account_id, tenant_id)
        if account is None:
            raise NotFound("Account", account_id, tenant_id)
        return await self._derive(account)

    async def _derive(self, account: Account) -> int:
        try:
            incoming = await self.store.sum_transactions(account.id, account.tenant_id, INFLOW_TYPES)
            outgoing = await self.store.sum_transactions(account.id, account.tenant_id, OUTFLOW_TYPES)
        except StorageError as e:
            logger.error("Error calculating balance for account %d: %s", account.id, e)
            raise
        return account.initial_balance + incoming - outgoing

    async def refresh_balance(self, account_id: int, tenant_id: int) -> int:
        """Recompute and persist one account's balance; returns the written value."""
        balance = await self.compute_balance(account_id, tenant_id)
        try:
            await self.store.update_account_balance(account_id, tenant_id, balance)
        except StorageError as e:
            logger.error("Error updating balance for account %d: %s", account_id, e)
            raise
        logger.info("Updated account %d balance to %d", account_id, balance)
        return balance

    async def refresh_all_balances(self, tenant_id: int, fail_fast: bool | None = None) -> RefreshReport:
        """Refresh every account of the tenant, each as an independent unit.

        Failures are collected into the report. With ``fail_fast`` (or the
        configured default) the first failure propagates instead.
        """
        if fail_fast is None:
            fail_fast = self.config.fail_fast

        report = RefreshReport(tenant_id=tenant_id)
        for account in await self.store.list_accounts(tenant_id):
            try:
                await self.refresh_balance(account.id, tenant_id)
            except Exception as e:
                if fail_fast:
                    raise
                logger.error("Refresh failed for account %d: %s", account.id, e)
                report.failed.append(RefreshFailure(account_id=account.id, error=e))
            else:
                report.succeeded.append(account.id)

        logger.info("%s", report.summary())
        return report

    async def list_accounts_with_live_balances(self, tenant_id: int) -> list[Account]:
        """The tenant's accounts with ``current_balance`` freshly computed."""
        live: list[Account] = []
        for account in await self.store.list_accounts(tenant_id):
            balance = await self._derive(account)
            live.append(account.model_copy(update={"current_balance": balance}))
        return live

    async def find_drift(self, tenant_id: int) -> list[tuple[Account, int, int]]:
        """Accounts whose cached balance disagrees with the ledger.

        Each entry is ``(account, cached_balance, live_balance)``.
        """
        drifted = []
        for account in await self.store.list_accounts(tenant_id):
            live = await self._derive(account)
            if live != account.current_balance:
                drifted.append((account, account.current_balance, live))
        return drifted

    # ------------------------------------------------------------------
    # Ledger writes that keep the cache in step
    # ------------------------------------------------------------------

    async def post_transaction(self, txn: LedgerTransaction) -> LedgerTransaction:
        """Record a ledger entry and refresh its account in one unit of work."""
        async with self.store.transaction():
            if await self.store.get_account(txn.account_id, txn.tenant_id) is None:
                raise NotFound("Account", txn.account_id, txn.tenant_id)
            stored = await self.store.add_transaction(txn)
            await self.refresh_balance(txn.account_id, txn.tenant_id)
        return stored

    async def post_transfer(self, transfer: Transfer) -> tuple[LedgerTransaction, LedgerTransaction]:
        """Move money between two accounts; returns ``(outgoing, incoming)`` entries."""
        async with self.store.transaction():
            for account_id in (transfer.from_account_id, transfer.to_account_id):
                if await self.store.get_account(account_id, transfer.tenant_id) is None:
                    raise NotFound("Account", account_id, transfer.tenant_id)

            outgoing = await self.store.add_transaction(
                LedgerTransaction(
                    tenant_id=transfer.tenant_id,
                    account_id=transfer.from_account_id,
                    amount=transfer.amount,
                    type=TransactionType.TRANSFER_OUT,
                    description=transfer.description,
                    reference=transfer.reference,
                )
            )
            incoming = await self.store.add_transaction(
                LedgerTransaction(
                    tenant_id=transfer.tenant_id,
                    account_id=transfer.to_account_id,
                    amount=transfer.amount,
                    type=TransactionType.TRANSFER_IN,
                    description=transfer.description,
                    reference=transfer.reference,
                )
            )
            await self.refresh_balance(transfer.from_account_id, transfer.tenant_id)
            await self.refresh_balance(transfer.to_account_id, transfer.tenant_id)
        return outgoing, incoming

    async def remove_transaction(self, transaction_id: int, tenant_id: int) -> int:
        """Delete a ledger entry and return the affected account's new balance."""
        async with self.store.transaction():
            txn = await self.store.get_transaction(transaction_id, tenant_id)
            if txn is None:
                raise NotFound("Transaction", transaction_id, tenant_id)
            await self.store.delete_transaction(transaction_id, tenant_id)
            return await self.refresh_balance(txn.account_id, tenant_id)

    async def update_transaction(
        self,
        transaction_id: int,
        tenant_id: int,
        **changes: Any,
    ) -> LedgerTransaction:
        """Edit a ledger entry and refresh every account it touched.

        ``changes`` may set ``amount``, ``type``, ``account_id``,
        ``description``, ``date`` or ``reference``. Moving an entry to another
        account refreshes both the old and the new account.
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot change {', '.join(sorted(unknown))} on a transaction",
                field=sorted(unknown)[0],
            )

        async with self.store.transaction():
            current = await self.store.get_transaction(transaction_id, tenant_id)
            if current is None:
                raise NotFound("Transaction", transaction_id, tenant_id)

            try:
                edited = LedgerTransaction.model_validate({**current.model_dump(), **changes})
            except PydanticValidationError as e:
                raise ValidationError(str(e), field=next(iter(changes), None)) from e

            if edited.account_id != current.account_id:
                if await self.store.get_account(edited.account_id, tenant_id) is None:
                    raise NotFound("Account", edited.account_id, tenant_id)

            stored = await self.store.update_transaction(edited)
            await self.refresh_balance(current.account_id, tenant_id)
            if edited.account_id != current.account_id:
                await self.refresh_balance(edited.account_id, tenant_id)
        return stored

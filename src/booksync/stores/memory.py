"""
In-memory ledger store — dict-backed, for tests and demos.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

from booksync.errors import NotFound
from booksync.models.ledger import Account, LedgerTransaction, TransactionType
from booksync.stores.base import BaseLedgerStore

logger = logging.getLogger("booksync.stores.memory")


class MemoryLedgerStore(BaseLedgerStore):
    """Keeps accounts and transactions in plain dicts.

    ``transaction()`` snapshots both dicts and restores them if the block
    raises, so a failed unit of work leaves no partial writes behind.
    """

    name = "memory"
    description = "In-process dict store"

    def __init__(self, **options: Any) -> None:
        super().__init__(**options)
        self._accounts: dict[int, Account] = {}
        self._transactions: dict[int, LedgerTransaction] = {}
        self._next_account_id = 1
        self._next_transaction_id = 1
        self._depth = 0

    async def get_account(self, account_id: int, tenant_id: int) -> Account | None:
        account = self._accounts.get(account_id)
        if account is None or account.tenant_id != tenant_id:
            return None
        return account.model_copy()

    async def list_accounts(self, tenant_id: int) -> list[Account]:
        return [
            a.model_copy()
            for a in sorted(self._accounts.values(), key=lambda a: a.id)
            if a.tenant_id == tenant_id
        ]

    async def add_account(self, tenant_id: int, name: str, initial_balance: int = 0) -> Account:
        account = Account(
            id=self._next_account_id,
            tenant_id=tenant_id,
            name=name,
            initial_balance=initial_balance,
            current_balance=initial_balance,
        )
        self._accounts[account.id] = account
        self._next_account_id += 1
        return account.model_copy()

    async def update_account_balance(self, account_id: int, tenant_id: int, new_balance: int) -> None:
        account = self._accounts.get(account_id)
        if account is None or account.tenant_id != tenant_id:
            raise NotFound("Account", account_id, tenant_id)
        self._accounts[account_id] = account.model_copy(update={"current_balance": new_balance})

    async def sum_transactions(
        self,
        account_id: int,
        tenant_id: int,
        types: Iterable[TransactionType],
    ) -> int:
        wanted = set(types)
        return sum(
            t.amount
            for t in self._transactions.values()
            if t.account_id == account_id and t.tenant_id == tenant_id and t.type in wanted
        )

    async def add_transaction(self, txn: LedgerTransaction) -> LedgerTransaction:
        stored = txn.model_copy(update={"id": self._next_transaction_id})
        self._transactions[stored.id] = stored
        self._next_transaction_id += 1
        return stored.model_copy()

    async def get_transaction(self, transaction_id: int, tenant_id: int) -> LedgerTransaction | None:
        txn = self._transactions.get(transaction_id)
        if txn is None or txn.tenant_id != tenant_id:
            return None
        return txn.model_copy()

    async def update_transaction(self, txn: LedgerTransaction) -> LedgerTransaction:
        existing = self._transactions.get(txn.id)
        if existing is None or existing.tenant_id != txn.tenant_id:
            raise NotFound("Transaction", txn.id, txn.tenant_id)
        self._transactions[txn.id] = txn.model_copy()
        return txn.model_copy()

    async def delete_transaction(self, transaction_id: int, tenant_id: int) -> bool:
        txn = self._transactions.get(transaction_id)
        if txn is None or txn.tenant_id != tenant_id:
            return False
        del self._transactions[transaction_id]
        return True

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._depth:
            # nested: the outermost block owns the snapshot
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = (
            copy.deepcopy(self._accounts),
            copy.deepcopy(self._transactions),
            self._next_account_id,
            self._next_transaction_id,
        )
        self._depth = 1
        try:
            yield
        except BaseException:
            (
                self._accounts,
                self._transactions,
                self._next_account_id,
                self._next_transaction_id,
            ) = snapshot
            logger.debug("Rolled back in-memory unit of work")
            raise
        finally:
            self._depth = 0

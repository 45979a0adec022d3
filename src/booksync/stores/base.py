"""
Base ledger store — abstract persistence interface for accounts and
ledger transactions.

Every read and write is scoped by tenant. Implementations raise
``StorageError`` when the backend fails; they never retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from booksync.models.ledger import Account, LedgerTransaction, TransactionType


class BaseLedgerStore(ABC):
    """Abstract base class for ledger stores.

    To create a new store, subclass this and implement the account and
    transaction methods plus ``transaction()``, the unit-of-work context
    manager used when a ledger write and a balance refresh must commit
    together.

    Example::

        class RedisLedgerStore(BaseLedgerStore):
            name = "redis"

            async def get_account(self, account_id, tenant_id):
                ...
    """

    name: str = "base"
    description: str = "Base ledger store"

    def __init__(self, **options: Any) -> None:
        self.options = options

    @abstractmethod
    async def get_account(self, account_id: int, tenant_id: int) -> Account | None:
        """Return the account, or ``None`` if it is not in the tenant's scope."""
        ...

    @abstractmethod
    async def list_accounts(self, tenant_id: int) -> list[Account]:
        """All accounts owned by the tenant, ordered by id."""
        ...

    @abstractmethod
    async def add_account(self, tenant_id: int, name: str, initial_balance: int = 0) -> Account:
        """Create an account whose cached balance starts at ``initial_balance``."""
        ...

    @abstractmethod
    async def update_account_balance(self, account_id: int, tenant_id: int, new_balance: int) -> None:
        """Overwrite the cached ``current_balance`` of one account."""
        ...

    @abstractmethod
    async def sum_transactions(
        self,
        account_id: int,
        tenant_id: int,
        types: Iterable[TransactionType],
    ) -> int:
        """Sum of ``amount`` over the account's transactions of the given types (0 if none)."""
        ...

    @abstractmethod
    async def add_transaction(self, txn: LedgerTransaction) -> LedgerTransaction:
        """Persist a ledger entry and return it with its id assigned."""
        ...

    @abstractmethod
    async def get_transaction(self, transaction_id: int, tenant_id: int) -> LedgerTransaction | None:
        ...

    @abstractmethod
    async def update_transaction(self, txn: LedgerTransaction) -> LedgerTransaction:
        """Overwrite the stored entry with the same id and tenant; ``NotFound`` if absent."""
        ...

    @abstractmethod
    async def delete_transaction(self, transaction_id: int, tenant_id: int) -> bool:
        """Delete a ledger entry; ``False`` if there was nothing to delete."""
        ...

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Unit of work: everything inside commits together or not at all."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Check store health and connectivity."""
        try:
            await self.list_accounts(tenant_id=0)
            return {"store": self.name, "healthy": True, "error": None}
        except Exception as e:
            return {"store": self.name, "healthy": False, "error": str(e)}

"""Stores package — persistence for accounts and ledger transactions."""
from booksync.stores.base import BaseLedgerStore
from booksync.stores.memory import MemoryLedgerStore
from booksync.stores.registry import create_store
from booksync.stores.sql import SQLLedgerStore

__all__ = [
    "BaseLedgerStore",
    "MemoryLedgerStore",
    "SQLLedgerStore",
    "create_store",
]

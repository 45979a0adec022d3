"""
SQL ledger store — accounts and transactions in any SQL database.

Works with PostgreSQL, MySQL, SQLite, etc. via SQLAlchemy. Tenants are
stored in the ``business_id`` column.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Iterator
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from booksync.errors import NotFound, StorageError
from booksync.models.ledger import Account, LedgerTransaction, TransactionType
from booksync.stores.base import BaseLedgerStore

logger = logging.getLogger("booksync.stores.sql")

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("business_id", Integer, nullable=False, index=True),
    Column("name", Text, nullable=False),
    Column("description", Text),
    Column("initial_balance", Integer, default=0),  # cents
    Column("current_balance", Integer, default=0),  # cents
    Column("is_active", Boolean, default=True),
    Column("created_at", DateTime, default=datetime.now),
    Column("updated_at", DateTime, default=datetime.now),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("business_id", Integer, nullable=False, index=True),
    Column("account_id", Integer, ForeignKey("accounts.id"), nullable=False, index=True),
    Column("amount", Integer, nullable=False),  # cents, unsigned
    Column("type", String(32), nullable=False),
    Column("description", Text),
    Column("date", DateTime, default=datetime.now),
    Column("reference", Text),
    Column("created_at", DateTime, default=datetime.now),
)


class SQLLedgerStore(BaseLedgerStore):
    """Ledger store on top of a SQLAlchemy engine.

    Usage::

        store = SQLLedgerStore(connection_string="postgresql://...")
        account = await store.get_account(63, tenant_id=1)

    Any ``SQLAlchemyError`` surfaces as ``StorageError``.
    """

    name = "sql"
    description = "SQLAlchemy-backed store"

    def __init__(
        self,
        connection_string: str = "sqlite://",
        echo: bool = False,
        create_tables: bool = True,
        **options: Any,
    ) -> None:
        super().__init__(**options)
        self.connection_string = connection_string
        self._conn: Connection | None = None
        try:
            self.engine: Engine = create_engine(connection_string, echo=echo)
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot create engine: {e}") from e
        if create_tables:
            self.create_tables()

    def create_tables(self) -> None:
        with self._connect() as conn:
            metadata.create_all(conn)
        logger.info("Ensured ledger tables on %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        """Current unit-of-work connection, or a fresh auto-committing one."""
        try:
            if self._conn is not None:
                yield self._conn
            else:
                with self.engine.begin() as conn:
                    yield conn
        except SQLAlchemyError as e:
            logger.error("SQL store operation failed: %s", e)
            raise StorageError(str(e)) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._conn is not None:
            yield
            return
        with self._connect() as conn:
            self._conn = conn
            try:
                yield
            finally:
                self._conn = None

    @staticmethod
    def _to_account(row: Any) -> Account:
        return Account(
            id=row.id,
            tenant_id=row.business_id,
            name=row.name or "",
            initial_balance=row.initial_balance or 0,
            current_balance=row.current_balance or 0,
            is_active=True if row.is_active is None else bool(row.is_active),
        )

    @staticmethod
    def _to_transaction(row: Any) -> LedgerTransaction:
        return LedgerTransaction(
            id=row.id,
            tenant_id=row.business_id,
            account_id=row.account_id,
            amount=row.amount,
            type=TransactionType(row.type),
            description=row.description or "",
            date=row.date,
            reference=row.reference,
        )

    async def get_account(self, account_id: int, tenant_id: int) -> Account | None:
        query = select(accounts).where(
            accounts.c.id == account_id,
            accounts.c.business_id == tenant_id,
        )
        with self._connect() as conn:
            row = conn.execute(query).first()
        return self._to_account(row) if row is not None else None

    async def list_accounts(self, tenant_id: int) -> list[Account]:
        query = select(accounts).where(accounts.c.business_id == tenant_id).order_by(accounts.c.id)
        with self._connect() as conn:
            rows = conn.execute(query).all()
        return [self._to_account(row) for row in rows]

    async def add_account(self, tenant_id: int, name: str, initial_balance: int = 0) -> Account:
        stmt = insert(accounts).values(
            business_id=tenant_id,
            name=name,
            initial_balance=initial_balance,
            current_balance=initial_balance,
        )
        with self._connect() as conn:
            result = conn.execute(stmt)
            account_id = result.inserted_primary_key[0]
        return Account(
            id=account_id,
            tenant_id=tenant_id,
            name=name,
            initial_balance=initial_balance,
            current_balance=initial_balance,
        )

    async def update_account_balance(self, account_id: int, tenant_id: int, new_balance: int) -> None:
        stmt = (
            update(accounts)
            .where(accounts.c.id == account_id, accounts.c.business_id == tenant_id)
            .values(current_balance=new_balance, updated_at=datetime.now())
        )
        with self._connect() as conn:
            result = conn.execute(stmt)
        if result.rowcount == 0:
            raise NotFound("Account", account_id, tenant_id)

    async def sum_transactions(
        self,
        account_id: int,
        tenant_id: int,
        types: Iterable[TransactionType],
    ) -> int:
        type_values = [TransactionType(t).value for t in types]
        if not type_values:
            return 0
        query = select(func.coalesce(func.sum(transactions.c.amount), 0)).where(
            transactions.c.business_id == tenant_id,
            transactions.c.account_id == account_id,
            transactions.c.type.in_(type_values),
        )
        with self._connect() as conn:
            total = conn.execute(query).scalar_one()
        return int(total)

    async def add_transaction(self, txn: LedgerTransaction) -> LedgerTransaction:
        stmt = insert(transactions).values(
            business_id=txn.tenant_id,
            account_id=txn.account_id,
            amount=txn.amount,
            type=txn.type.value,
            description=txn.description,
            date=txn.date,
            reference=txn.reference,
        )
        with self._connect() as conn:
            result = conn.execute(stmt)
            txn_id = result.inserted_primary_key[0]
        return txn.model_copy(update={"id": txn_id})

    async def get_transaction(self, transaction_id: int, tenant_id: int) -> LedgerTransaction | None:
        query = select(transactions).where(
            transactions.c.id == transaction_id,
            transactions.c.business_id == tenant_id,
        )
        with self._connect() as conn:
            row = conn.execute(query).first()
        return self._to_transaction(row) if row is not None else None

    async def update_transaction(self, txn: LedgerTransaction) -> LedgerTransaction:
        stmt = (
            update(transactions)
            .where(transactions.c.id == txn.id, transactions.c.business_id == txn.tenant_id)
            .values(
                account_id=txn.account_id,
                amount=txn.amount,
                type=txn.type.value,
                description=txn.description,
                date=txn.date,
                reference=txn.reference,
            )
        )
        with self._connect() as conn:
            result = conn.execute(stmt)
        if result.rowcount == 0:
            raise NotFound("Transaction", txn.id, txn.tenant_id)
        return txn

    async def delete_transaction(self, transaction_id: int, tenant_id: int) -> bool:
        stmt = delete(transactions).where(
            transactions.c.id == transaction_id,
            transactions.c.business_id == tenant_id,
        )
        with self._connect() as conn:
            result = conn.execute(stmt)
        return result.rowcount > 0

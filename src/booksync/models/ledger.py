"""
Ledger models — accounts, transactions, transfers, refresh reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TransactionType(str, Enum):
    """Ledger entry types; the type decides the sign in a balance."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"

    @property
    def sign(self) -> int:
        return 1 if self in INFLOW_TYPES else -1


INFLOW_TYPES = frozenset({TransactionType.INCOME, TransactionType.TRANSFER_IN})
OUTFLOW_TYPES = frozenset({TransactionType.EXPENSE, TransactionType.TRANSFER_OUT})


class Account(BaseModel):
    """A money account owned by a tenant.

    ``current_balance`` is a cache; it must always be recomputable from
    ``initial_balance`` and the account's transactions.
    """

    id: int
    tenant_id: int
    name: str = ""
    initial_balance: int = 0
    current_balance: int = 0
    is_active: bool = True


class LedgerTransaction(BaseModel):
    """A single ledger entry against one account. ``amount`` is unsigned cents."""

    id: int | None = None
    tenant_id: int
    account_id: int
    amount: int = Field(ge=0)
    type: TransactionType
    description: str = ""
    date: datetime = Field(default_factory=datetime.now)
    reference: str | None = None

    @property
    def signed_amount(self) -> int:
        return self.type.sign * self.amount


class Transfer(BaseModel):
    """Money moved between two accounts of the same tenant."""

    tenant_id: int
    from_account_id: int
    to_account_id: int
    amount: int = Field(gt=0)
    description: str = ""
    reference: str | None = None

    @model_validator(mode="after")
    def _distinct_accounts(self) -> Transfer:
        if self.from_account_id == self.to_account_id:
            raise ValueError("Transfer source and destination must differ")
        return self


@dataclass
class RefreshFailure:
    """One account whose balance refresh failed."""

    account_id: int
    error: Exception

    def __str__(self) -> str:
        return f"account {self.account_id}: {self.error}"


@dataclass
class RefreshReport:
    """Outcome of refreshing every account of a tenant."""

    tenant_id: int
    succeeded: list[int] = field(default_factory=list)
    failed: list[RefreshFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def failed_ids(self) -> list[int]:
        return [f.account_id for f in self.failed]

    def summary(self) -> str:
        text = f"Refreshed {len(self.succeeded)}/{self.total} accounts for tenant {self.tenant_id}"
        if self.failed:
            text += f"; {len(self.failed)} failed ({', '.join(str(i) for i in self.failed_ids)})"
        return text

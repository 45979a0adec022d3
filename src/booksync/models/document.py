"""
Document models — purchase bills and sales invoices tracked for payment
and fulfillment progress.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from booksync.errors import ValidationError


class DocumentKind(str, Enum):
    """Which side of the business a document sits on."""

    PURCHASE_BILL = "purchase_bill"
    SALES_INVOICE = "sales_invoice"

    @property
    def payment_field(self) -> str:
        """Key holding the settled amount on a stored transaction record."""
        if self is DocumentKind.PURCHASE_BILL:
            return "paymentMade"
        return "paymentReceived"

    @property
    def received_field(self) -> str:
        """Key holding the delivered quantity on a stored line item."""
        if self is DocumentKind.PURCHASE_BILL:
            return "quantityReceived"
        return "quantityFulfilled"

    @property
    def other(self) -> DocumentKind:
        if self is DocumentKind.PURCHASE_BILL:
            return DocumentKind.SALES_INVOICE
        return DocumentKind.PURCHASE_BILL


def _whole(value: Any, field: str) -> int:
    """A stored count or cent amount as an int; ``None`` is zero."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number, got {value!r}", field=field)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a whole number, got {value!r}", field=field)
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be a whole number, got {value!r}", field=field) from e


class DocumentLine(BaseModel):
    """A single line on a bill or invoice.

    Quantities are not range-checked here; the status classifier's guard
    rejects negative or over-received lines.
    """

    description: str = ""
    quantity_ordered: int = 0
    quantity_received: int = 0


class Document(BaseModel):
    """A purchase bill or sales invoice. Amounts are in cents."""

    id: int | None = None
    kind: DocumentKind = DocumentKind.PURCHASE_BILL
    total_amount: int = 0
    amount_paid: int = 0
    items: list[DocumentLine] = Field(default_factory=list)
    is_cancelled: bool = False

    @property
    def total_ordered(self) -> int:
        return sum(line.quantity_ordered for line in self.items)

    @property
    def total_received(self) -> int:
        return sum(line.quantity_received for line in self.items)

    @property
    def balance_due(self) -> int:
        return max(self.total_amount - self.amount_paid, 0)

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        kind: DocumentKind = DocumentKind.PURCHASE_BILL,
    ) -> Document:
        """Build a document from a stored transaction record.

        Records use the dashboard's camelCase keys: ``amount``, ``paymentMade``
        (bills) or ``paymentReceived`` (invoices), ``status`` and ``items`` with
        ``quantity`` plus ``quantityReceived`` (bills) or ``quantityFulfilled``
        (invoices); the other side's key is read only when the own key is
        absent. Missing numbers count as zero, fractional ones are rejected.
        """
        items = record.get("items") or []
        lines = []
        for i, item in enumerate(items):
            received = item.get(kind.received_field)
            if received is None:
                received = item.get(kind.other.received_field)
            lines.append(
                DocumentLine(
                    description=item.get("description") or "",
                    quantity_ordered=_whole(item.get("quantity"), f"items[{i}].quantity"),
                    quantity_received=_whole(received, f"items[{i}].{kind.received_field}"),
                )
            )
        return cls(
            id=record.get("id"),
            kind=kind,
            total_amount=_whole(record.get("amount"), "amount"),
            amount_paid=_whole(record.get(kind.payment_field), kind.payment_field),
            items=lines,
            is_cancelled=record.get("status") == "cancelled",
        )

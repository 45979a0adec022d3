"""
Document Status — composite lifecycle status for bills and invoices.

A document progresses along two independent dimensions:
- payment: unpaid, partially paid, fully paid
- fulfillment: nothing received, partially received, fully received

The pair maps onto exactly one of nine composite labels through a fixed
table. Cancellation overrides both dimensions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from booksync.config import StatusConfig
from booksync.errors import ValidationError
from booksync.models.document import Document, DocumentKind, DocumentLine

logger = logging.getLogger("booksync.analyzers.document_status")


class PaymentProgress(str, Enum):
    """How much of the document total has been settled."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    FULL = "full"


class FulfillmentProgress(str, Enum):
    """How many of the ordered units have been received."""

    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


class DocumentStatus(str, Enum):
    """Composite status shown for a bill or invoice."""

    DRAFT = "draft"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    PAID_RECEIVED = "paid_received"
    PAID_PARTIALLY_RECEIVED = "paid_partially_received"
    PARTIALLY_PAID_RECEIVED = "partially_paid_received"
    PARTIALLY_PAID_PARTIALLY_RECEIVED = "partially_paid_partially_received"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_TABLE: dict[tuple[PaymentProgress, FulfillmentProgress], DocumentStatus] = {
    (PaymentProgress.UNPAID, FulfillmentProgress.NONE): DocumentStatus.DRAFT,
    (PaymentProgress.UNPAID, FulfillmentProgress.PARTIAL): DocumentStatus.PARTIALLY_RECEIVED,
    (PaymentProgress.UNPAID, FulfillmentProgress.FULL): DocumentStatus.RECEIVED,
    (PaymentProgress.PARTIAL, FulfillmentProgress.NONE): DocumentStatus.PARTIALLY_PAID,
    (PaymentProgress.PARTIAL, FulfillmentProgress.PARTIAL): DocumentStatus.PARTIALLY_PAID_PARTIALLY_RECEIVED,
    (PaymentProgress.PARTIAL, FulfillmentProgress.FULL): DocumentStatus.PARTIALLY_PAID_RECEIVED,
    (PaymentProgress.FULL, FulfillmentProgress.NONE): DocumentStatus.PAID,
    (PaymentProgress.FULL, FulfillmentProgress.PARTIAL): DocumentStatus.PAID_PARTIALLY_RECEIVED,
    (PaymentProgress.FULL, FulfillmentProgress.FULL): DocumentStatus.PAID_RECEIVED,
}

_COMPONENTS = {status: pair for pair, status in STATUS_TABLE.items()}

STATUS_LABELS: dict[DocumentStatus, str] = {
    DocumentStatus.DRAFT: "Draft",
    DocumentStatus.PARTIALLY_PAID: "Partially Paid",
    DocumentStatus.PAID: "Paid",
    DocumentStatus.PARTIALLY_RECEIVED: "Partially Received",
    DocumentStatus.RECEIVED: "Received",
    DocumentStatus.PAID_RECEIVED: "Paid & Received",
    DocumentStatus.PAID_PARTIALLY_RECEIVED: "Paid & Partially Received",
    DocumentStatus.PARTIALLY_PAID_RECEIVED: "Partially Paid & Received",
    DocumentStatus.PARTIALLY_PAID_PARTIALLY_RECEIVED: "Partially Paid & Partially Received",
    DocumentStatus.CANCELLED: "Cancelled",
}


def classify_payment(total_amount: int, amount_paid: int) -> PaymentProgress:
    """Payment dimension. Overpayment counts as FULL."""
    if amount_paid <= 0:
        return PaymentProgress.UNPAID
    if total_amount > 0 and amount_paid >= total_amount:
        return PaymentProgress.FULL
    return PaymentProgress.PARTIAL


def classify_fulfillment(items: Iterable[DocumentLine]) -> FulfillmentProgress:
    """Fulfillment dimension, over the summed quantities of all lines."""
    total_ordered = 0
    total_received = 0
    for line in items:
        total_ordered += line.quantity_ordered
        total_received += line.quantity_received

    if total_received <= 0:
        return FulfillmentProgress.NONE
    if total_ordered > 0 and total_received >= total_ordered:
        return FulfillmentProgress.FULL
    return FulfillmentProgress.PARTIAL


def breakdown(status: DocumentStatus) -> tuple[PaymentProgress, FulfillmentProgress] | None:
    """The payment and fulfillment progress a status was derived from.

    Returns ``None`` for ``CANCELLED``, which carries no progress.
    """
    return _COMPONENTS.get(status)


class StatusClassifier:
    """Derives the composite status of a bill or invoice.

    Usage::

        classifier = StatusClassifier()
        status = classifier.classify(document)
        print(status.label)  # "Partially Paid & Received"
    """

    def __init__(self, config: StatusConfig | None = None) -> None:
        self.config = config or StatusConfig()

    def classify(self, document: Document) -> DocumentStatus:
        if document.is_cancelled:
            return DocumentStatus.CANCELLED

        self.validate(document)

        payment = classify_payment(document.total_amount, document.amount_paid)
        fulfillment = classify_fulfillment(document.items)

        if (
            self.config.warn_on_overpayment
            and document.total_amount > 0
            and document.amount_paid > document.total_amount
        ):
            logger.warning(
                "Document %s overpaid: %d paid against total %d",
                document.id, document.amount_paid, document.total_amount,
            )

        return STATUS_TABLE[(payment, fulfillment)]

    def classify_record(
        self,
        record: Mapping[str, Any],
        kind: DocumentKind = DocumentKind.PURCHASE_BILL,
    ) -> DocumentStatus:
        """Classify a stored transaction record (see ``Document.from_record``)."""
        return self.classify(Document.from_record(record, kind))

    def validate(self, document: Document) -> None:
        """Reject inputs that would otherwise produce a misleading status."""
        if document.total_amount < 0:
            raise ValidationError(
                f"total_amount must be >= 0, got {document.total_amount}", field="total_amount"
            )
        if document.amount_paid < 0:
            raise ValidationError(
                f"amount_paid must be >= 0, got {document.amount_paid}", field="amount_paid"
            )
        for i, line in enumerate(document.items):
            if line.quantity_ordered < 0:
                raise ValidationError(
                    f"items[{i}].quantity_ordered must be >= 0, got {line.quantity_ordered}",
                    field=f"items[{i}].quantity_ordered",
                )
            if line.quantity_received < 0:
                raise ValidationError(
                    f"items[{i}].quantity_received must be >= 0, got {line.quantity_received}",
                    field=f"items[{i}].quantity_received",
                )
            if self.config.reject_over_receipt and line.quantity_received > line.quantity_ordered:
                raise ValidationError(
                    f"items[{i}] received {line.quantity_received} of {line.quantity_ordered} ordered",
                    field=f"items[{i}].quantity_received",
                )


_default_classifier = StatusClassifier()


def classify(document: Document) -> DocumentStatus:
    """Classify with the default configuration."""
    return _default_classifier.classify(document)

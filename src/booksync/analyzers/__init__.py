"""
booksync analyzers — pure computation over documents and the ledger.

Status classification runs on in-memory documents; balance reconciliation
reads and writes through a ledger store.
"""

from booksync.analyzers.balances import BalanceReconciler
from booksync.analyzers.document_status import (
    STATUS_LABELS,
    STATUS_TABLE,
    DocumentStatus,
    FulfillmentProgress,
    PaymentProgress,
    StatusClassifier,
    breakdown,
    classify,
    classify_fulfillment,
    classify_payment,
)

__all__ = [
    "BalanceReconciler",
    "DocumentStatus",
    "FulfillmentProgress",
    "PaymentProgress",
    "STATUS_LABELS",
    "STATUS_TABLE",
    "StatusClassifier",
    "breakdown",
    "classify",
    "classify_fulfillment",
    "classify_payment",
]

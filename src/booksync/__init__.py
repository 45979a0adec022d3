"""
booksync — bookkeeping core for small-business dashboards.

Document status classification and tenant-scoped account balance
reconciliation over a pluggable ledger store.
"""

__version__ = "0.1.0"
__all__ = ["BalanceReconciler", "DocumentStatus", "StatusClassifier", "classify"]

from booksync.analyzers.balances import BalanceReconciler  # noqa: E402
from booksync.analyzers.document_status import DocumentStatus, StatusClassifier, classify  # noqa: E402

"""
Payments package - Razorpay orders and verification.

- gateway.py      : REST order creation + HMAC signature verification
- transactions.py : order bookkeeping (in-memory or SQL)
"""
from typing import Optional

from tilechat.core.config import get_settings
from tilechat.payments.gateway import (
    PLAN_PRICING,
    RazorpayGateway,
    compute_signature,
    verify_payment_signature,
)
from tilechat.payments.transactions import (
    InMemoryTransactionStore,
    SQLTransactionStore,
    TransactionRecord,
    TransactionStore,
)

_transaction_store: Optional[TransactionStore] = None


def get_transaction_store() -> TransactionStore:
    """Get or create the process-wide transaction store."""
    global _transaction_store
    if _transaction_store is None:
        if get_settings().persistent_storage:
            _transaction_store = SQLTransactionStore()
        else:
            _transaction_store = InMemoryTransactionStore()
    return _transaction_store


def reset_transaction_store() -> None:
    global _transaction_store
    _transaction_store = None


__all__ = [
    "PLAN_PRICING",
    "RazorpayGateway",
    "compute_signature",
    "verify_payment_signature",
    "InMemoryTransactionStore",
    "SQLTransactionStore",
    "TransactionRecord",
    "TransactionStore",
    "get_transaction_store",
    "reset_transaction_store",
]

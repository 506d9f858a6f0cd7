"""
Quota package - token ledger behind the "payment required" check.

Use `get_quota_gate()` to get the implementation matching configuration:
- SQLQuotaGate when PERSISTENT_STORAGE=true
- InMemoryQuotaGate otherwise
"""
from typing import Optional

from tilechat.core.config import get_settings
from tilechat.quota.gate import InMemoryQuotaGate, QuotaGate, ensure_within_quota
from tilechat.quota.persistent import SQLQuotaGate

_quota_gate: Optional[QuotaGate] = None


def get_quota_gate() -> QuotaGate:
    """Get or create the process-wide quota gate."""
    global _quota_gate
    if _quota_gate is None:
        settings = get_settings()
        if settings.persistent_storage:
            _quota_gate = SQLQuotaGate(free_token_limit=settings.free_token_limit)
        else:
            _quota_gate = InMemoryQuotaGate(free_token_limit=settings.free_token_limit)
    return _quota_gate


def reset_quota_gate() -> None:
    """Forget the process-wide quota gate (for testing)."""
    global _quota_gate
    _quota_gate = None


__all__ = [
    "QuotaGate",
    "InMemoryQuotaGate",
    "SQLQuotaGate",
    "ensure_within_quota",
    "get_quota_gate",
    "reset_quota_gate",
]

"""
Quota Gate - Per-identity token ledger consulted around every chat call.

The gate answers two questions: how many tokens has an identity used, and
what is its ceiling. Orchestration must not start once ``used >= ceiling``.

Increments are atomic: two concurrent requests for the same identity both
land in the total, never one overwriting the other.
"""
import asyncio
from typing import Dict, Protocol

from tilechat.core.exceptions import QuotaExhausted
from tilechat.core.logging_config import get_logger

logger = get_logger(__name__)


class QuotaGate(Protocol):
    async def get_used(self, identity: str) -> int:
        ...

    async def add_used(self, identity: str, delta: int) -> int:
        """Atomically add ``delta`` and return the new total."""
        ...

    async def get_ceiling(self, identity: str) -> int:
        ...

    async def grant(self, identity: str, tokens: int) -> int:
        """Raise the identity's ceiling by ``tokens`` and return the new ceiling."""
        ...


async def ensure_within_quota(gate: QuotaGate, identity: str) -> int:
    """
    Reject the request if the identity has reached its ceiling.

    Returns:
        Tokens used so far

    Raises:
        QuotaExhausted: If ``used >= ceiling``
    """
    used = await gate.get_used(identity)
    ceiling = await gate.get_ceiling(identity)

    if used >= ceiling:
        logger.warning(f"User {identity} exceeded token limit ({used} >= {ceiling})")
        raise QuotaExhausted(identity, used, ceiling)

    return used


class InMemoryQuotaGate:
    """
    Process-local ledger for development and tests.

    Example:
        >>> gate = InMemoryQuotaGate(free_token_limit=1000)
        >>> await gate.add_used("user-1", 250)
        250
        >>> await gate.get_ceiling("user-1")
        1000
    """

    def __init__(self, free_token_limit: int = 100000):
        self.free_token_limit = free_token_limit
        self._used: Dict[str, int] = {}
        self._bonus: Dict[str, int] = {}
        self._lock = asyncio.Lock()

        logger.info(f"InMemoryQuotaGate initialized: free_token_limit={free_token_limit}")

    async def get_used(self, identity: str) -> int:
        return self._used.get(identity, 0)

    async def add_used(self, identity: str, delta: int) -> int:
        async with self._lock:
            total = self._used.get(identity, 0) + delta
            self._used[identity] = total
        return total

    async def get_ceiling(self, identity: str) -> int:
        return self.free_token_limit + self._bonus.get(identity, 0)

    async def grant(self, identity: str, tokens: int) -> int:
        async with self._lock:
            bonus = self._bonus.get(identity, 0) + tokens
            self._bonus[identity] = bonus
        logger.info(f"Granted {tokens} tokens to {identity}")
        return self.free_token_limit + bonus

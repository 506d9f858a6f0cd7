"""
Persistent Quota Gate - token_usage table as the ledger.

Every increment is a single ``UPDATE ... SET total_tokens = total_tokens + :delta``
so the database serializes concurrent writers. The first write for an
identity inserts the row; the unique ``user_id`` constraint turns a race
between two first writes into an IntegrityError, and the loser retries
through the UPDATE path.
"""
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from starlette.concurrency import run_in_threadpool

from tilechat.core.exceptions import DatabaseError
from tilechat.core.logging_config import get_logger
from tilechat.database.connection import DatabaseConnection, get_database
from tilechat.database.models import TokenUsage

logger = get_logger(__name__)

_MAX_WRITE_ATTEMPTS = 3


class SQLQuotaGate:
    """Database-backed QuotaGate."""

    def __init__(self, db: Optional[DatabaseConnection] = None, free_token_limit: int = 100000):
        self.db = db or get_database()
        self.free_token_limit = free_token_limit
        logger.info(f"SQLQuotaGate initialized: free_token_limit={free_token_limit}")

    async def get_used(self, identity: str) -> int:
        return await run_in_threadpool(self._read_column, identity, TokenUsage.total_tokens)

    async def add_used(self, identity: str, delta: int) -> int:
        return await run_in_threadpool(
            self._increment, identity, "total_tokens", delta,
            lambda: TokenUsage(user_id=identity, total_tokens=delta, bonus_tokens=0),
        )

    async def get_ceiling(self, identity: str) -> int:
        bonus = await run_in_threadpool(self._read_column, identity, TokenUsage.bonus_tokens)
        return self.free_token_limit + bonus

    async def grant(self, identity: str, tokens: int) -> int:
        bonus = await run_in_threadpool(
            self._increment, identity, "bonus_tokens", tokens,
            lambda: TokenUsage(user_id=identity, total_tokens=0, bonus_tokens=tokens),
        )
        logger.info(f"Granted {tokens} tokens to {identity} (bonus now {bonus})")
        return self.free_token_limit + bonus

    # ==================== SYNC HELPERS (run in threadpool) ====================

    def _read_column(self, identity: str, column) -> int:
        with self.db.get_session() as session:
            value = session.execute(
                select(column).where(TokenUsage.user_id == identity)
            ).scalar_one_or_none()
        return int(value or 0)

    def _increment(
        self,
        identity: str,
        column_name: str,
        delta: int,
        new_row: Callable[[], TokenUsage],
    ) -> int:
        column = getattr(TokenUsage, column_name)

        for attempt in range(1, _MAX_WRITE_ATTEMPTS + 1):
            try:
                with self.db.get_session() as session:
                    result = session.execute(
                        update(TokenUsage)
                        .where(TokenUsage.user_id == identity)
                        .values({column: column + delta, TokenUsage.updated_at: datetime.utcnow()})
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount == 0:
                        session.add(new_row())
                        session.flush()

                    value = session.execute(
                        select(column).where(TokenUsage.user_id == identity)
                    ).scalar_one()
                return int(value)
            except IntegrityError:
                logger.debug(
                    f"token_usage row for {identity} created concurrently "
                    f"(attempt {attempt}), retrying as update"
                )

        raise DatabaseError(f"Could not update token usage for {identity}")

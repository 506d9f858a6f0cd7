"""
Transaction Store - bookkeeping for Razorpay orders.

An order is recorded as ``created`` when it is opened and flipped to
``paid`` once its signature has been verified.
"""
import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Optional, Protocol

from sqlalchemy import select
from starlette.concurrency import run_in_threadpool

from tilechat.core.logging_config import get_logger
from tilechat.database.connection import DatabaseConnection, get_database
from tilechat.database.models import PaymentTransaction

logger = get_logger(__name__)

STATUS_CREATED = "created"
STATUS_PAID = "paid"


@dataclass(frozen=True)
class TransactionRecord:
    user_id: str
    order_id: str
    amount: int
    currency: str
    status: str
    plan: Optional[str] = None
    payment_id: Optional[str] = None


class TransactionStore(Protocol):
    async def record_order(self, record: TransactionRecord) -> None:
        ...

    async def mark_paid(self, order_id: str, payment_id: str) -> Optional[TransactionRecord]:
        """Flip an order to paid. Returns the previous record, or None if unknown."""
        ...


class InMemoryTransactionStore:
    def __init__(self):
        self._records: Dict[str, TransactionRecord] = {}
        self._lock = asyncio.Lock()

    async def record_order(self, record: TransactionRecord) -> None:
        async with self._lock:
            self._records[record.order_id] = record

    async def mark_paid(self, order_id: str, payment_id: str) -> Optional[TransactionRecord]:
        async with self._lock:
            previous = self._records.get(order_id)
            if previous is not None:
                self._records[order_id] = replace(previous, status=STATUS_PAID, payment_id=payment_id)
        return previous

    async def get(self, order_id: str) -> Optional[TransactionRecord]:
        return self._records.get(order_id)


class SQLTransactionStore:
    """transactions table backed store."""

    def __init__(self, db: Optional[DatabaseConnection] = None):
        self.db = db or get_database()

    async def record_order(self, record: TransactionRecord) -> None:
        await run_in_threadpool(self._record_order, record)

    async def mark_paid(self, order_id: str, payment_id: str) -> Optional[TransactionRecord]:
        return await run_in_threadpool(self._mark_paid, order_id, payment_id)

    async def get(self, order_id: str) -> Optional[TransactionRecord]:
        return await run_in_threadpool(self._get, order_id)

    def _record_order(self, record: TransactionRecord) -> None:
        now = datetime.utcnow()
        with self.db.get_session() as session:
            session.add(PaymentTransaction(
                user_id=record.user_id,
                plan=record.plan,
                razorpay_order_id=record.order_id,
                razorpay_payment_id=record.payment_id,
                amount=record.amount,
                currency=record.currency,
                status=record.status,
                created_at=now,
                updated_at=now,
            ))
        logger.debug(f"Recorded order {record.order_id} for {record.user_id}")

    def _mark_paid(self, order_id: str, payment_id: str) -> Optional[TransactionRecord]:
        with self.db.get_session() as session:
            row = self._find(session, order_id)
            if row is None:
                return None
            previous = self._to_record(row)
            row.status = STATUS_PAID
            row.razorpay_payment_id = payment_id
            row.updated_at = datetime.utcnow()
        return previous

    def _get(self, order_id: str) -> Optional[TransactionRecord]:
        with self.db.get_session() as session:
            row = self._find(session, order_id)
            return self._to_record(row) if row is not None else None

    @staticmethod
    def _find(session, order_id: str) -> Optional[PaymentTransaction]:
        return session.execute(
            select(PaymentTransaction).where(PaymentTransaction.razorpay_order_id == order_id)
        ).scalar_one_or_none()

    @staticmethod
    def _to_record(row: PaymentTransaction) -> TransactionRecord:
        return TransactionRecord(
            user_id=row.user_id,
            order_id=row.razorpay_order_id,
            amount=row.amount,
            currency=row.currency,
            status=row.status,
            plan=row.plan,
            payment_id=row.razorpay_payment_id,
        )

"""
Payment Service - plan purchases that raise a user's token ceiling.

Flow:
1. create_order: price the plan, open a Razorpay order, record it as 'created'
2. verify_payment: check the checkout signature, mark the order 'paid',
   grant the bonus allowance to the buyer

A paid order is granted once; replaying a verified payment is a no-op.
"""
from typing import Any, Dict, Optional

from tilechat.core.config import get_settings
from tilechat.core.exceptions import (
    InvalidPlan,
    InvalidSignature,
    PaymentGatewayError,
    PaymentVerificationError,
    TileChatException,
)
from tilechat.core.logging_config import get_logger
from tilechat.payments import (
    PLAN_PRICING,
    RazorpayGateway,
    TransactionRecord,
    TransactionStore,
    get_transaction_store,
)
from tilechat.payments.gateway import DEFAULT_CURRENCY
from tilechat.payments.transactions import STATUS_CREATED, STATUS_PAID
from tilechat.quota import QuotaGate, get_quota_gate

logger = get_logger(__name__)


class PaymentService:
    def __init__(
        self,
        gateway: RazorpayGateway,
        transactions: TransactionStore,
        quota_gate: QuotaGate,
        bonus_tokens: int = 200000,
    ):
        self.gateway = gateway
        self.transactions = transactions
        self.quota_gate = quota_gate
        self.bonus_tokens = bonus_tokens

    async def create_order(self, user_id: str, plan: Optional[str]) -> Dict[str, Any]:
        """
        Raises:
            InvalidPlan: If the plan is not in the price list
            PaymentGatewayError: If the order cannot be created or recorded
        """
        amount = PLAN_PRICING.get(plan or "")
        if amount is None:
            raise InvalidPlan(plan)

        order = await self.gateway.create_order(
            amount,
            currency=DEFAULT_CURRENCY,
            notes={"userId": user_id, "plan": plan},
        )

        try:
            await self.transactions.record_order(TransactionRecord(
                user_id=user_id,
                order_id=order["id"],
                amount=amount,
                currency=DEFAULT_CURRENCY,
                status=STATUS_CREATED,
                plan=plan,
            ))
        except Exception as e:
            logger.error(f"Failed to record order for {user_id}: {e}")
            raise PaymentGatewayError("Order created but could not be recorded", details=str(e)) from e

        logger.info(f"Order created for {user_id}: plan={plan}, amount={amount / 100:.2f} {DEFAULT_CURRENCY}")
        return order

    async def verify_payment(
        self,
        user_id: str,
        order_id: str,
        payment_id: str,
        signature: Optional[str],
    ) -> int:
        """
        Returns:
            The buyer's token ceiling after the grant

        Raises:
            InvalidSignature: If the checkout signature does not match
            PaymentVerificationError: If recording the payment fails
        """
        if not self.gateway.verify_signature(order_id, payment_id, signature):
            logger.warning(f"Invalid Razorpay signature for order {order_id}")
            raise InvalidSignature()

        try:
            previous = await self.transactions.mark_paid(order_id, payment_id)
            buyer = user_id
            if previous is None:
                logger.warning(f"Verified payment for unknown order {order_id}; granting to {user_id}")
                await self.transactions.record_order(TransactionRecord(
                    user_id=user_id,
                    order_id=order_id,
                    amount=0,
                    currency=DEFAULT_CURRENCY,
                    status=STATUS_PAID,
                    payment_id=payment_id,
                ))
            else:
                buyer = previous.user_id
                if previous.status == STATUS_PAID:
                    logger.info(f"Order {order_id} already paid; skipping grant")
                    return await self.quota_gate.get_ceiling(buyer)

            ceiling = await self.quota_gate.grant(buyer, self.bonus_tokens)
        except TileChatException:
            raise
        except Exception as e:
            logger.error(f"Payment verification error for order {order_id}: {e}")
            raise PaymentVerificationError(details=str(e)) from e

        logger.info(f"Payment verified for {buyer}: +{self.bonus_tokens} tokens (limit {ceiling})")
        return ceiling


_payment_service: Optional[PaymentService] = None


def get_payment_service() -> PaymentService:
    global _payment_service
    if _payment_service is None:
        settings = get_settings()
        _payment_service = PaymentService(
            gateway=RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret),
            transactions=get_transaction_store(),
            quota_gate=get_quota_gate(),
            bonus_tokens=settings.payment_bonus_tokens,
        )
    return _payment_service


def reset_payment_service() -> None:
    global _payment_service
    _payment_service = None

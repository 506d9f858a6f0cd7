"""
Razorpay Gateway - order creation and payment signature verification.

Orders are created through the Razorpay REST API with HTTP basic auth.
Checkout returns ``razorpay_signature`` = HMAC-SHA256 over
``"<order_id>|<payment_id>"`` keyed with the API secret; verification
recomputes it and compares in constant time.
"""
import hashlib
import hmac
import time
from typing import Any, Dict, Optional

import httpx

from tilechat.core.exceptions import PaymentGatewayError
from tilechat.core.logging_config import LoggerMixin

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"

# Prices in paise
PLAN_PRICING: Dict[str, int] = {
    "college": 9900,
    "lite": 29900,
    "pro": 59900,
}

DEFAULT_CURRENCY = "INR"


def compute_signature(order_id: str, payment_id: str, key_secret: str) -> str:
    """HMAC-SHA256 hex digest Razorpay attaches to a completed checkout."""
    return hmac.new(
        key=key_secret.encode("utf-8"),
        msg=f"{order_id}|{payment_id}".encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def verify_payment_signature(
    order_id: str,
    payment_id: str,
    signature: Optional[str],
    key_secret: str,
) -> bool:
    if not signature or not key_secret:
        return False
    expected = compute_signature(order_id, payment_id, key_secret)
    return hmac.compare_digest(expected, signature)


class RazorpayGateway(LoggerMixin):
    """
    Minimal Razorpay client.

    Example:
        >>> gateway = RazorpayGateway("rzp_test_key", "secret")
        >>> order = await gateway.create_order(29900, notes={"userId": "u1", "plan": "lite"})
        >>> order["id"]
        'order_Nx...'
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = RAZORPAY_API_BASE,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def create_order(
        self,
        amount: int,
        currency: str = DEFAULT_CURRENCY,
        receipt: Optional[str] = None,
        notes: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Create an order.

        Raises:
            PaymentGatewayError: If credentials are missing or Razorpay rejects the call
        """
        if not self.key_id or not self.key_secret:
            raise PaymentGatewayError("Razorpay credentials are not configured")

        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt or f"rcpt_{int(time.time() * 1000)}",
            "notes": notes or {},
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post("/orders", json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(f"Razorpay rejected order: status={e.response.status_code} body={e.response.text[:200]}")
            raise PaymentGatewayError(details=e.response.text[:500]) from e
        except httpx.HTTPError as e:
            self.logger.error(f"Razorpay request failed: {e}")
            raise PaymentGatewayError(details=str(e)) from e

        order = response.json()
        self.logger.debug(f"Razorpay order {order.get('id')} opened for amount={amount}")
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        return verify_payment_signature(order_id, payment_id, signature, self.key_secret)

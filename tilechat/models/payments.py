"""
Request and Response models for the payment endpoints.

Razorpay checkout posts its own snake_case field names back, so only the
caller identity uses the camelCase ``userId`` alias.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    plan: Optional[str] = Field(default=None, examples=["lite"])


class CreateOrderResponse(BaseModel):
    order: Dict[str, Any]


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")


class VerifyPaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token_limit: Optional[int] = Field(
        default=None,
        alias="tokenLimit",
        description="The user's token ceiling after the grant",
    )

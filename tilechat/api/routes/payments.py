"""
Payment Routes - Razorpay order creation and verification.

- POST /api/create-order   : open an order for a plan
- POST /api/verify-payment : verify checkout signature and grant tokens
"""
from fastapi import APIRouter, Depends

from tilechat.core.exceptions import ValidationError
from tilechat.core.validators import validate_user_id
from tilechat.models.chat import ErrorResponse
from tilechat.models.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from tilechat.services.payment_service import PaymentService, get_payment_service

router = APIRouter(
    prefix="/api",
    tags=["Payments"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid plan or signature"},
        500: {"model": ErrorResponse, "description": "Gateway or verification failure"},
    },
)


def _require_user(user_id) -> str:
    is_valid, error = validate_user_id(user_id)
    if not is_valid:
        raise ValidationError(error, field="userId")
    return user_id.strip()


@router.post("/create-order", response_model=CreateOrderResponse, summary="Create a Razorpay order")
async def create_order(
    request: CreateOrderRequest,
    payment_service: PaymentService = Depends(get_payment_service),
) -> CreateOrderResponse:
    user_id = _require_user(request.user_id)
    order = await payment_service.create_order(user_id, request.plan)
    return CreateOrderResponse(order=order)


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    summary="Verify a Razorpay payment and upgrade the user's token limit",
)
async def verify_payment(
    request: VerifyPaymentRequest,
    payment_service: PaymentService = Depends(get_payment_service),
) -> VerifyPaymentResponse:
    user_id = _require_user(request.user_id)
    if not request.razorpay_order_id or not request.razorpay_payment_id:
        raise ValidationError("razorpay_order_id and razorpay_payment_id are required")

    ceiling = await payment_service.verify_payment(
        user_id,
        request.razorpay_order_id,
        request.razorpay_payment_id,
        request.razorpay_signature,
    )
    return VerifyPaymentResponse(success=True, token_limit=ceiling)

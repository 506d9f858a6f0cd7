"""
Custom Exceptions - Application-specific error classes.

Every error that reaches an HTTP caller subclasses TileChatException:
- Each exception carries a status code and a machine-readable error code
- The API layer turns them into ``{"error", "message", "details"}`` bodies
- No stack traces leaked in production
"""
from typing import Optional


class TileChatException(Exception):
    """
    Base exception for all caller-facing errors.

    Subclass this for specific error types.
    """
    status_code: int = 500
    error_code: str = "server_error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to error response dict."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(TileChatException):
    """Raised when a required field is missing or malformed."""
    status_code = 400
    error_code = "missing_fields"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details=f"field={field}" if field else None)
        self.field = field


class QuotaExhausted(TileChatException):
    """Raised before orchestration when an identity has used its allowance."""
    status_code = 402
    error_code = "quota_exhausted"

    def __init__(self, user_id: str, used: int, ceiling: int):
        super().__init__(
            message="Free token limit reached. Please upgrade your plan.",
            details=f"used={used}, limit={ceiling}"
        )
        self.user_id = user_id
        self.used = used
        self.ceiling = ceiling


class PlanExhausted(TileChatException):
    """
    Raised when every planned completion attempt failed or came back empty.

    ``details`` carries the last underlying failure message for diagnostics.
    """
    status_code = 500
    error_code = "model_failure"

    def __init__(self, last_error: Optional[str] = None):
        super().__init__(
            message="The assistant could not produce a reply",
            details=last_error or "no_response_from_model"
        )


class SessionAccessError(TileChatException):
    """Raised when a session is missing or belongs to another identity."""
    status_code = 404
    error_code = "session_not_found"

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session not found: {session_id[:8]}...",
            details=f"session_id={session_id}"
        )


class DatabaseError(TileChatException):
    """Raised when a storage operation the caller depends on fails."""
    status_code = 503
    error_code = "database_error"

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message)


class InvalidPlan(TileChatException):
    """Raised when an order is requested for an unknown plan."""
    status_code = 400
    error_code = "invalid_plan"

    def __init__(self, plan: Optional[str]):
        super().__init__(f"Unknown plan: {plan}", details=f"plan={plan}")


class InvalidSignature(TileChatException):
    """Raised when a payment signature does not match."""
    status_code = 400
    error_code = "invalid_signature"

    def __init__(self):
        super().__init__("Payment signature verification failed")


class PaymentGatewayError(TileChatException):
    """Raised when the payment gateway rejects or fails an order request."""
    status_code = 500
    error_code = "razorpay_error"

    def __init__(self, message: str = "Payment gateway request failed", details: Optional[str] = None):
        super().__init__(message, details=details)


class PaymentVerificationError(TileChatException):
    """Raised when a verified payment cannot be recorded."""
    status_code = 500
    error_code = "verify_payment_error"

    def __init__(self, details: Optional[str] = None):
        super().__init__("Payment verification failed", details=details)

"""
Services module - Business logic between the HTTP layer and collaborators.

- No HTTP concerns (those belong in api/)
- No SQL (that belongs in database/, quota/, memory/, payments/)
"""
from tilechat.services.chat_service import (
    ChatService,
    get_chat_service,
    reset_chat_service,
    shutdown_chat_service,
)
from tilechat.services.payment_service import (
    PaymentService,
    get_payment_service,
    reset_payment_service,
)

__all__ = [
    "ChatService",
    "get_chat_service",
    "reset_chat_service",
    "shutdown_chat_service",
    "PaymentService",
    "get_payment_service",
    "reset_payment_service",
]

"""
API Routes module - Endpoint definitions.

- chat.py     : POST /api/chat
- payments.py : Razorpay order/verification endpoints
- sessions.py : message history
- health.py   : liveness/readiness probes
"""
from tilechat.api.routes.chat import router as chat_router
from tilechat.api.routes.health import router as health_router
from tilechat.api.routes.payments import router as payments_router
from tilechat.api.routes.sessions import router as sessions_router

__all__ = [
    "chat_router",
    "health_router",
    "payments_router",
    "sessions_router",
]

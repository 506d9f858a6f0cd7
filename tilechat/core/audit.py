"""
Audit Middleware - Request/response logging for monitoring.

Logs method, path, status code and duration of every request.
Request bodies are never logged: they carry user messages and
payment identifiers.
"""
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from tilechat.core.logging_config import get_logger

logger = get_logger(__name__)

_QUIET_PATHS = ("/", "/health", "/health/ready")


class AuditMiddleware(BaseHTTPMiddleware):
    """Log timing and status for every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"REQUEST FAILED: {method} {path} "
                f"client={client_ip} duration={duration:.3f}s error={e}"
            )
            raise

        duration = time.perf_counter() - start_time
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        if path in _QUIET_PATHS:
            logger.debug(f"PROBE: {path} status={response.status_code} duration={duration:.3f}s")
            return response

        if response.status_code >= 500:
            log_fn = logger.error
        elif response.status_code >= 400:
            log_fn = logger.warning
        else:
            log_fn = logger.info

        log_fn(
            f"REQUEST: {method} {path} "
            f"status={response.status_code} duration={duration:.3f}s client={client_ip}"
        )
        return response

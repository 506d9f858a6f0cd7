"""
Health Check Routes - liveness and readiness probes.
"""
from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool

from tilechat import __version__
from tilechat.core.config import get_settings
from tilechat.core.logging_config import get_logger
from tilechat.models.chat import HealthResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse, summary="Liveness check")
async def health_check() -> HealthResponse:
    """The process is up and serving requests."""
    logger.debug("Health check requested")
    return HealthResponse(status="healthy", version=__version__)


@router.get("/ready", response_model=HealthResponse, summary="Readiness check")
async def readiness_check() -> HealthResponse:
    """
    Verify dependencies the chat path needs.

    With persistent storage enabled the database must answer a trivial
    query; the completion provider is not probed (that would cost tokens).
    """
    settings = get_settings()
    checks = {"storage": "persistent" if settings.persistent_storage else "memory"}

    if settings.persistent_storage:
        from tilechat.database import get_database
        healthy = await run_in_threadpool(get_database().check_connection)
        checks["database"] = "ok" if healthy else "unavailable"
        if not healthy:
            return HealthResponse(status="degraded", version=__version__, checks=checks)

    return HealthResponse(status="ready", version=__version__, checks=checks)

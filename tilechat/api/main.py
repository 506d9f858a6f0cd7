"""
FastAPI Application Entry Point.

Creates and configures the FastAPI application:
1. Logging and settings initialization
2. Middleware (audit logging, CORS)
3. Exception handlers mapping TileChatException to JSON error bodies
4. Router registration
5. Startup/shutdown (table creation, flushing background writes)

Run with: uvicorn tilechat.api.main:app --reload
"""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tilechat import __version__
from tilechat.api.routes import chat_router, health_router, payments_router, sessions_router
from tilechat.core.audit import AuditMiddleware
from tilechat.core.config import get_settings
from tilechat.core.exceptions import TileChatException
from tilechat.core.logging_config import get_logger, setup_logging
from tilechat.services.chat_service import shutdown_chat_service


# Initialize logging before anything else
settings = get_settings()
setup_logging(settings.log_level, Path(settings.log_dir) if settings.log_dir else None)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    - Startup: create tables when persistent storage is enabled
    - Shutdown: wait for background message log writes, close the pool
    """
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")
    logger.info(
        f"LLM provider={settings.llm_provider}, model={settings.llm_model}, "
        f"fallback={settings.llm_fallback_model}, live_reload={settings.llm_model_live_reload}"
    )
    logger.info(f"Free token limit: {settings.free_token_limit}")

    if settings.persistent_storage:
        from tilechat.database import init_tables
        try:
            init_tables()
        except Exception as e:
            logger.error(f"Failed to auto-init tables: {e}")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await shutdown_chat_service()

    if settings.persistent_storage:
        from tilechat.database import reset_database
        reset_database()


app = FastAPI(
    title="Multi-Tile Chat Backend",
    description="""
    Chat relay between the app, an OpenAI-compatible completion provider,
    the token ledger and Razorpay.

    - **Chat**: replies through a retry/fallback chain of models
    - **Quota**: per-user token ceiling, raised by plan purchases
    - **Payments**: Razorpay order creation and signature verification
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ============================================================
# Middleware
# ============================================================

if settings.enable_audit_logging:
    app.add_middleware(AuditMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(TileChatException)
async def tilechat_exception_handler(request: Request, exc: TileChatException):
    """Render caller-facing errors as {error, message, details}."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON bodies get the same 400 shape as missing fields."""
    return JSONResponse(
        status_code=400,
        content={
            "error": "missing_fields",
            "message": "Request body could not be parsed",
            "details": str(exc.errors()) if settings.is_development() else None,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Handle uncaught exceptions globally.

    Detailed error information is only included in development mode.
    """
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "server_error",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.is_development() else None,
        },
    )


# ============================================================
# Routers
# ============================================================

app.include_router(health_router)
app.include_router(chat_router)
app.include_router(payments_router)
app.include_router(sessions_router)


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "Multi-Tile Chat Backend Running",
        "version": __version__,
        "documentation": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tilechat.api.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development(),
    )

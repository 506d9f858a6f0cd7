"""
Configuration management via environment variables.

This module loads configuration from a .env file using python-dotenv.
All configuration values are accessed through the Settings class, which is
built once at startup and passed by reference to the components that need it.

The one value that may change between calls is the configured model name:
see ``env_model_source`` for the live-reload variant used by the planner.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional, Tuple

from dotenv import load_dotenv


# Load .env file from project root
# This must happen before accessing os.environ
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_FALLBACK_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Application identifier for logging
        app_env: Environment name (development, staging, production)
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (empty = <project>/logs)
        database_url: SQLAlchemy connection string
        persistent_storage: Use database-backed quota/message stores
        llm_provider: Completion provider ("openai" or "groq")
        openai_api_key: API key for OpenAI
        groq_api_key: API key for Groq
        llm_model: Operator-configured primary model
        llm_fallback_model: Known-good general model tried last
        llm_model_live_reload: Re-read LLM_MODEL from the environment on every call
        llm_temperature: Sampling temperature for general-family models
        narrow_model_markers: Substrings identifying narrow-family models
        free_token_limit: Token ceiling for an identity without purchases
        payment_bonus_tokens: Allowance granted per verified payment
        razorpay_key_id: Razorpay API key id
        razorpay_key_secret: Razorpay API secret (also signs payments)
        enable_audit_logging: Log every HTTP request
        cors_origins: Allowed CORS origins
        port: Port used when running the module directly
    """
    # Application settings
    app_name: str
    app_env: str
    log_level: str
    log_dir: str

    # Storage settings
    database_url: str
    persistent_storage: bool

    # LLM settings
    llm_provider: str
    openai_api_key: str
    groq_api_key: str
    llm_model: str
    llm_fallback_model: str
    llm_model_live_reload: bool
    llm_temperature: float
    narrow_model_markers: Tuple[str, ...]

    # Quota settings
    free_token_limit: int
    payment_bonus_tokens: int

    # Payment settings
    razorpay_key_id: str
    razorpay_key_secret: str

    # HTTP settings
    enable_audit_logging: bool
    cors_origins: Tuple[str, ...]
    port: int

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"


def _get_env(key: str, default: Optional[str] = None) -> str:
    """
    Get environment variable with optional default.

    Raises:
        ValueError: If required variable is not set and no default provided
    """
    value = os.environ.get(key, default)
    if value is None:
        raise ValueError(
            f"Required environment variable '{key}' is not set. "
            f"Please check your .env file."
        )
    return value


def _get_bool(key: str, default: str) -> bool:
    return _get_env(key, default).strip().lower() in ("1", "true", "yes", "on")


def _get_list(key: str, default: str) -> Tuple[str, ...]:
    raw = _get_env(key, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _normalize_database_url(database_url: str) -> str:
    """Map legacy dialect prefixes onto the names SQLAlchemy expects."""
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are read once at startup; call ``get_settings.cache_clear()``
    to force a re-read (tests do this after patching the environment).

    Raises:
        ValueError: If a required environment variable is missing
    """
    provider = _get_env("LLM_PROVIDER", "openai").strip().lower()

    return Settings(
        # Application
        app_name=_get_env("APP_NAME", "TileChatBackend"),
        app_env=_get_env("APP_ENV", "development"),
        log_level=_get_env("LOG_LEVEL", "INFO"),
        log_dir=_get_env("LOG_DIR", ""),

        # Storage
        database_url=_normalize_database_url(
            _get_env("DATABASE_URL", "sqlite:///./tilechat.db")
        ),
        persistent_storage=_get_bool("PERSISTENT_STORAGE", "true"),

        # LLM - only the active provider's key is mandatory
        llm_provider=provider,
        openai_api_key=_get_env("OPENAI_API_KEY", None if provider == "openai" else ""),
        groq_api_key=_get_env("GROQ_API_KEY", None if provider == "groq" else ""),
        llm_model=_get_env("LLM_MODEL", DEFAULT_MODEL),
        llm_fallback_model=_get_env("LLM_FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL),
        llm_model_live_reload=_get_bool("LLM_MODEL_LIVE_RELOAD", "false"),
        llm_temperature=float(_get_env("LLM_TEMPERATURE", "1.0")),
        narrow_model_markers=_get_list("NARROW_MODEL_MARKERS", "gpt-5-nano"),

        # Quota
        free_token_limit=int(_get_env("FREE_TOKEN_LIMIT", "100000")),
        payment_bonus_tokens=int(_get_env("PAYMENT_BONUS_TOKENS", "200000")),

        # Payments
        razorpay_key_id=_get_env("RAZORPAY_KEY_ID", ""),
        razorpay_key_secret=_get_env("RAZORPAY_KEY_SECRET", ""),

        # HTTP
        enable_audit_logging=_get_bool("ENABLE_AUDIT_LOGGING", "true"),
        cors_origins=_get_list("CORS_ORIGINS", "*"),
        port=int(_get_env("PORT", "3000")),
    )


def static_model_source(model: str) -> Callable[[], str]:
    """Model source that always returns the value captured at startup."""
    def source() -> str:
        return model
    return source


def env_model_source(key: str = "LLM_MODEL", default: str = DEFAULT_MODEL) -> Callable[[], str]:
    """
    Model source that re-reads the environment on every call.

    Lets an operator change LLM_MODEL on a running deployment (platforms
    that inject env vars on redeploy) without rebuilding Settings.
    """
    def source() -> str:
        return os.environ.get(key) or default
    return source


def get_model_source(settings: Settings) -> Callable[[], str]:
    """Pick the model source matching the live-reload setting."""
    if settings.llm_model_live_reload:
        return env_model_source("LLM_MODEL", settings.llm_model)
    return static_model_source(settings.llm_model)

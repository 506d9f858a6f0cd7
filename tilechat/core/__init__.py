"""
Core module - Configuration and cross-cutting concerns.

- config.py         : Environment-based configuration management
- logging_config.py : Centralized logging setup
- exceptions.py     : Caller-facing error hierarchy
- validators.py     : Input sanitization
- audit.py          : Request audit middleware
"""
from tilechat.core.config import (
    get_settings,
    Settings,
    get_model_source,
    static_model_source,
    env_model_source,
)
from tilechat.core.logging_config import setup_logging, get_logger, LoggerMixin

__all__ = [
    "get_settings",
    "Settings",
    "get_model_source",
    "static_model_source",
    "env_model_source",
    "setup_logging",
    "get_logger",
    "LoggerMixin",
]

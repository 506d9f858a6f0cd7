"""
API module - FastAPI application and routes.

- Request validation and parsing
- Error-to-JSON mapping
- Route definitions
"""
from tilechat.api.main import app

__all__ = ["app"]

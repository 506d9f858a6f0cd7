"""
Multi-tile chat backend.

Package layout by responsibility:
- api/       : FastAPI routes and HTTP handling
- core/      : Configuration, logging, errors and validation
- services/  : Chat and payment business logic
- llm/       : Completion-request orchestration (plan, build, call, fall back)
- quota/     : Per-user token ledger
- memory/    : Append-only message log
- payments/  : Razorpay gateway and transaction records
- database/  : SQLAlchemy engine and ORM models
- models/    : Pydantic request/response schemas
"""

__version__ = "1.0.0"

"""
Database module - SQLAlchemy access layer.

- connection.py : engine and session lifecycle
- models.py     : ORM tables (sessions, messages, token usage, transactions)
- init_db.py    : table creation
"""
from tilechat.database.connection import DatabaseConnection, get_database, reset_database
from tilechat.database.models import (
    Base,
    ConversationMessage,
    ConversationSession,
    PaymentTransaction,
    TokenUsage,
)
from tilechat.database.init_db import init_tables, drop_tables

__all__ = [
    "DatabaseConnection",
    "get_database",
    "reset_database",
    "Base",
    "ConversationMessage",
    "ConversationSession",
    "PaymentTransaction",
    "TokenUsage",
    "init_tables",
    "drop_tables",
]

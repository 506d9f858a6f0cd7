"""
Database Initialization - Create the tables this service owns.

Called from the application lifespan when persistent storage is enabled.
"""
from typing import Optional

from tilechat.core.logging_config import get_logger
from tilechat.database.connection import DatabaseConnection, get_database
from tilechat.database.models import Base

logger = get_logger(__name__)


def init_tables(db: Optional[DatabaseConnection] = None) -> bool:
    """Create all tables if they don't exist."""
    db = db or get_database()
    try:
        Base.metadata.create_all(db.engine)
    except Exception as e:
        logger.error(f"Failed to initialize tables: {e}")
        raise

    logger.info("Database tables initialized successfully")
    return True


def drop_tables(db: Optional[DatabaseConnection] = None) -> bool:
    """Drop all tables (use with caution; meant for local development)."""
    db = db or get_database()
    Base.metadata.drop_all(db.engine)
    logger.warning("Database tables dropped")
    return True


if __name__ == "__main__":
    print("Initializing tables...")
    init_tables()
    print("Done!")

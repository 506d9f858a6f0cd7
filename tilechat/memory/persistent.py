"""
Persistent Message Log - chat_sessions / chat_messages tables.

The session row is created on the first write to it, so callers never
need a separate "create session" step.
"""
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from tilechat.core.exceptions import SessionAccessError
from tilechat.core.logging_config import get_logger
from tilechat.database.connection import DatabaseConnection, get_database
from tilechat.database.models import ConversationMessage, ConversationSession
from tilechat.memory.message_log import LogEntry

logger = get_logger(__name__)


class SQLMessageLog:
    """Database-backed MessageLog."""

    def __init__(self, db: Optional[DatabaseConnection] = None):
        self.db = db or get_database()
        logger.info("SQLMessageLog initialized")

    async def append(self, entries: Sequence[LogEntry]) -> None:
        if entries:
            await run_in_threadpool(self._append, list(entries))

    async def history(
        self, session_id: str, user_id: str, limit: int = 50
    ) -> Optional[List[LogEntry]]:
        return await run_in_threadpool(self._history, session_id, user_id, limit)

    async def session_owner(self, session_id: str) -> Optional[str]:
        return await run_in_threadpool(self._session_owner, session_id)

    def _append(self, entries: List[LogEntry]) -> None:
        with self.db.get_session() as db_session:
            for entry in entries:
                conversation = self._get_or_create_session(db_session, entry)
                db_session.add(ConversationMessage(
                    session_id=entry.session_id,
                    role=entry.role,
                    content=entry.content,
                    tokens=entry.token_count,
                    created_at=entry.created_at,
                ))
                conversation.message_count += 1
                conversation.last_activity = datetime.utcnow()

        logger.debug(f"[PERSISTENT] Saved {len(entries)} messages: session={entries[0].session_id}")

    def _session_owner(self, session_id: str) -> Optional[str]:
        with self.db.get_session() as db_session:
            return db_session.execute(
                select(ConversationSession.user_id).where(ConversationSession.id == session_id)
            ).scalar_one_or_none()

    def _history(self, session_id: str, user_id: str, limit: int) -> Optional[List[LogEntry]]:
        with self.db.get_session() as db_session:
            conversation = db_session.get(ConversationSession, session_id)
            if conversation is None or conversation.user_id != user_id:
                return None

            rows = db_session.execute(
                select(ConversationMessage)
                .where(ConversationMessage.session_id == session_id)
                .order_by(ConversationMessage.id.desc())
                .limit(limit)
            ).scalars().all()

            return [
                LogEntry(
                    session_id=session_id,
                    user_id=user_id,
                    role=row.role,
                    content=row.content,
                    token_count=row.tokens,
                    tile_id=conversation.tile_id,
                    created_at=row.created_at,
                )
                for row in reversed(rows)
            ]

    def _get_or_create_session(self, db_session: Session, entry: LogEntry) -> ConversationSession:
        conversation = db_session.get(ConversationSession, entry.session_id)

        if conversation is None:
            conversation = ConversationSession(
                id=entry.session_id,
                user_id=entry.user_id,
                tile_id=entry.tile_id,
                created_at=datetime.utcnow(),
                last_activity=datetime.utcnow(),
                message_count=0,
            )
            db_session.add(conversation)
            db_session.flush()
            logger.info(f"[PERSISTENT] Created session {entry.session_id} for {entry.user_id}")
        elif conversation.user_id != entry.user_id:
            raise SessionAccessError(entry.session_id)

        return conversation

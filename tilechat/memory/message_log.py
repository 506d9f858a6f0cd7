"""
Message Log - Append-only record of exchanged chat messages.

Writes happen after a successful completion and are best-effort: the chat
service schedules them in the background and never lets a failure reach
the user. Sessions are scoped to an identity; a session id owned by one
user is invisible to every other user.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from tilechat.core.exceptions import SessionAccessError
from tilechat.core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LogEntry:
    """
    One message to record.

    Attributes:
        session_id: Conversation the message belongs to
        user_id: Identity owning the conversation
        role: 'user' or 'assistant'
        content: Message text
        token_count: Completion tokens (assistant rows only)
        tile_id: UI tile the session was opened from
        created_at: When the message was produced
    """
    session_id: str
    user_id: str
    role: str
    content: str
    token_count: int = 0
    tile_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, object]:
        return {
            "role": self.role,
            "content": self.content,
            "tokens": self.token_count,
            "createdAt": self.created_at.isoformat(),
        }


class MessageLog(Protocol):
    async def append(self, entries: Sequence[LogEntry]) -> None:
        ...

    async def history(
        self, session_id: str, user_id: str, limit: int = 50
    ) -> Optional[List[LogEntry]]:
        """Messages oldest first, or None if the user has no such session."""
        ...

    async def session_owner(self, session_id: str) -> Optional[str]:
        """Identity that opened the session, or None if it was never written."""
        ...


class InMemoryMessageLog:
    """Process-local message log for development and tests."""

    def __init__(self, max_messages_per_session: int = 200):
        self.max_messages = max_messages_per_session
        self._owners: Dict[str, str] = {}
        self._messages: Dict[str, List[LogEntry]] = {}
        self._lock = asyncio.Lock()

        logger.info(f"InMemoryMessageLog initialized: max_messages={max_messages_per_session}")

    async def append(self, entries: Sequence[LogEntry]) -> None:
        async with self._lock:
            for entry in entries:
                owner = self._owners.setdefault(entry.session_id, entry.user_id)
                if owner != entry.user_id:
                    raise SessionAccessError(entry.session_id)

                messages = self._messages.setdefault(entry.session_id, [])
                messages.append(entry)
                if len(messages) > self.max_messages:
                    del messages[: len(messages) - self.max_messages]

        logger.debug(f"Logged {len(entries)} messages")

    async def history(
        self, session_id: str, user_id: str, limit: int = 50
    ) -> Optional[List[LogEntry]]:
        if self._owners.get(session_id) != user_id:
            return None
        return list(self._messages.get(session_id, [])[-limit:])

    async def session_owner(self, session_id: str) -> Optional[str]:
        return self._owners.get(session_id)

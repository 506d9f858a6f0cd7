"""
Session Routes - read back a conversation from the message log.

- GET /api/sessions/{session_id}/messages?userId=...
"""
from fastapi import APIRouter, Depends, Query

from tilechat.core.exceptions import SessionAccessError, ValidationError
from tilechat.core.validators import validate_user_id
from tilechat.memory import MessageLog, get_message_log
from tilechat.models.chat import HistoryMessage, SessionHistoryResponse

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


@router.get(
    "/{session_id}/messages",
    response_model=SessionHistoryResponse,
    summary="Get a session's message history",
)
async def get_session_messages(
    session_id: str,
    user_id: str = Query(default="", alias="userId"),
    limit: int = Query(default=50, ge=1, le=200),
    message_log: MessageLog = Depends(get_message_log),
) -> SessionHistoryResponse:
    is_valid, error = validate_user_id(user_id)
    if not is_valid:
        raise ValidationError(error, field="userId")

    entries = await message_log.history(session_id, user_id, limit=limit)
    if entries is None:
        raise SessionAccessError(session_id)

    return SessionHistoryResponse(
        session_id=session_id,
        messages=[
            HistoryMessage(
                role=e.role,
                content=e.content,
                tokens=e.token_count,
                created_at=e.created_at,
            )
            for e in entries
        ],
        message_count=len(entries),
    )

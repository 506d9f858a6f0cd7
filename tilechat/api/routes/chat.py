"""
Chat Routes - POST /api/chat.

Validation happens here, before the quota gate: a missing ``userId`` or an
empty ``message`` never reaches the service.
"""
from fastapi import APIRouter, Depends

from tilechat.core.exceptions import ValidationError
from tilechat.core.logging_config import get_logger
from tilechat.core.validators import validate_message, validate_session_id, validate_user_id
from tilechat.models.chat import ChatRequest, ChatResponse, ErrorResponse
from tilechat.services.chat_service import ChatService, get_chat_service

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Chat"],
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed fields"},
        402: {"model": ErrorResponse, "description": "Token quota exhausted"},
        404: {"model": ErrorResponse, "description": "Session belongs to another user"},
        500: {"model": ErrorResponse, "description": "Model failure or server error"},
    },
)


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Send a message to the assistant",
    description="""
    Send a message and receive the assistant's reply.

    The request is rejected with **402 quota_exhausted** once the user's
    cumulative token usage reaches their limit. If every model in the
    retry/fallback chain fails, the response is **500 model_failure** with
    the last provider error in `details`.
    """,
)
async def send_message(
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    is_valid, error = validate_user_id(request.user_id)
    if not is_valid:
        raise ValidationError(error, field="userId")

    is_valid, sanitized_message, error = validate_message(request.message)
    if not is_valid:
        raise ValidationError(error, field="message")

    is_valid, error = validate_session_id(request.session_id)
    if not is_valid:
        raise ValidationError(error, field="sessionId")

    return await chat_service.process_message(
        ChatRequest(
            user_id=request.user_id.strip(),
            session_id=request.session_id,
            tile_id=request.tile_id,
            message=sanitized_message,
        )
    )

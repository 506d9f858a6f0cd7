"""
Request and Response models for the Chat API.

The mobile client speaks camelCase (``userId``, ``sessionId``, ``tileId``);
fields are snake_case in Python and aliased on the wire.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """
    Request model for POST /api/chat.

    ``user_id`` and ``message`` are checked by the route rather than by
    pydantic so a missing field yields the ``missing_fields`` error body.
    """
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(
        default=None,
        alias="userId",
        description="Quota identity of the caller",
    )
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Conversation (tile) session; generated when omitted",
    )
    tile_id: Optional[str] = Field(
        default=None,
        alias="tileId",
        description="UI tile the conversation belongs to",
    )
    message: Optional[str] = Field(
        default=None,
        description="The user's message",
        examples=["Mujhe ek chhota sa poem likh do"],
    )


class ChatResponse(BaseModel):
    """Successful chat reply."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="The assistant's reply")
    tokens_used: int = Field(..., alias="tokensUsed", description="Tokens spent on this reply")
    total_tokens: Optional[int] = Field(
        default=None,
        alias="totalTokens",
        description="Cumulative tokens for this user; null if the ledger update failed",
    )
    session_id: str = Field(..., alias="sessionId")
    model_used: str = Field(..., alias="modelUsed")


class HistoryMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: str
    content: str
    tokens: int = 0
    created_at: datetime = Field(..., alias="createdAt")


class SessionHistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    messages: List[HistoryMessage]
    message_count: int = Field(..., alias="messageCount")


class HealthResponse(BaseModel):
    """Response model for the /health endpoints."""
    status: str = Field(default="healthy")
    version: str
    checks: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    message: Optional[str] = None
    details: Optional[str] = None

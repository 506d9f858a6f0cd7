"""
Chat Service - Business logic for one chat exchange.

This service orchestrates the chat flow:
1. Rejects the request if the user's token quota is used up
2. Runs the completion orchestrator (retry/fallback chain)
3. Logs the exchange to the message log in the background
4. Adds the spent tokens to the quota ledger
5. Returns the reply with token counts

Routes stay thin; everything here is testable without HTTP.
"""
import asyncio
import uuid
from typing import Optional, Set

from tilechat.core.config import get_model_source, get_settings
from tilechat.core.exceptions import PlanExhausted, SessionAccessError
from tilechat.core.logging_config import get_logger
from tilechat.llm import (
    AttemptPlanner,
    CompletionOrchestrator,
    create_completion_client,
    default_families,
)
from tilechat.memory import LogEntry, MessageLog, get_message_log
from tilechat.models.chat import ChatRequest, ChatResponse
from tilechat.quota import QuotaGate, ensure_within_quota, get_quota_gate

logger = get_logger(__name__)


class ChatService:
    """
    Service for handling chat exchanges against the user's token quota.

    Example:
        >>> service = ChatService(orchestrator, quota_gate, message_log)
        >>> reply = await service.process_message(
        ...     ChatRequest(user_id="u1", message="Hello!")
        ... )
        >>> reply.tokens_used, reply.total_tokens
        (42, 42)
    """

    def __init__(
        self,
        orchestrator: CompletionOrchestrator,
        quota_gate: QuotaGate,
        message_log: MessageLog,
    ):
        self.orchestrator = orchestrator
        self.quota_gate = quota_gate
        self.message_log = message_log
        self._pending: Set[asyncio.Task] = set()
        logger.info("ChatService initialized")

    async def process_message(self, request: ChatRequest) -> ChatResponse:
        """
        Produce a reply for an already-validated request.

        Raises:
            SessionAccessError: If the session belongs to another user
            QuotaExhausted: If the user has reached their token ceiling
            PlanExhausted: If no model produced a non-empty reply
        """
        user_id = request.user_id
        if request.session_id:
            session_id = request.session_id
            await self._check_session_owner(session_id, user_id)
        else:
            session_id = self._generate_session_id()

        logger.info(
            f"Incoming message: user={user_id}, session={session_id[:8]}..., "
            f"message_length={len(request.message)}"
        )

        await ensure_within_quota(self.quota_gate, user_id)

        result = await self.orchestrator.run(request.message)
        if not result.success:
            logger.error(
                f"All completion attempts failed for user={user_id}: "
                f"{result.last_error_message}"
            )
            raise PlanExhausted(result.last_error_message)

        self._log_exchange(
            LogEntry(session_id, user_id, "user", request.message, 0, request.tile_id),
            LogEntry(session_id, user_id, "assistant", result.final_text,
                     result.token_count, request.tile_id),
        )

        total_tokens = await self._record_usage(user_id, result.token_count)

        logger.info(
            f"Reply ready: user={user_id}, model={result.model_used}, "
            f"attempts={result.attempts_made}, tokens={result.token_count}, total={total_tokens}"
        )

        return ChatResponse(
            message=result.final_text,
            tokens_used=result.token_count,
            total_tokens=total_tokens,
            session_id=session_id,
            model_used=result.model_used,
        )

    async def drain(self) -> None:
        """Wait for outstanding background log writes."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def _log_exchange(self, *entries: LogEntry) -> None:
        """Schedule the message log write without awaiting it."""
        task = asyncio.create_task(self._write_log(entries))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_log(self, entries) -> None:
        try:
            await self.message_log.append(entries)
        except Exception as e:
            logger.error(f"Message log write failed (session={entries[0].session_id}): {e}")

    async def _record_usage(self, user_id: str, tokens: int) -> Optional[int]:
        """Add spent tokens to the ledger; a failure costs us the total, not the reply."""
        try:
            return await self.quota_gate.add_used(user_id, tokens)
        except Exception as e:
            logger.error(f"Quota ledger update failed for user={user_id}: {e}")
            return None

    async def _check_session_owner(self, session_id: str, user_id: str) -> None:
        """Reject a session id opened by someone else; an unknown id is a new session."""
        try:
            owner = await self.message_log.session_owner(session_id)
        except Exception as e:
            logger.error(f"Session owner lookup failed (session={session_id}): {e}")
            return

        if owner is not None and owner != user_id:
            logger.warning(f"User {user_id} tried to write to session {session_id[:8]}... owned by another user")
            raise SessionAccessError(session_id)

    def _generate_session_id(self) -> str:
        return str(uuid.uuid4())


_chat_service: Optional[ChatService] = None


def build_orchestrator() -> CompletionOrchestrator:
    """Wire the orchestrator from settings."""
    settings = get_settings()
    families = default_families(
        temperature=settings.llm_temperature,
        narrow_markers=settings.narrow_model_markers,
    )
    planner = AttemptPlanner(
        model_source=get_model_source(settings),
        fallback_model=settings.llm_fallback_model,
        families=families,
    )
    return CompletionOrchestrator(create_completion_client(settings), planner)


def get_chat_service() -> ChatService:
    """Get or create the chat service instance."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService(
            orchestrator=build_orchestrator(),
            quota_gate=get_quota_gate(),
            message_log=get_message_log(),
        )
    return _chat_service


async def shutdown_chat_service() -> None:
    """Flush background writes of the live service, if one was created."""
    if _chat_service is not None:
        await _chat_service.drain()


def reset_chat_service() -> None:
    global _chat_service
    _chat_service = None

"""
Chat Service Tests

End-to-end exchange through the service layer with a scripted client and
in-memory stores.
"""

import uuid
from unittest.mock import AsyncMock

import pytest

from tilechat.core.exceptions import PlanExhausted, QuotaExhausted, SessionAccessError
from tilechat.memory import InMemoryMessageLog
from tilechat.models.chat import ChatRequest
from tilechat.quota import InMemoryQuotaGate
from tilechat.services.chat_service import ChatService


@pytest.fixture
def quota_gate():
    return InMemoryQuotaGate(free_token_limit=1000)


@pytest.fixture
def message_log():
    return InMemoryMessageLog()


@pytest.fixture
def make_service(make_orchestrator, quota_gate, message_log):
    def _make(client, **kwargs):
        return ChatService(make_orchestrator(client, **kwargs), quota_gate, message_log)
    return _make


class TestProcessMessage:

    @pytest.mark.asyncio
    async def test_successful_exchange(self, scripted_client, make_service, quota_gate, message_log):
        service = make_service(scripted_client(["Namaste!"], token_count=120))
        session_id = str(uuid.uuid4())

        reply = await service.process_message(
            ChatRequest(user_id="user-1", session_id=session_id, tile_id="t1", message="hi")
        )
        await service.drain()

        assert reply.message == "Namaste!"
        assert reply.tokens_used == 120
        assert reply.total_tokens == 120
        assert reply.session_id == session_id
        assert reply.model_used == "gpt-5-nano"

        assert await quota_gate.get_used("user-1") == 120
        history = await message_log.history(session_id, "user-1")
        assert [(e.role, e.content) for e in history] == [("user", "hi"), ("assistant", "Namaste!")]
        assert history[0].tile_id == "t1"

    @pytest.mark.asyncio
    async def test_usage_accumulates_across_calls(self, scripted_client, make_service):
        service = make_service(scripted_client(["ok"], token_count=100))

        first = await service.process_message(ChatRequest(user_id="user-1", message="a"))
        second = await service.process_message(ChatRequest(user_id="user-1", message="b"))

        assert first.total_tokens == 100
        assert second.total_tokens == 200

    @pytest.mark.asyncio
    async def test_missing_session_id_is_generated(self, scripted_client, make_service):
        service = make_service(scripted_client(["ok"]))

        reply = await service.process_message(ChatRequest(user_id="user-1", message="hi"))

        assert uuid.UUID(reply.session_id)

    @pytest.mark.asyncio
    async def test_fallback_model_reported(self, scripted_client, make_service):
        service = make_service(scripted_client(["", "", "from fallback"]))

        reply = await service.process_message(ChatRequest(user_id="user-1", message="hi"))

        assert reply.model_used == "gpt-4o-mini"
        assert reply.message == "from fallback"


class TestQuota:

    @pytest.mark.asyncio
    async def test_exhausted_quota_blocks_orchestration(self, scripted_client, make_service, quota_gate):
        client = scripted_client(["never sent"])
        service = make_service(client)
        await quota_gate.add_used("user-1", 1000)

        with pytest.raises(QuotaExhausted):
            await service.process_message(ChatRequest(user_id="user-1", message="hi"))

        assert client.calls == []

    @pytest.mark.asyncio
    async def test_last_request_may_overshoot(self, scripted_client, make_service, quota_gate):
        service = make_service(scripted_client(["ok"], token_count=300))
        await quota_gate.add_used("user-1", 900)

        reply = await service.process_message(ChatRequest(user_id="user-1", message="hi"))

        assert reply.total_tokens == 1200


class TestSessionOwnership:

    @pytest.mark.asyncio
    async def test_foreign_session_rejected_before_orchestration(
        self, scripted_client, make_service, quota_gate, message_log
    ):
        client = scripted_client(["ok"])
        service = make_service(client)
        session_id = str(uuid.uuid4())
        await service.process_message(ChatRequest(user_id="owner", session_id=session_id, message="hi"))
        await service.drain()

        with pytest.raises(SessionAccessError):
            await service.process_message(
                ChatRequest(user_id="intruder", session_id=session_id, message="hi")
            )

        assert len(client.calls) == 1
        assert await quota_gate.get_used("intruder") == 0
        assert len(await message_log.history(session_id, "owner")) == 2

    @pytest.mark.asyncio
    async def test_owner_can_continue_session(self, scripted_client, make_service, message_log):
        service = make_service(scripted_client(["ok"]))
        session_id = str(uuid.uuid4())

        for text in ("one", "two"):
            await service.process_message(ChatRequest(user_id="owner", session_id=session_id, message=text))
            await service.drain()

        assert len(await message_log.history(session_id, "owner")) == 4

    @pytest.mark.asyncio
    async def test_owner_lookup_failure_does_not_block_reply(self, scripted_client, make_orchestrator, quota_gate):
        broken_log = AsyncMock()
        broken_log.session_owner.side_effect = RuntimeError("db down")
        service = ChatService(make_orchestrator(scripted_client(["ok"])), quota_gate, broken_log)

        reply = await service.process_message(
            ChatRequest(user_id="user-1", session_id=str(uuid.uuid4()), message="hi")
        )
        await service.drain()

        assert reply.message == "ok"


class TestFailures:

    @pytest.mark.asyncio
    async def test_plan_exhausted_records_nothing(self, scripted_client, make_service, quota_gate, message_log):
        service = make_service(scripted_client([""]))
        session_id = str(uuid.uuid4())

        with pytest.raises(PlanExhausted) as exc_info:
            await service.process_message(
                ChatRequest(user_id="user-1", session_id=session_id, message="hi")
            )
        await service.drain()

        assert exc_info.value.details == "empty_response"
        assert exc_info.value.to_dict()["error"] == "model_failure"
        assert await quota_gate.get_used("user-1") == 0
        assert await message_log.history(session_id, "user-1") is None

    @pytest.mark.asyncio
    async def test_log_failure_does_not_fail_reply(self, scripted_client, make_orchestrator, quota_gate):
        broken_log = AsyncMock()
        broken_log.append.side_effect = RuntimeError("disk full")
        service = ChatService(make_orchestrator(scripted_client(["ok"])), quota_gate, broken_log)

        reply = await service.process_message(ChatRequest(user_id="user-1", message="hi"))
        await service.drain()

        assert reply.message == "ok"
        assert service.pending_writes == 0
        broken_log.append.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ledger_failure_returns_null_total(self, scripted_client, make_orchestrator, message_log):
        broken_gate = AsyncMock()
        broken_gate.get_used.return_value = 0
        broken_gate.get_ceiling.return_value = 1000
        broken_gate.add_used.side_effect = RuntimeError("db down")
        service = ChatService(make_orchestrator(scripted_client(["ok"], token_count=50)), broken_gate, message_log)

        reply = await service.process_message(ChatRequest(user_id="user-1", message="hi"))

        assert reply.message == "ok"
        assert reply.tokens_used == 50
        assert reply.total_tokens is None

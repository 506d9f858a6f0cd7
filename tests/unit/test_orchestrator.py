"""
Completion Orchestrator Tests

Walks scripted clients through the retry/fallback chain.
"""

import pytest

from tilechat.llm import FailureKind, OrchestrationState, TransportFailure

NANO = "gpt-5-nano"
FALLBACK = "gpt-4o-mini"


class TestSuccessPaths:

    @pytest.mark.asyncio
    async def test_first_success_makes_one_call(self, scripted_client, make_orchestrator):
        client = scripted_client(["Namaste!"])
        result = await make_orchestrator(client).run("hi")

        assert result.success
        assert result.state is OrchestrationState.SUCCEEDED
        assert result.final_text == "Namaste!"
        assert result.model_used == NANO
        assert result.token_count == 42
        assert result.attempts_made == 1
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_then_empty_then_fallback(self, scripted_client, make_orchestrator):
        client = scripted_client(["", "", "Fallback answer"])
        result = await make_orchestrator(client).run("hi")

        assert result.success
        assert result.model_used == FALLBACK
        assert result.final_text == "Fallback answer"
        assert client.models_called == [NANO, NANO, FALLBACK]
        assert [p.token_limit for p in client.calls] == [150, 80, 400]

    @pytest.mark.asyncio
    async def test_narrow_retry_uses_smaller_limit(self, scripted_client, make_orchestrator):
        client = scripted_client(["", "short answer"])
        result = await make_orchestrator(client).run("hi")

        assert result.success
        assert result.model_used == NANO
        assert client.calls[1].to_payload()["max_completion_tokens"] == 80
        assert "temperature" not in client.calls[1].to_payload()

    @pytest.mark.asyncio
    async def test_unsupported_param_then_success(self, scripted_client, make_orchestrator):
        client = scripted_client([
            TransportFailure("Unsupported parameter: 'max_tokens'"),
            "ok",
        ])
        result = await make_orchestrator(client).run("hi")

        assert result.success
        assert len(client.calls) == 2
        assert result.last_error.kind is FailureKind.TRANSPORT_UNSUPPORTED_PARAM

    @pytest.mark.asyncio
    async def test_rejected_model_goes_to_fallback(self, scripted_client, make_orchestrator):
        client = scripted_client([
            TransportFailure("invalid model ID"),
            TransportFailure("invalid model ID"),
            "fallback ok",
        ])
        result = await make_orchestrator(client).run("hi")

        assert result.success
        assert result.model_used == FALLBACK
        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_general_primary_plan_has_two_attempts(self, scripted_client, make_orchestrator):
        client = scripted_client([RuntimeError("timeout"), "ok"])
        result = await make_orchestrator(client, model="gpt-4.1").run("hi")

        assert result.success
        assert client.models_called == ["gpt-4.1", FALLBACK]
        assert client.calls[0].to_payload()["max_tokens"] == 400


class TestExhaustion:

    @pytest.mark.asyncio
    async def test_always_empty_exhausts_plan(self, scripted_client, make_orchestrator):
        client = scripted_client([""])
        result = await make_orchestrator(client).run("hi")

        assert not result.success
        assert result.state is OrchestrationState.EXHAUSTED
        assert result.final_text is None
        assert result.model_used is None
        assert result.token_count == 0
        assert result.attempts_made == 3
        assert len(client.calls) == 3
        assert result.last_error.kind is FailureKind.EMPTY_RESPONSE
        assert result.last_error_message == "empty_response"

    @pytest.mark.asyncio
    async def test_always_raising_keeps_last_error(self, scripted_client, make_orchestrator):
        client = scripted_client([
            TransportFailure("first"),
            TransportFailure("second"),
            TransportFailure("Rate limit reached"),
        ])
        result = await make_orchestrator(client).run("hi")

        assert not result.success
        assert result.last_error.kind is FailureKind.TRANSPORT_OTHER
        assert result.last_error.message == "Rate limit reached"
        assert result.last_error.model == FALLBACK

    @pytest.mark.asyncio
    async def test_whitespace_only_counts_as_empty(self, scripted_client, make_orchestrator):
        client = scripted_client(["   \n  "])
        result = await make_orchestrator(client, model="gpt-4o").run("hi")

        assert not result.success
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_each_attempt_carries_user_message(self, scripted_client, make_orchestrator):
        client = scripted_client([""])
        await make_orchestrator(client).run("Mera sawaal")

        for params in client.calls:
            assert params.messages[-1].role == "user"
            assert params.messages[-1].content == "Mera sawaal"

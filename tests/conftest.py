"""Pytest configuration and fixtures."""

import os
import sys
import tempfile
from pathlib import Path

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Test environment must be in place before any tilechat module reads settings
os.environ["APP_ENV"] = "testing"
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["LLM_PROVIDER"] = "openai"
os.environ["LLM_MODEL"] = "gpt-4o-mini"
os.environ["PERSISTENT_STORAGE"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FREE_TOKEN_LIMIT"] = "1000"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="tilechat-logs-")
os.environ.pop("LLM_MODEL_LIVE_RELOAD", None)

import pytest

from tilechat.core.config import get_settings, static_model_source
from tilechat.database import DatabaseConnection, init_tables
from tilechat.llm import AttemptPlanner, CompletionOrchestrator, CompletionOutcome

get_settings.cache_clear()

NANO = "gpt-5-nano"
FALLBACK = "gpt-4o-mini"


class ScriptedCompletionClient:
    """
    Completion client stub that plays back a script, one step per call.

    A string step is returned as the completion text (empty string = empty
    completion); an exception step is raised. Every RequestParams received
    is kept in ``calls``.
    """

    def __init__(self, script, token_count=42):
        self.script = list(script)
        self.token_count = token_count
        self.calls = []

    async def complete(self, params):
        self.calls.append(params)
        step = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(step, BaseException):
            raise step
        return CompletionOutcome(
            raw_response={"model": params.model},
            text=step.strip(),
            finish_reason="stop" if step.strip() else "length",
            token_count=self.token_count if step.strip() else 0,
        )

    @property
    def models_called(self):
        return [p.model for p in self.calls]


@pytest.fixture
def scripted_client():
    """Factory: scripted_client(["", "hello"]) -> ScriptedCompletionClient."""
    return ScriptedCompletionClient


@pytest.fixture
def make_orchestrator():
    """Factory building an orchestrator around a client for a configured model."""
    def _make(client, model=NANO, fallback=FALLBACK):
        planner = AttemptPlanner(static_model_source(model), fallback_model=fallback)
        return CompletionOrchestrator(client, planner)
    return _make


@pytest.fixture
def db():
    """Fresh in-memory SQLite database with all tables."""
    connection = DatabaseConnection("sqlite://")
    init_tables(connection)
    yield connection
    connection.close()

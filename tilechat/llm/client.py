"""
Completion Client - Thin async wrapper over an OpenAI-compatible SDK.

The orchestrator depends only on the CompletionClient protocol:
``complete(params) -> CompletionOutcome``, raising TransportFailure when the
provider rejects or fails the call. Both the OpenAI and the Groq SDKs expose
the same ``chat.completions.create`` surface, so one adapter serves both.
"""
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from groq import AsyncGroq
from openai import AsyncOpenAI

from tilechat.core.config import Settings
from tilechat.core.logging_config import get_logger
from tilechat.llm.classifier import describe_error
from tilechat.llm.params import RequestParams

logger = get_logger(__name__)


class TransportFailure(Exception):
    """
    The remote completion call raised.

    ``message`` holds the provider's human-readable reason, which the
    error classifier inspects.
    """

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.model = model


@dataclass(frozen=True)
class CompletionOutcome:
    """
    What one successful round trip produced.

    ``text`` is the stripped assistant content; an empty string means the
    provider answered without content, which callers treat as retry-worthy.
    """
    raw_response: Any
    text: str
    finish_reason: str
    token_count: int

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


class CompletionClient(Protocol):
    async def complete(self, params: RequestParams) -> CompletionOutcome:
        ...


def extract_outcome(response: Any) -> CompletionOutcome:
    """Pull text, finish reason and token usage out of a chat completion."""
    choices = getattr(response, "choices", None) or []
    first = choices[0] if choices else None
    message = getattr(first, "message", None)

    content = getattr(message, "content", None) or ""
    finish_reason = getattr(first, "finish_reason", None) or "unknown"

    usage = getattr(response, "usage", None)
    token_count = getattr(usage, "total_tokens", None) or 0

    return CompletionOutcome(
        raw_response=response,
        text=content.strip(),
        finish_reason=finish_reason,
        token_count=int(token_count),
    )


class SDKCompletionClient:
    """
    Completion client backed by ``AsyncOpenAI`` or ``AsyncGroq``.

    Example:
        >>> client = SDKCompletionClient(AsyncOpenAI(api_key="sk-..."), provider="openai")
        >>> outcome = await client.complete(params)
        >>> outcome.text
        'Namaste! Kaise madad karun?'
    """

    def __init__(self, sdk_client: Any, provider: str = "openai"):
        self.sdk_client = sdk_client
        self.provider = provider

    async def complete(self, params: RequestParams) -> CompletionOutcome:
        payload = params.to_payload()
        logger.debug(
            f"{self.provider} request: model={params.model}, "
            f"{params.token_limit_field}={params.token_limit}, "
            f"temperature={params.temperature}"
        )

        try:
            response = await self.sdk_client.chat.completions.create(**payload)
        except Exception as e:
            raise TransportFailure(describe_error(e), model=params.model) from e

        outcome = extract_outcome(response)
        logger.debug(
            f"{self.provider} response: model={params.model}, "
            f"finish_reason={outcome.finish_reason}, tokens={outcome.token_count}, "
            f"chars={len(outcome.text)}"
        )
        return outcome


def create_completion_client(settings: Settings) -> SDKCompletionClient:
    """Build the client for the configured provider."""
    provider = settings.llm_provider

    if provider == "groq":
        sdk_client = AsyncGroq(api_key=settings.groq_api_key)
    elif provider == "openai":
        sdk_client = AsyncOpenAI(api_key=settings.openai_api_key)
    else:
        raise ValueError(f"Unsupported LLM_PROVIDER '{provider}' (expected 'openai' or 'groq')")

    logger.info(f"Completion client initialized: provider={provider}")
    return SDKCompletionClient(sdk_client, provider=provider)

"""
Completion Orchestrator - Walks the attempt plan until a model answers.

One orchestrator run per chat request:
1. Ask the planner for the attempt list
2. For each attempt, build request params and call the completion client
3. A raised error or empty text is a soft failure: record it, move on
4. The first non-empty answer ends the run

Attempts are strictly sequential with no backoff delay and no backtracking.
The run always returns an OrchestrationResult; provider errors never
escape it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tilechat.core.logging_config import get_logger
from tilechat.llm.classifier import (
    ErrorClassifier,
    ErrorInfo,
    FailureKind,
    SubstringErrorClassifier,
    describe_error,
)
from tilechat.llm.client import CompletionClient
from tilechat.llm.params import BuildOptions, ParameterBuilder
from tilechat.llm.planner import AttemptDescriptor, AttemptPlanner

logger = get_logger(__name__)


class OrchestrationState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class OrchestrationResult:
    """Terminal value of one orchestration run."""
    success: bool
    final_text: Optional[str]
    model_used: Optional[str]
    token_count: int
    last_error: Optional[ErrorInfo]
    attempts_made: int

    @property
    def state(self) -> OrchestrationState:
        return OrchestrationState.SUCCEEDED if self.success else OrchestrationState.EXHAUSTED

    @property
    def last_error_message(self) -> Optional[str]:
        return self.last_error.message if self.last_error else None


class CompletionOrchestrator:
    """
    Runs the retry/fallback chain for a single user message.

    The orchestrator itself holds no per-request state, so one instance is
    shared by all concurrent requests.

    Example:
        >>> orchestrator = CompletionOrchestrator(client, planner)
        >>> result = await orchestrator.run("Aaj mausam kaisa hai?")
        >>> result.success, result.model_used
        (True, 'gpt-5-nano')
    """

    def __init__(
        self,
        client: CompletionClient,
        planner: AttemptPlanner,
        builder: Optional[ParameterBuilder] = None,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.client = client
        self.planner = planner
        self.builder = builder or ParameterBuilder(planner.families)
        self.classifier = classifier or SubstringErrorClassifier()

    async def run(self, user_message: str) -> OrchestrationResult:
        plan = self.planner.plan()
        logger.info(
            f"Orchestrating completion: plan="
            f"{[f'{a.role.value}:{a.model}' for a in plan]}"
        )

        last_error: Optional[ErrorInfo] = None
        attempts_made = 0

        for index, attempt in enumerate(plan, start=1):
            params = self.builder.build(
                attempt.model,
                user_message,
                BuildOptions(narrow_limit=attempt.token_limit),
            )
            attempts_made += 1
            logger.info(
                f"Attempt {index}/{len(plan)} ({attempt.role.value}) with model {attempt.model}"
            )

            try:
                outcome = await self.client.complete(params)
            except Exception as e:
                last_error = self._record_failure(attempt, e)
                continue

            if outcome.is_empty:
                logger.warning(
                    f"Model {attempt.model} returned empty content "
                    f"(finish_reason={outcome.finish_reason})"
                )
                last_error = ErrorInfo.empty_response(attempt.model)
                continue

            logger.info(
                f"Model {attempt.model} answered "
                f"(finish_reason={outcome.finish_reason}, tokens={outcome.token_count})"
            )
            return OrchestrationResult(
                success=True,
                final_text=outcome.text,
                model_used=attempt.model,
                token_count=outcome.token_count,
                last_error=last_error,
                attempts_made=attempts_made,
            )

        logger.error(
            f"All {attempts_made} completion attempts failed; "
            f"last_error={last_error.kind.value if last_error else None}"
        )
        return OrchestrationResult(
            success=False,
            final_text=None,
            model_used=None,
            token_count=0,
            last_error=last_error,
            attempts_made=attempts_made,
        )

    def _record_failure(self, attempt: AttemptDescriptor, error: Exception) -> ErrorInfo:
        kind = self.classifier.classify(error)
        message = describe_error(error)
        is_fallback = attempt.model == self.planner.fallback_model

        if kind is FailureKind.TRANSPORT_REJECT_MODEL and not is_fallback:
            logger.warning(f"Model {attempt.model} rejected by provider, falling back: {message}")
        elif kind is FailureKind.TRANSPORT_UNSUPPORTED_PARAM and not is_fallback:
            logger.warning(f"Unsupported parameter for {attempt.model}, falling back: {message}")
        else:
            logger.error(f"Completion error on {attempt.model} ({kind.value}): {message}")

        return ErrorInfo(kind=kind, message=message, model=attempt.model)

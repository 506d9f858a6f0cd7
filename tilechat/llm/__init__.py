"""
LLM module - Completion-request orchestration.

- params.py       : model family table and request parameter builder
- planner.py      : ordered attempt plan (primary, narrow retry, fallback)
- classifier.py   : maps provider errors onto failure kinds
- client.py       : async completion client over the OpenAI/Groq SDKs
- orchestrator.py : walks the plan until a model answers
"""
from tilechat.llm.classifier import (
    ErrorClassifier,
    ErrorInfo,
    FailureKind,
    SubstringErrorClassifier,
)
from tilechat.llm.client import (
    CompletionClient,
    CompletionOutcome,
    SDKCompletionClient,
    TransportFailure,
    create_completion_client,
)
from tilechat.llm.orchestrator import (
    CompletionOrchestrator,
    OrchestrationResult,
    OrchestrationState,
)
from tilechat.llm.params import (
    BuildOptions,
    ModelFamily,
    ModelFamilyTable,
    ParameterBuilder,
    RequestParams,
    default_families,
)
from tilechat.llm.planner import AttemptDescriptor, AttemptPlanner, AttemptRole

__all__ = [
    "AttemptDescriptor",
    "AttemptPlanner",
    "AttemptRole",
    "BuildOptions",
    "CompletionClient",
    "CompletionOrchestrator",
    "CompletionOutcome",
    "ErrorClassifier",
    "ErrorInfo",
    "FailureKind",
    "ModelFamily",
    "ModelFamilyTable",
    "OrchestrationResult",
    "OrchestrationState",
    "ParameterBuilder",
    "RequestParams",
    "SDKCompletionClient",
    "SubstringErrorClassifier",
    "TransportFailure",
    "create_completion_client",
    "default_families",
]

"""
Failure classification for completion attempts.

Providers report rejected models and unsupported request fields only in
free-text error messages. Matching that text is isolated here behind the
ErrorClassifier protocol so the orchestrator never inspects raw wording.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Protocol, Sequence, Tuple


class FailureKind(str, Enum):
    TRANSPORT_REJECT_MODEL = "transport_reject_model"
    TRANSPORT_UNSUPPORTED_PARAM = "transport_unsupported_param"
    TRANSPORT_OTHER = "transport_other"
    EMPTY_RESPONSE = "empty_response"


EMPTY_RESPONSE_MESSAGE = "empty_response"


@dataclass(frozen=True)
class ErrorInfo:
    """A recorded soft failure: what went wrong, on which model."""
    kind: FailureKind
    message: str
    model: str

    @property
    def is_transport(self) -> bool:
        return self.kind is not FailureKind.EMPTY_RESPONSE

    @classmethod
    def empty_response(cls, model: str) -> "ErrorInfo":
        return cls(FailureKind.EMPTY_RESPONSE, EMPTY_RESPONSE_MESSAGE, model)


class ErrorClassifier(Protocol):
    def classify(self, error: BaseException) -> FailureKind:
        ...


DEFAULT_PATTERNS: Mapping[FailureKind, Tuple[str, ...]] = {
    FailureKind.TRANSPORT_REJECT_MODEL: (
        "invalid model",
        "unknown model",
    ),
    FailureKind.TRANSPORT_UNSUPPORTED_PARAM: (
        "unsupported parameter",
        "unsupported value",
    ),
}


class SubstringErrorClassifier:
    """
    Classifies errors by case-insensitive substrings of their message.

    Patterns are checked in table order; an error matching none of them
    is TRANSPORT_OTHER (rate limits, timeouts, server errors).
    """

    def __init__(self, patterns: Optional[Mapping[FailureKind, Sequence[str]]] = None):
        source = patterns if patterns is not None else DEFAULT_PATTERNS
        self.patterns = {
            kind: tuple(p.lower() for p in needles) for kind, needles in source.items()
        }

    def classify(self, error: BaseException) -> FailureKind:
        text = describe_error(error).lower()
        for kind, needles in self.patterns.items():
            if any(needle in text for needle in needles):
                return kind
        return FailureKind.TRANSPORT_OTHER


def describe_error(error: BaseException) -> str:
    """Human-readable message for an exception, never empty."""
    message = getattr(error, "message", None) or str(error)
    return message or error.__class__.__name__

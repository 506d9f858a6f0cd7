"""
Parameter Builder - Provider request payloads per model family.

Model families differ in which request fields they accept:
- narrow (e.g. gpt-5-nano): ``max_completion_tokens``, no temperature
- general (e.g. gpt-4o-mini): ``max_tokens`` and a sampling temperature

The differences live in a ModelFamily table instead of inline literals,
so field names and the temperature are configuration, not code.
Building parameters is pure: no I/O, same inputs give equal outputs.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from tilechat.llm.prompts import GENERAL_SYSTEM_PROMPT, NARROW_SYSTEM_PROMPT

DEFAULT_NARROW_LIMIT = 150
GENERAL_TOKEN_LIMIT = 400


@dataclass(frozen=True)
class ModelFamily:
    """
    Request-parameter contract shared by a group of models.

    Attributes:
        name: Family label used in logs
        markers: Lower-case substrings that identify a member model
        token_limit_field: Payload key carrying the completion token limit
        system_prompt: System instruction sent with every request
        token_limit: Fixed limit, or None to take ``BuildOptions.narrow_limit``
        temperature: Sampling temperature, or None if the family rejects it
    """
    name: str
    markers: Tuple[str, ...]
    token_limit_field: str
    system_prompt: str
    token_limit: Optional[int] = None
    temperature: Optional[float] = None

    def matches(self, model: str) -> bool:
        lowered = str(model or "").lower()
        return any(marker in lowered for marker in self.markers)


@dataclass(frozen=True)
class ModelFamilyTable:
    """The narrow family plus the general family every other model falls into."""
    narrow: ModelFamily
    general: ModelFamily

    def resolve(self, model: str) -> ModelFamily:
        if self.narrow.matches(model):
            return self.narrow
        return self.general

    def is_narrow(self, model: str) -> bool:
        return self.narrow.matches(model)


def default_families(
    temperature: float = 1.0,
    narrow_markers: Sequence[str] = ("gpt-5-nano",),
) -> ModelFamilyTable:
    """Build the family table used in production."""
    return ModelFamilyTable(
        narrow=ModelFamily(
            name="narrow",
            markers=tuple(m.lower() for m in narrow_markers),
            token_limit_field="max_completion_tokens",
            system_prompt=NARROW_SYSTEM_PROMPT,
        ),
        general=ModelFamily(
            name="general",
            markers=(),
            token_limit_field="max_tokens",
            system_prompt=GENERAL_SYSTEM_PROMPT,
            token_limit=GENERAL_TOKEN_LIMIT,
            temperature=temperature,
        ),
    )


@dataclass(frozen=True)
class BuildOptions:
    """Per-attempt knobs. ``narrow_limit`` only affects narrow-family models."""
    narrow_limit: int = DEFAULT_NARROW_LIMIT


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class RequestParams:
    """
    One provider request, built once per attempt and never mutated.

    ``to_payload()`` renders the keyword arguments for
    ``client.chat.completions.create``.
    """
    model: str
    messages: Tuple[ChatMessage, ...]
    token_limit_field: str
    token_limit: int
    temperature: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            self.token_limit_field: self.token_limit,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload


class ParameterBuilder:
    """
    Builds RequestParams for a (model, user message, options) triple.

    Example:
        >>> builder = ParameterBuilder(default_families())
        >>> params = builder.build("gpt-5-nano", "Namaste!", BuildOptions(narrow_limit=80))
        >>> params.to_payload()["max_completion_tokens"]
        80
    """

    def __init__(self, families: Optional[ModelFamilyTable] = None):
        self.families = families or default_families()

    def build(
        self,
        model: str,
        user_message: str,
        options: Optional[BuildOptions] = None,
    ) -> RequestParams:
        options = options or BuildOptions()
        family = self.families.resolve(model)

        token_limit = family.token_limit
        if token_limit is None:
            token_limit = options.narrow_limit

        return RequestParams(
            model=model,
            messages=(
                ChatMessage(role="system", content=family.system_prompt),
                ChatMessage(role="user", content=user_message),
            ),
            token_limit_field=family.token_limit_field,
            token_limit=token_limit,
            temperature=family.temperature,
        )

"""
Attempt Planner - Ordered list of completion attempts for one chat call.

Narrow-family models sometimes return an empty completion under a tight
token budget; a second try with an even tighter budget often succeeds.
If the whole family misbehaves, a general model still answers the user.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from tilechat.llm.params import DEFAULT_NARROW_LIMIT, ModelFamilyTable, default_families

NARROW_RETRY_LIMIT = 80


class AttemptRole(str, Enum):
    PRIMARY = "primary"
    NARROW_RETRY = "narrow_retry"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class AttemptDescriptor:
    """One planned call: which model, why, and the narrow token limit to use."""
    model: str
    role: AttemptRole
    token_limit: int


class AttemptPlanner:
    """
    Produces the attempt plan from the operator-configured model.

    The configured model is obtained from ``model_source`` on every call to
    ``plan()``, so a live-reloading source picks up environment changes
    without restarting the planner.
    """

    def __init__(
        self,
        model_source: Callable[[], str],
        fallback_model: str = "gpt-4o-mini",
        families: Optional[ModelFamilyTable] = None,
    ):
        self.model_source = model_source
        self.fallback_model = fallback_model
        self.families = families or default_families()

        if self.families.is_narrow(fallback_model):
            raise ValueError(
                f"Fallback model '{fallback_model}' belongs to the narrow family; "
                f"it must be a general-purpose model"
            )

    def plan(self) -> List[AttemptDescriptor]:
        configured = self.model_source()

        attempts = [
            AttemptDescriptor(configured, AttemptRole.PRIMARY, DEFAULT_NARROW_LIMIT),
        ]
        if self.families.is_narrow(configured):
            attempts.append(
                AttemptDescriptor(configured, AttemptRole.NARROW_RETRY, NARROW_RETRY_LIMIT)
            )
        attempts.append(
            AttemptDescriptor(self.fallback_model, AttemptRole.FALLBACK, DEFAULT_NARROW_LIMIT)
        )
        return attempts

"""Agent descriptor and routing decision models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from parley.conversation.models import TransitionReason
from parley.providers.llm.base import SamplingConfig


class AgentCategory(str, Enum):
    """Kind of specialized responder."""

    GREETING = "greeting"
    INTENT_CLASSIFICATION = "intent_classification"
    RETRIEVAL = "retrieval"
    TASK_EXECUTION = "task_execution"
    FALLBACK = "fallback"

    @property
    def priority(self) -> int:
        """Tie-break rank; lower wins."""
        return CATEGORY_PRIORITY.index(self)


CATEGORY_PRIORITY: tuple[AgentCategory, ...] = (
    AgentCategory.INTENT_CLASSIFICATION,
    AgentCategory.RETRIEVAL,
    AgentCategory.TASK_EXECUTION,
    AgentCategory.GREETING,
    AgentCategory.FALLBACK,
)


class AgentDescriptor(BaseModel):
    """Configuration naming a specialized responder.

    Managed outside the router; the registry hands out immutable
    instances.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Stable agent name")
    category: AgentCategory
    model: str = Field(..., description="Model reference")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=512, gt=0)
    prompt_template: str = Field(..., description="Jinja2 system prompt template")
    active: bool = Field(default=True)

    @property
    def sampling(self) -> SamplingConfig:
        return SamplingConfig(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


class RoutingDecision(BaseModel):
    """Outcome of selecting an agent for one turn."""

    model_config = ConfigDict(frozen=True)

    agent: AgentDescriptor
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: TransitionReason
    previous_agent: str | None = None
    scores: dict[str, float] = Field(
        default_factory=dict,
        description="Confidence per agent name for every agent queried",
    )

    @property
    def kept_current(self) -> bool:
        return self.reason is TransitionReason.KEPT

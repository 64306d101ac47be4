"""Agent routing and invocation configuration."""

from typing import Literal

from pydantic import BaseModel, Field

AgentCategoryName = Literal[
    "greeting",
    "intent_classification",
    "retrieval",
    "task_execution",
    "fallback",
]


class RetryConfig(BaseModel):
    """Exponential backoff for the answer call."""

    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after the first attempt",
    )
    base_delay: float = Field(default=1.0, ge=0, description="First backoff (seconds)")
    factor: float = Field(default=2.0, ge=1.0, description="Backoff multiplier")
    max_delay: float = Field(default=30.0, ge=0, description="Backoff cap (seconds)")
    jitter: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Fraction by which a delay may be shortened at random",
    )


class RoutingConfig(BaseModel):
    """Router thresholds and per-call timeouts."""

    keep_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Current agent is kept when its confidence reaches this",
    )
    fallback_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Winning confidence below this routes to the fallback agent",
    )
    confidence_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Timeout for each confidence query",
    )
    invoke_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout for each answer attempt",
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)


class AgentDescriptorConfig(BaseModel):
    """Agent descriptor as declared in configuration files."""

    name: str
    category: AgentCategoryName
    model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=512, gt=0)
    prompt_template: str = Field(default="You are a helpful assistant.")
    active: bool = Field(default=True)

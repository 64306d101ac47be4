"""Model invocation interface, data models and error types.

- ModelClient: the collaborator every agent calls
- LLMMessage / SamplingConfig: inputs
- ProviderError and subclasses: failure modes, split into transient
  (worth retrying) and permanent
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    """A message in a conversation."""

    role: str = Field(..., description="Role: system, user, or assistant")
    content: str = Field(..., description="Message content")


class SamplingConfig(BaseModel):
    """Sampling parameters taken from an agent descriptor."""

    model: str = Field(..., description="Model reference")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=512, gt=0)


class ModelClient(ABC):
    """External model-invocation collaborator.

    Both calls honour a caller-supplied timeout; the router applies its
    own timeout around them as well.
    """

    @abstractmethod
    async def invoke(
        self,
        system_prompt: str,
        history: list[LLMMessage],
        content: str,
        sampling: SamplingConfig,
        *,
        timeout: float,
    ) -> str:
        """Generate a reply to `content` given the history."""
        pass

    @abstractmethod
    async def confidence(
        self,
        system_prompt: str,
        content: str,
        history: list[LLMMessage],
        sampling: SamplingConfig,
        *,
        timeout: float,
    ) -> float:
        """Score in [0, 1] how well the agent described by system_prompt
        fits the message."""
        pass


# ============================================================================
# Error Types
# ============================================================================


class ProviderError(Exception):
    """Base exception for model provider errors (not retried)."""

    pass


class AuthenticationError(ProviderError):
    """Invalid or missing API key."""

    pass


class ContentFilterError(ProviderError):
    """Content blocked by safety filter."""

    pass


class TransientProviderError(ProviderError):
    """Temporary failure (5xx, connection reset); safe to retry."""

    pass


class ThrottledError(TransientProviderError):
    """Provider throttled the request (HTTP 429)."""

    pass

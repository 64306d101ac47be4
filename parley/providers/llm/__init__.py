"""Model invocation providers."""

from parley.providers.llm.base import (
    AuthenticationError,
    ContentFilterError,
    LLMMessage,
    ModelClient,
    ProviderError,
    SamplingConfig,
    ThrottledError,
    TransientProviderError,
)
from parley.providers.llm.http import HttpModelClient
from parley.providers.llm.mock import MockModelClient

__all__ = [
    "AuthenticationError",
    "ContentFilterError",
    "HttpModelClient",
    "LLMMessage",
    "MockModelClient",
    "ModelClient",
    "ProviderError",
    "SamplingConfig",
    "ThrottledError",
    "TransientProviderError",
]

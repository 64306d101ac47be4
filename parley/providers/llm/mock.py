"""Scripted model client for development and tests."""

import asyncio
from collections.abc import Callable

from parley.providers.llm.base import LLMMessage, ModelClient, SamplingConfig


class MockModelClient(ModelClient):
    """Deterministic ModelClient.

    Confidence comes from `scores` keyed by model reference, or from a
    keyword heuristic when no score is configured. Replies echo the
    model reference and the message unless `reply` is given. Every call
    is recorded in `calls` so tests can assert on them.
    """

    def __init__(
        self,
        scores: dict[str, float] | None = None,
        reply: str | Callable[[str, str], str] | None = None,
        latency: float = 0.0,
    ) -> None:
        self.scores = scores or {}
        self._reply = reply
        self._latency = latency
        self.calls: list[tuple[str, str, str]] = []  # (kind, model, content)

    async def invoke(
        self,
        system_prompt: str,
        history: list[LLMMessage],
        content: str,
        sampling: SamplingConfig,
        *,
        timeout: float,  # noqa: ARG002
    ) -> str:
        self.calls.append(("invoke", sampling.model, content))
        if self._latency:
            await asyncio.sleep(self._latency)
        if callable(self._reply):
            return self._reply(sampling.model, content)
        if self._reply is not None:
            return self._reply
        return f"[{sampling.model}] {content}"

    async def confidence(
        self,
        system_prompt: str,
        content: str,
        history: list[LLMMessage],
        sampling: SamplingConfig,
        *,
        timeout: float,  # noqa: ARG002
    ) -> float:
        self.calls.append(("confidence", sampling.model, content))
        if self._latency:
            await asyncio.sleep(self._latency)
        if sampling.model in self.scores:
            return self.scores[sampling.model]
        # Crude overlap between the agent's prompt and the message
        prompt_words = set(system_prompt.lower().split())
        message_words = set(content.lower().split())
        if not message_words:
            return 0.0
        return min(1.0, len(prompt_words & message_words) / len(message_words))

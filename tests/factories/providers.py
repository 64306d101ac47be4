"""Model client with scripted failures for routing and retry tests."""

import asyncio

from parley.providers.llm import MockModelClient
from parley.providers.llm.base import LLMMessage, SamplingConfig


class ScriptedModelClient(MockModelClient):
    """MockModelClient that can fail or stall on demand.

    - confidence_errors: model reference -> exception raised on every
      confidence call for that model
    - confidence_delays: model reference -> seconds to sleep first
    - invoke_errors: exceptions raised by successive invoke calls, one
      per call, before falling back to the normal reply
    """

    def __init__(
        self,
        scores: dict[str, float] | None = None,
        reply: str | None = None,
        *,
        confidence_errors: dict[str, Exception] | None = None,
        confidence_delays: dict[str, float] | None = None,
        invoke_errors: list[Exception] | None = None,
    ) -> None:
        super().__init__(scores=scores, reply=reply)
        self.confidence_errors = confidence_errors or {}
        self.confidence_delays = confidence_delays or {}
        self.invoke_errors = list(invoke_errors or [])
        self.invoke_calls = 0

    async def invoke(
        self,
        system_prompt: str,
        history: list[LLMMessage],
        content: str,
        sampling: SamplingConfig,
        *,
        timeout: float,
    ) -> str:
        self.invoke_calls += 1
        if self.invoke_errors:
            raise self.invoke_errors.pop(0)
        return await super().invoke(
            system_prompt, history, content, sampling, timeout=timeout
        )

    async def confidence(
        self,
        system_prompt: str,
        content: str,
        history: list[LLMMessage],
        sampling: SamplingConfig,
        *,
        timeout: float,
    ) -> float:
        delay = self.confidence_delays.get(sampling.model)
        if delay:
            await asyncio.sleep(delay)
        error = self.confidence_errors.get(sampling.model)
        if error is not None:
            raise error
        return await super().confidence(
            system_prompt, content, history, sampling, timeout=timeout
        )

    def confidence_calls(self, model: str) -> int:
        return sum(1 for kind, m, _ in self.calls if kind == "confidence" and m == model)

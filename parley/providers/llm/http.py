"""OpenAI-compatible chat completions client."""

import os
import re
from typing import Any

import httpx

from parley.observability.logging import get_logger
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

logger = get_logger(__name__)

CONFIDENCE_INSTRUCTIONS = (
    "You are scoring whether the assistant described below should answer "
    "the user's latest message. Reply with a single number between 0 and 1 "
    "and nothing else.\n\nAssistant description:\n"
)

_NUMBER = re.compile(r"\d*\.?\d+")


class HttpModelClient(ModelClient):
    """ModelClient for any OpenAI-compatible /chat/completions endpoint.

    HTTP status codes map onto the provider error taxonomy: 429 is
    throttling, 5xx and transport errors are transient, 401/403 are
    authentication failures, anything else is permanent.
    """

    def __init__(
        self,
        base_url: str = "https://api.openai.com/v1",
        api_key: str | None = None,
        confidence_model: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or os.environ.get("PARLEY_MODEL_API_KEY")
        if not self._api_key:
            raise ValueError("PARLEY_MODEL_API_KEY environment variable not set")
        self._confidence_model = confidence_model
        self._client = client or httpx.AsyncClient()

    async def invoke(
        self,
        system_prompt: str,
        history: list[LLMMessage],
        content: str,
        sampling: SamplingConfig,
        *,
        timeout: float,
    ) -> str:
        messages = [
            LLMMessage(role="system", content=system_prompt),
            *history,
            LLMMessage(role="user", content=content),
        ]
        return await self._complete(
            model=sampling.model,
            messages=messages,
            temperature=sampling.temperature,
            max_tokens=sampling.max_tokens,
            timeout=timeout,
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
        transcript = "\n".join(f"{m.role}: {m.content}" for m in history[-6:])
        messages = [
            LLMMessage(role="system", content=CONFIDENCE_INSTRUCTIONS + system_prompt),
            LLMMessage(
                role="user",
                content=f"Recent conversation:\n{transcript}\n\nLatest message:\n{content}",
            ),
        ]
        text = await self._complete(
            model=self._confidence_model or sampling.model,
            messages=messages,
            temperature=0.0,
            max_tokens=8,
            timeout=timeout,
        )
        return parse_score(text)

    async def _complete(
        self,
        *,
        model: str,
        messages: list[LLMMessage],
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            response = await self._client.post(
                f"{self._base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=payload,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Model call timed out after {timeout}s") from e
        except httpx.TransportError as e:
            raise TransientProviderError(f"Transport error: {e}") from e

        status = response.status_code
        if status != 200:
            logger.warning("model_http_error", model=model, status_code=status)
            if status == 429:
                raise ThrottledError(f"Throttled by provider ({status})")
            if status >= 500:
                raise TransientProviderError(f"Provider error ({status})")
            if status in (401, 403):
                raise AuthenticationError(f"Authentication failed ({status})")
            raise ProviderError(f"Provider rejected request ({status}): {response.text}")

        try:
            choice = response.json()["choices"][0]
            if choice.get("finish_reason") == "content_filter":
                raise ContentFilterError("Response blocked by content filter")
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.warning(
                "model_response_malformed", model=model, error_type=type(e).__name__
            )
            raise ProviderError(f"Malformed provider response: {e!r}") from e

        if content is None:
            raise ProviderError("Provider response has no message content")
        return str(content).strip()

    async def aclose(self) -> None:
        await self._client.aclose()


def parse_score(text: str) -> float:
    """Extract a confidence score in [0, 1] from model output."""
    match = _NUMBER.search(text)
    if not match:
        return 0.0
    return max(0.0, min(1.0, float(match.group())))

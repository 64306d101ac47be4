"""Deepgram speech providers over the REST API.

Both directions use telephony audio as-is (8 kHz mu-law by default), so
no transcoding happens on either side:

- POST {base_url}/v1/listen with the raw turn audio as the body
- POST {base_url}/v1/speak with {"text": ...}; the body is raw audio
"""

import os
from typing import Any

import httpx

from parley.observability.logging import get_logger
from parley.providers.llm.base import (
    AuthenticationError,
    ProviderError,
    ThrottledError,
    TransientProviderError,
)
from parley.providers.speech.base import SpeechToText, TextToSpeech

logger = get_logger(__name__)

API_KEY_VAR = "PARLEY_SPEECH_API_KEY"

# Transport sample width -> Deepgram encoding name
_ENCODINGS = {1: "mulaw", 2: "linear16"}


class _DeepgramClient:
    """Shared request handling and status mapping."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None,
        sample_rate: int,
        sample_width: int,
        timeout: float,
        client: httpx.AsyncClient | None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or os.environ.get(API_KEY_VAR)
        if not self._api_key:
            raise ValueError(f"{API_KEY_VAR} environment variable not set")
        if sample_width not in _ENCODINGS:
            raise ValueError(f"Unsupported sample width for Deepgram: {sample_width}")
        self._encoding = _ENCODINGS[sample_width]
        self._sample_rate = sample_rate
        self._timeout = timeout
        self._client = client or httpx.AsyncClient()

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Token {self._api_key}", **kwargs.pop("headers", {})}
        try:
            response = await self._client.post(
                f"{self._base_url}{path}",
                headers=headers,
                timeout=self._timeout,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Deepgram {path} timed out after {self._timeout}s") from e
        except httpx.TransportError as e:
            raise TransientProviderError(f"Transport error: {e}") from e

        status = response.status_code
        if status != 200:
            logger.warning("speech_http_error", path=path, status_code=status)
            if status == 429:
                raise ThrottledError(f"Throttled by Deepgram ({status})")
            if status >= 500:
                raise TransientProviderError(f"Deepgram error ({status})")
            if status in (401, 403):
                raise AuthenticationError(f"Deepgram authentication failed ({status})")
            raise ProviderError(f"Deepgram rejected request ({status}): {response.text}")
        return response

    async def aclose(self) -> None:
        await self._client.aclose()


class DeepgramSpeechToText(_DeepgramClient, SpeechToText):
    """Pre-recorded transcription of one buffered turn."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.deepgram.com",
        api_key: str | None = None,
        model: str = "nova-2-phonecall",
        language: str = "en-US",
        sample_rate: int = 8000,
        sample_width: int = 1,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            api_key=api_key,
            sample_rate=sample_rate,
            sample_width=sample_width,
            timeout=timeout,
            client=client,
        )
        self._model = model
        self._language = language

    async def transcribe(self, audio: bytes) -> str:
        response = await self._post(
            "/v1/listen",
            params={
                "model": self._model,
                "language": self._language,
                "encoding": self._encoding,
                "sample_rate": self._sample_rate,
                "smart_format": "true",
            },
            headers={"Content-Type": "application/octet-stream"},
            content=audio,
        )
        try:
            channels = response.json()["results"]["channels"]
            # No channel or alternative means nothing intelligible was said
            alternatives = channels[0].get("alternatives") if channels else None
            transcript = alternatives[0].get("transcript") if alternatives else ""
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ProviderError(f"Malformed Deepgram transcript: {e!r}") from e
        return str(transcript or "").strip()


class DeepgramTextToSpeech(_DeepgramClient, TextToSpeech):
    """Aura synthesis straight into the transport's encoding."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.deepgram.com",
        api_key: str | None = None,
        model: str = "aura-asteria-en",
        sample_rate: int = 8000,
        sample_width: int = 1,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            api_key=api_key,
            sample_rate=sample_rate,
            sample_width=sample_width,
            timeout=timeout,
            client=client,
        )
        self._model = model

    async def synthesize(self, text: str) -> bytes:
        response = await self._post(
            "/v1/speak",
            params={
                "model": self._model,
                "encoding": self._encoding,
                "sample_rate": self._sample_rate,
                "container": "none",
            },
            headers={"Accept": "audio/*"},
            json={"text": text},
        )
        return response.content

"""Speech-to-text and text-to-speech interfaces.

Implementations raise ProviderError subclasses (see providers.llm.base)
on failure.
"""

from abc import ABC, abstractmethod


class SpeechToText(ABC):
    """Transcribes one turn of caller audio."""

    @abstractmethod
    async def transcribe(self, audio: bytes) -> str:
        """Return the transcript, or an empty string for silence."""
        pass


class TextToSpeech(ABC):
    """Synthesizes a response in the transport's audio format."""

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Return encoded audio for text."""
        pass

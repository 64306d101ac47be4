"""Mock speech providers for development and tests."""

from collections import deque

from parley.providers.speech.base import SpeechToText, TextToSpeech

MULAW_SILENCE = b"\xff"


class MockSpeechToText(SpeechToText):
    """Returns queued transcripts, then a byte-count placeholder.

    Every chunk handed in is kept in `received`, in order.
    """

    def __init__(self, transcripts: list[str] | None = None) -> None:
        self._transcripts = deque(transcripts or [])
        self.received: list[bytes] = []

    async def transcribe(self, audio: bytes) -> str:
        self.received.append(audio)
        if self._transcripts:
            return self._transcripts.popleft()
        return f"<{len(audio)} bytes of audio>"


class MockTextToSpeech(TextToSpeech):
    """Synthesizes mu-law silence, `bytes_per_char` bytes per character."""

    def __init__(self, bytes_per_char: int = 80) -> None:
        self._bytes_per_char = bytes_per_char
        self.spoken: list[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.spoken.append(text)
        return MULAW_SILENCE * (len(text) * self._bytes_per_char)

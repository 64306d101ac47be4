"""Speech providers."""

from parley.providers.speech.base import SpeechToText, TextToSpeech
from parley.providers.speech.deepgram import DeepgramSpeechToText, DeepgramTextToSpeech
from parley.providers.speech.mock import MockSpeechToText, MockTextToSpeech

__all__ = [
    "DeepgramSpeechToText",
    "DeepgramTextToSpeech",
    "MockSpeechToText",
    "MockTextToSpeech",
    "SpeechToText",
    "TextToSpeech",
]

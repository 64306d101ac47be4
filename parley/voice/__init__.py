"""Real-time audio sessions: transports, registry and the session manager."""

from parley.voice.manager import AudioSessionManager
from parley.voice.models import (
    AudioSession,
    MediaFrame,
    SessionState,
    StopSignal,
    TranscriptEntry,
    TransportEvent,
)
from parley.voice.registry import ConnectionRegistry
from parley.voice.transport import (
    INTERNAL_ERROR,
    NORMAL_CLOSURE,
    POLICY_VIOLATION,
    MediaTransport,
    WebSocketMediaTransport,
)

__all__ = [
    "AudioSession",
    "AudioSessionManager",
    "ConnectionRegistry",
    "INTERNAL_ERROR",
    "MediaFrame",
    "MediaTransport",
    "NORMAL_CLOSURE",
    "POLICY_VIOLATION",
    "SessionState",
    "StopSignal",
    "TranscriptEntry",
    "TransportEvent",
    "WebSocketMediaTransport",
]

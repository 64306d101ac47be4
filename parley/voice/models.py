"""Real-time audio session models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from parley.conversation.models import TurnDirection, utc_now
from parley.errors import ErrorBody


class SessionState(str, Enum):
    """Lifecycle of a real-time audio session.

    CONNECTING -> ACTIVE -> DRAINING -> CLOSED. A session rejected at
    admission goes from CONNECTING straight to CLOSED.
    """

    CONNECTING = "connecting"
    ACTIVE = "active"
    DRAINING = "draining"
    CLOSED = "closed"


@dataclass(frozen=True)
class MediaFrame:
    """A chunk of raw audio in either direction."""

    payload: bytes
    sequence: int | None = None


@dataclass(frozen=True)
class StopSignal:
    """The peer ended the stream."""

    reason: str = "stop"


TransportEvent = MediaFrame | StopSignal


class TranscriptEntry(BaseModel):
    """One line of a call transcript."""

    direction: TurnDirection
    content: str
    agent: str | None = None
    error: ErrorBody | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class AudioSession(BaseModel):
    """One real-time audio connection, owned by its processing loop.

    Only the session's own reader loop and turn worker touch it, so no
    locking is involved.
    """

    connection_id: str
    call_id: str
    conversation_id: str
    user_id: str
    source_ip: str | None = None

    state: SessionState = SessionState.CONNECTING
    started_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)
    ended_at: datetime | None = None
    end_reason: str | None = None

    bytes_received: int = 0
    buffered_bytes: int = Field(default=0, description="Audio waiting for the next turn")
    bytes_sent: int = 0
    turns_completed: int = 0
    turns_failed: int = 0
    turns_timed_out: int = 0

    transcript: list[TranscriptEntry] = Field(default_factory=list)
    drained_chunks: list[int] = Field(
        default_factory=list,
        description="Byte length of every chunk handed to the turn worker, in order",
    )
    record_id: str | None = None
    rejected: bool = False

"""Call record model."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from parley.conversation.models import utc_now


class CallRecord(BaseModel):
    """Summary of one finished real-time audio session.

    The transcript and the optional raw recording live in the object
    store; the record only keeps their keys.
    """

    record_id: UUID = Field(default_factory=uuid4)
    call_id: str = Field(..., description="Telephony call identifier")
    conversation_id: str
    user_id: str
    connection_id: str = Field(..., description="Process-local session id")

    started_at: datetime
    ended_at: datetime = Field(default_factory=utc_now)
    end_reason: str = Field(..., description="stop, disconnect, idle or error")

    turns: int = Field(default=0, ge=0, description="Turns that produced a reply")
    failed_turns: int = Field(default=0, ge=0)
    bytes_received: int = Field(default=0, ge=0)
    bytes_sent: int = Field(default=0, ge=0)

    transcript_key: str | None = None
    recording_key: str | None = None

    @property
    def duration_seconds(self) -> float:
        return max(0.0, (self.ended_at - self.started_at).total_seconds())

"""Normalized messages exchanged with channel adapters."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from parley.conversation.models.context import utc_now
from parley.conversation.models.enums import Channel


class InboundMessage(BaseModel):
    """Message delivered by a channel adapter."""

    conversation_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    channel: Channel
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: dict[str, Any] = Field(default_factory=dict)


class OutboundMessage(BaseModel):
    """Response handed back to the channel adapter for delivery."""

    conversation_id: str
    user_id: str
    channel: Channel
    content: str
    agent: str = Field(..., description="Agent that produced the response")
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: dict[str, Any] = Field(default_factory=dict)

"""Conversation domain models.

- ConversationContext: bounded per-conversation state
- ConversationTurn / AgentTransition: entries on a context
- InboundMessage / OutboundMessage: normalized channel messages
"""

from parley.conversation.models.context import (
    AgentTransition,
    ConversationContext,
    ConversationTurn,
    SaveResult,
    utc_now,
)
from parley.conversation.models.enums import Channel, TransitionReason, TurnDirection
from parley.conversation.models.messages import InboundMessage, OutboundMessage

__all__ = [
    # Enums
    "Channel",
    "TransitionReason",
    "TurnDirection",
    # Context models
    "AgentTransition",
    "ConversationContext",
    "ConversationTurn",
    "SaveResult",
    # Messages
    "InboundMessage",
    "OutboundMessage",
    "utc_now",
]

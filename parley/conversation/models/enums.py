"""Enums for the conversation domain."""

from enum import Enum


class Channel(str, Enum):
    """Channel a conversation arrives on."""

    VOICE = "voice"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    WEBCHAT = "webchat"
    EMAIL = "email"
    API = "api"


class TurnDirection(str, Enum):
    """Who produced a turn."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class TransitionReason(str, Enum):
    """Why the router settled on an agent."""

    KEPT = "kept"  # current agent stayed above the keep threshold
    SELECTED = "selected"  # won the fan-out
    FALLBACK = "fallback"  # fan-out winner was below the fallback threshold

"""Conversation context models."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from parley.conversation.models.enums import Channel, TransitionReason, TurnDirection

DEFAULT_MAX_TURNS = 20


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class ConversationTurn(BaseModel):
    """One side of an exchange."""

    model_config = ConfigDict(frozen=True)

    direction: TurnDirection = Field(..., description="Inbound or outbound")
    content: str = Field(..., description="Message text")
    agent: str | None = Field(
        default=None, description="Responding agent (outbound turns only)"
    )
    timestamp: datetime = Field(default_factory=utc_now, description="When it happened")


class AgentTransition(BaseModel):
    """Record of a routing decision that set the current agent."""

    model_config = ConfigDict(frozen=True)

    from_agent: str | None = Field(default=None, description="Previous agent")
    to_agent: str = Field(..., description="Agent now answering")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Winning score")
    reason: TransitionReason = Field(..., description="How the agent was chosen")
    timestamp: datetime = Field(default_factory=utc_now)


class ConversationContext(BaseModel):
    """Bounded recent-history state of one conversation.

    Holds at most `max_turns` turns (oldest evicted first) and the same
    number of agent transitions. `turn_count` keeps counting past the
    bound. `degraded` is set in memory when neither storage tier could
    be read and is never persisted.
    """

    model_config = ConfigDict(validate_assignment=True)

    conversation_id: str = Field(..., description="Opaque, channel-scoped id")
    user_id: str | None = Field(default=None, description="Owning user")
    channel: Channel | None = Field(default=None, description="Arrival channel")
    max_turns: int = Field(default=DEFAULT_MAX_TURNS, gt=0)
    turns: list[ConversationTurn] = Field(default_factory=list)
    current_agent: str | None = Field(default=None, description="Agent answering now")
    transitions: list[AgentTransition] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    turn_count: int = Field(default=0, description="Turns ever recorded")
    created_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)
    degraded: bool = Field(default=False, exclude=True)

    @property
    def is_new(self) -> bool:
        return self.turn_count == 0

    def append_turn(self, turn: ConversationTurn) -> None:
        """Append a turn, evicting the oldest beyond max_turns."""
        turns = [*self.turns, turn]
        self.turns = turns[-self.max_turns :]
        self.turn_count += 1
        self.touch(turn.timestamp)

    def record_transition(self, transition: AgentTransition) -> None:
        """Set the current agent and keep the transition history bounded."""
        self.current_agent = transition.to_agent
        transitions = [*self.transitions, transition]
        self.transitions = transitions[-self.max_turns :]

    def touch(self, at: datetime | None = None) -> None:
        """Advance last_activity_at; it never moves backwards."""
        at = at or utc_now()
        if at > self.last_activity_at:
            self.last_activity_at = at

    def history(self) -> list[ConversationTurn]:
        """Snapshot of the bounded turn list."""
        return list(self.turns)


class SaveResult(BaseModel):
    """Outcome of writing a context to both tiers."""

    cached: bool = Field(..., description="Fast tier accepted the write")
    persisted: bool | None = Field(
        ...,
        description="Durable tier accepted the write (None while a background write is pending)",
    )

    @property
    def durability_warning(self) -> bool:
        return self.persisted is False

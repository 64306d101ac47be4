"""Turn result model returned to channel adapters."""

from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from parley.agents.models import RoutingDecision
from parley.conversation.models import OutboundMessage, SaveResult
from parley.errors import ErrorBody

TurnStatus = Literal["ok", "failed", "timeout"]


class TurnResult(BaseModel):
    """Outcome of processing one inbound message.

    Failures are reported here with a structured error body instead of
    being raised to the channel adapter.
    """

    turn_id: UUID = Field(default_factory=uuid4)
    conversation_id: str
    status: TurnStatus = "ok"

    response: OutboundMessage | None = None
    error: ErrorBody | None = None

    decision: RoutingDecision | None = None
    save_result: SaveResult | None = None
    degraded: bool = Field(
        default=False, description="Context could not be read from either tier"
    )

    total_time_ms: float = Field(default=0.0, ge=0)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def durability_warning(self) -> bool:
        return self.save_result is not None and self.save_result.durability_warning

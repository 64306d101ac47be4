"""Turn orchestration for text channels and voice sessions."""

from parley.orchestration.models import TurnResult, TurnStatus
from parley.orchestration.orchestrator import ConversationOrchestrator

__all__ = ["ConversationOrchestrator", "TurnResult", "TurnStatus"]

"""Agent registry, category variants and the router."""

from parley.agents.base import Agent
from parley.agents.models import (
    CATEGORY_PRIORITY,
    AgentCategory,
    AgentDescriptor,
    RoutingDecision,
)
from parley.agents.registry import AgentRegistry
from parley.agents.retry import RetryExhaustedError, RetryPolicy
from parley.agents.router import AgentRouter
from parley.agents.variants import (
    FallbackAgent,
    GreetingAgent,
    IntentClassificationAgent,
    RetrievalAgent,
    TaskExecutionAgent,
    build_agent,
)

__all__ = [
    "Agent",
    "AgentCategory",
    "AgentDescriptor",
    "AgentRegistry",
    "AgentRouter",
    "CATEGORY_PRIORITY",
    "FallbackAgent",
    "GreetingAgent",
    "IntentClassificationAgent",
    "RetrievalAgent",
    "RetryExhaustedError",
    "RetryPolicy",
    "RoutingDecision",
    "TaskExecutionAgent",
    "build_agent",
]

"""One Agent variant per category."""

from typing import Any

from parley.agents.base import Agent
from parley.agents.models import AgentCategory, AgentDescriptor
from parley.conversation.models import (
    ConversationContext,
    InboundMessage,
    TurnDirection,
)
from parley.providers.llm.base import ModelClient

# Greeting scores are halved once the agent side has spoken
GREETING_LATE_FACTOR = 0.5

# Score an in-progress task keeps even when the model is unsure
TASK_CONTINUATION_FLOOR = 0.8

# Fallback never consults the model
FALLBACK_CONFIDENCE = 0.1


class GreetingAgent(Agent):
    """Opens conversations; loses weight once a reply has been sent."""

    category = AgentCategory.GREETING

    def shape_confidence(
        self,
        score: float,
        message: InboundMessage,
        context: ConversationContext,
    ) -> float:
        if any(t.direction is TurnDirection.OUTBOUND for t in context.turns):
            return score * GREETING_LATE_FACTOR
        return score


class IntentClassificationAgent(Agent):
    """Works out what the user wants.

    Known intents (from channel metadata or earlier turns) are exposed
    to the prompt template as `intents`.
    """

    category = AgentCategory.INTENT_CLASSIFICATION

    def template_variables(
        self, message: InboundMessage, context: ConversationContext
    ) -> dict[str, Any]:
        variables = super().template_variables(message, context)
        variables["intents"] = message.metadata.get(
            "intents", context.metadata.get("intents", [])
        )
        return variables


class RetrievalAgent(Agent):
    """Answers from reference material attached to the message."""

    category = AgentCategory.RETRIEVAL

    def template_variables(
        self, message: InboundMessage, context: ConversationContext
    ) -> dict[str, Any]:
        variables = super().template_variables(message, context)
        variables["documents"] = list(message.metadata.get("documents", []))
        return variables

    def system_prompt(
        self, message: InboundMessage, context: ConversationContext
    ) -> str:
        prompt = super().system_prompt(message, context)
        documents = message.metadata.get("documents") or []
        if documents and "documents" not in self.descriptor.prompt_template:
            references = "\n".join(f"- {doc}" for doc in documents)
            prompt = f"{prompt}\n\nReference material:\n{references}"
        return prompt


class TaskExecutionAgent(Agent):
    """Carries multi-step requests through to completion.

    Progress lives in `context.metadata["task"]`; while a task is in
    progress the agent stays confident so routing does not drift away.
    """

    category = AgentCategory.TASK_EXECUTION

    def template_variables(
        self, message: InboundMessage, context: ConversationContext
    ) -> dict[str, Any]:
        variables = super().template_variables(message, context)
        variables["task"] = context.metadata.get("task", {})
        return variables

    def shape_confidence(
        self,
        score: float,
        message: InboundMessage,
        context: ConversationContext,
    ) -> float:
        task = context.metadata.get("task") or {}
        if task.get("status") == "in_progress" and context.current_agent == self.name:
            return max(score, TASK_CONTINUATION_FLOOR)
        return score


class FallbackAgent(Agent):
    """Catch-all used when nothing else is confident enough."""

    category = AgentCategory.FALLBACK

    async def confidence(
        self,
        message: InboundMessage,
        context: ConversationContext,
        *,
        timeout: float,
    ) -> float:
        return FALLBACK_CONFIDENCE


AGENT_TYPES: dict[AgentCategory, type[Agent]] = {
    cls.category: cls
    for cls in (
        GreetingAgent,
        IntentClassificationAgent,
        RetrievalAgent,
        TaskExecutionAgent,
        FallbackAgent,
    )
}


def build_agent(descriptor: AgentDescriptor, model: ModelClient) -> Agent:
    """Instantiate the variant for a descriptor's category."""
    return AGENT_TYPES[descriptor.category](descriptor, model)

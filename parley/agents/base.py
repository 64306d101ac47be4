"""Agent capability interface shared by every category."""

from abc import ABC
from typing import Any, ClassVar

from jinja2 import Environment

from parley.agents.models import AgentCategory, AgentDescriptor
from parley.conversation.models import (
    ConversationContext,
    InboundMessage,
    TurnDirection,
)
from parley.providers.llm.base import LLMMessage, ModelClient

_env = Environment(trim_blocks=True, lstrip_blocks=True)

_ROLES = {
    TurnDirection.INBOUND: "user",
    TurnDirection.OUTBOUND: "assistant",
}


class Agent(ABC):
    """A specialized responder backed by one descriptor.

    The router only talks to this interface: `confidence` to score how
    well the agent fits a message and `invoke` to produce the answer.
    Category variants override the hooks below; they never mutate the
    context they are given, so one agent instance can serve many
    conversations at once.
    """

    category: ClassVar[AgentCategory]

    def __init__(self, descriptor: AgentDescriptor, model: ModelClient) -> None:
        self._descriptor = descriptor
        self._model = model
        self._template = _env.from_string(descriptor.prompt_template)

    @property
    def descriptor(self) -> AgentDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    async def confidence(
        self,
        message: InboundMessage,
        context: ConversationContext,
        *,
        timeout: float,
    ) -> float:
        score = await self._model.confidence(
            self.system_prompt(message, context),
            message.content,
            self.history(context),
            self._descriptor.sampling,
            timeout=timeout,
        )
        return self.shape_confidence(_clamp(score), message, context)

    async def invoke(
        self,
        message: InboundMessage,
        context: ConversationContext,
        *,
        timeout: float,
    ) -> str:
        return await self._model.invoke(
            self.system_prompt(message, context),
            self.history(context),
            message.content,
            self._descriptor.sampling,
            timeout=timeout,
        )

    def shape_confidence(
        self,
        score: float,
        message: InboundMessage,  # noqa: ARG002
        context: ConversationContext,  # noqa: ARG002
    ) -> float:
        """Adjust the raw model score. Identity by default."""
        return score

    def template_variables(
        self, message: InboundMessage, context: ConversationContext
    ) -> dict[str, Any]:
        return {
            "agent_name": self._descriptor.name,
            "channel": message.channel.value,
            "user_id": message.user_id,
            "metadata": {**context.metadata, **message.metadata},
            "turn_count": context.turn_count,
        }

    def system_prompt(
        self, message: InboundMessage, context: ConversationContext
    ) -> str:
        return self._template.render(**self.template_variables(message, context))

    @staticmethod
    def history(context: ConversationContext) -> list[LLMMessage]:
        """The bounded turn history as chat messages."""
        return [
            LLMMessage(role=_ROLES[turn.direction], content=turn.content)
            for turn in context.history()
        ]


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, float(score)))

"""Conversation orchestrator: the text-turn pipeline.

Steps for one turn:
1. Load the context (never fails; degrades to a fresh context)
2. Route to an agent (records the transition on the context)
3. Invoke the agent once, with retries
4. Record the inbound/outbound exchange and save
5. Hand the outbound message back
"""

import time

from parley.admission import AdmissionController
from parley.agents import AgentRouter
from parley.conversation import ContextStore
from parley.conversation.models import InboundMessage, OutboundMessage
from parley.errors import AgentInvocationError, ErrorCode
from parley.observability.logging import get_logger, log_context
from parley.observability.metrics import TURN_LATENCY
from parley.orchestration.models import TurnResult

logger = get_logger(__name__)


class ConversationOrchestrator:
    """Entry point channel adapters call for each inbound message."""

    def __init__(
        self,
        context_store: ContextStore,
        router: AgentRouter,
        admission: AdmissionController,
    ) -> None:
        self._contexts = context_store
        self._router = router
        self._admission = admission

    @property
    def context_store(self) -> ContextStore:
        return self._contexts

    async def handle(
        self, message: InboundMessage, *, source_ip: str | None = None
    ) -> TurnResult:
        """Admit the message, then process it.

        Raises:
            AdmissionDeniedError: If the user is over its request rate or
                the source is blocked
        """
        await self._admission.admit_request(message.user_id, source_ip)
        return await self.process_turn(message)

    async def process_turn(self, message: InboundMessage) -> TurnResult:
        """Run one turn through routing and invocation.

        Admission is the caller's responsibility; the voice session
        manager admits once per connection and calls this per turn.
        """
        start = time.perf_counter()
        with log_context(conversation_id=message.conversation_id):
            try:
                return await self._process(message)
            finally:
                TURN_LATENCY.labels(channel=message.channel.value).observe(
                    time.perf_counter() - start
                )

    async def close_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation from both tiers."""
        return await self._contexts.close(conversation_id)

    async def _process(self, message: InboundMessage) -> TurnResult:
        start = time.perf_counter()
        context = await self._contexts.load(
            message.conversation_id,
            user_id=message.user_id,
            channel=message.channel,
        )

        decision = await self._router.route(message, context)

        try:
            reply = await self._router.invoke(decision.agent, message, context)
        except AgentInvocationError as e:
            logger.error(
                "turn_failed",
                agent=e.agent,
                attempts=e.attempts,
                error_code=e.error_code.value,
            )
            return TurnResult(
                conversation_id=message.conversation_id,
                status="timeout" if e.error_code is ErrorCode.AGENT_TIMEOUT else "failed",
                error=e.to_body(),
                decision=decision,
                degraded=context.degraded,
                total_time_ms=_elapsed_ms(start),
            )

        outbound = OutboundMessage(
            conversation_id=message.conversation_id,
            user_id=message.user_id,
            channel=message.channel,
            content=reply,
            agent=decision.agent.name,
        )
        save_result = await self._contexts.record_exchange(context, message, outbound)

        logger.info(
            "turn_completed",
            agent=decision.agent.name,
            reason=decision.reason.value,
            turn_count=context.turn_count,
            durability_warning=save_result.durability_warning,
        )
        return TurnResult(
            conversation_id=message.conversation_id,
            response=outbound,
            decision=decision,
            save_result=save_result,
            degraded=context.degraded,
            total_time_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000

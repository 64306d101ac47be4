"""Agent routing: pick one agent per turn, then make the answer call."""

import asyncio
import time

from parley.agents.base import Agent
from parley.agents.models import AgentDescriptor, RoutingDecision
from parley.agents.registry import AgentRegistry
from parley.agents.retry import RetryExhaustedError, RetryPolicy
from parley.agents.variants import build_agent
from parley.config.models.routing import RoutingConfig
from parley.conversation.models import (
    AgentTransition,
    ConversationContext,
    InboundMessage,
    TransitionReason,
)
from parley.errors import AgentInvocationError
from parley.observability.logging import get_logger
from parley.observability.metrics import (
    CONFIDENCE_FAILURES,
    INVOCATION_ATTEMPTS,
    INVOCATION_FAILURES,
    INVOCATION_LATENCY,
    ROUTING_DECISIONS,
)
from parley.providers.llm.base import ModelClient, ProviderError

logger = get_logger(__name__)


class AgentRouter:
    """Selects the agent for each turn and invokes it.

    Selection:
    1. The current agent, if still active, is asked first and kept when
       its confidence reaches `keep_threshold`.
    2. Otherwise every active agent is scored concurrently, each under
       its own timeout. Failures score 0. The highest score wins; ties go
       to the category earlier in priority order.
    3. A winner under `fallback_threshold` is replaced by the fallback
       agent.

    The winner becomes `context.current_agent` and an AgentTransition is
    appended. Invocation is a single answer call wrapped in RetryPolicy.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        model_client: ModelClient,
        config: RoutingConfig | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or RoutingConfig()
        self._retry = retry_policy or RetryPolicy(self._config.retry)
        self._agents: dict[str, Agent] = {
            descriptor.name: build_agent(descriptor, model_client)
            for descriptor in registry.active()
        }

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    def agent(self, name: str) -> Agent:
        return self._agents[name]

    async def select_agent(
        self, message: InboundMessage, context: ConversationContext
    ) -> AgentDescriptor:
        decision = await self.route(message, context)
        return decision.agent

    async def route(
        self, message: InboundMessage, context: ConversationContext
    ) -> RoutingDecision:
        """Choose an agent and record the choice on the context."""
        previous = context.current_agent
        scores: dict[str, float] = {}

        if previous is not None and previous in self._agents:
            current_score = await self._score(self._agents[previous], message, context)
            scores[previous] = current_score
            if current_score >= self._config.keep_threshold:
                return self._decide(
                    context,
                    self._agents[previous].descriptor,
                    current_score,
                    TransitionReason.KEPT,
                    previous,
                    scores,
                )

        candidates = [a for a in self._agents.values() if a.name not in scores]
        results = await asyncio.gather(
            *(self._score(agent, message, context) for agent in candidates)
        )
        scores.update(zip((a.name for a in candidates), results, strict=True))

        # active() is priority ordered, so the first maximum wins ties
        ranked = self._registry.active()
        best = ranked[0]
        for descriptor in ranked[1:]:
            if scores[descriptor.name] > scores[best.name]:
                best = descriptor
        best_score = scores[best.name]

        if best_score < self._config.fallback_threshold:
            fallback = self._registry.fallback()
            return self._decide(
                context,
                fallback,
                scores.get(fallback.name, 0.0),
                TransitionReason.FALLBACK,
                previous,
                scores,
            )

        return self._decide(
            context, best, best_score, TransitionReason.SELECTED, previous, scores
        )

    async def invoke(
        self,
        descriptor: AgentDescriptor,
        message: InboundMessage,
        context: ConversationContext,
    ) -> str:
        """Make the single answer call for this turn.

        Raises:
            AgentInvocationError: After retries are exhausted or on a
                non-retryable provider error
        """
        agent = self._agents.get(descriptor.name) or self._agents[
            self._registry.fallback().name
        ]
        timeout = self._config.invoke_timeout_seconds
        attempts = 0

        async def attempt(n: int) -> str:
            nonlocal attempts
            attempts = n
            INVOCATION_ATTEMPTS.labels(agent=agent.name).inc()
            return await asyncio.wait_for(
                agent.invoke(message, context, timeout=timeout), timeout
            )

        def on_failure(n: int, error: BaseException) -> None:
            logger.warning(
                "agent_invoke_attempt_failed",
                agent=agent.name,
                attempt=n,
                error_type=type(error).__name__,
            )

        start = time.perf_counter()
        try:
            return await self._retry.run(attempt, on_failure=on_failure)
        except RetryExhaustedError as e:
            error_type = type(e.last_error).__name__
            INVOCATION_FAILURES.labels(agent=agent.name, error_type=error_type).inc()
            logger.error(
                "agent_invoke_failed",
                agent=agent.name,
                attempts=e.attempts,
                error_type=error_type,
            )
            raise AgentInvocationError(
                f"Agent '{agent.name}' failed after {e.attempts} attempts",
                agent=agent.name,
                attempts=e.attempts,
                timed_out=isinstance(e.last_error, TimeoutError),
            ) from e.last_error
        except ProviderError as e:
            error_type = type(e).__name__
            INVOCATION_FAILURES.labels(agent=agent.name, error_type=error_type).inc()
            logger.error(
                "agent_invoke_rejected",
                agent=agent.name,
                attempts=attempts,
                error_type=error_type,
            )
            raise AgentInvocationError(
                f"Agent '{agent.name}' rejected the request: {e}",
                agent=agent.name,
                attempts=attempts,
            ) from e
        except Exception as e:
            error_type = type(e).__name__
            INVOCATION_FAILURES.labels(agent=agent.name, error_type=error_type).inc()
            logger.exception(
                "agent_invoke_crashed",
                agent=agent.name,
                attempts=attempts,
                error_type=error_type,
            )
            raise AgentInvocationError(
                f"Agent '{agent.name}' failed unexpectedly: {e}",
                agent=agent.name,
                attempts=attempts,
            ) from e
        finally:
            INVOCATION_LATENCY.labels(agent=agent.name).observe(
                time.perf_counter() - start
            )

    async def _score(
        self,
        agent: Agent,
        message: InboundMessage,
        context: ConversationContext,
    ) -> float:
        timeout = self._config.confidence_timeout_seconds
        try:
            return await asyncio.wait_for(
                agent.confidence(message, context, timeout=timeout), timeout
            )
        except Exception as e:
            # Any failure scores 0; one agent must not abort routing
            CONFIDENCE_FAILURES.labels(agent=agent.name).inc()
            logger.warning(
                "agent_confidence_failed",
                agent=agent.name,
                error_type=type(e).__name__,
            )
            return 0.0

    def _decide(
        self,
        context: ConversationContext,
        descriptor: AgentDescriptor,
        confidence: float,
        reason: TransitionReason,
        previous: str | None,
        scores: dict[str, float],
    ) -> RoutingDecision:
        context.record_transition(
            AgentTransition(
                from_agent=previous,
                to_agent=descriptor.name,
                confidence=confidence,
                reason=reason,
            )
        )
        ROUTING_DECISIONS.labels(agent=descriptor.name, reason=reason.value).inc()
        logger.info(
            "agent_selected",
            agent=descriptor.name,
            reason=reason.value,
            confidence=round(confidence, 3),
            previous_agent=previous,
        )
        return RoutingDecision(
            agent=descriptor,
            confidence=confidence,
            reason=reason,
            previous_agent=previous,
            scores=scores,
        )

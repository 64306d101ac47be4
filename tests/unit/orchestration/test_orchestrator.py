"""Tests for ConversationOrchestrator."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from parley.admission import AbuseGuard, AdmissionController, RateLimiter
from parley.admission.stores import InMemoryCounterStore
from parley.agents import AgentRegistry, AgentRouter, RetryPolicy
from parley.config.models.admission import AdmissionConfig
from parley.config.models.routing import RoutingConfig
from parley.conversation import ContextStore
from parley.conversation.models import TransitionReason, TurnDirection
from parley.conversation.store import ContextCache, DurableContextStore
from parley.conversation.stores import InMemoryContextCache, InMemoryDurableContextStore
from parley.errors import (
    AdmissionDeniedError,
    CacheError,
    ErrorCode,
    PersistenceError,
)
from parley.orchestration import ConversationOrchestrator
from parley.providers.llm import MockModelClient
from parley.providers.llm.base import AuthenticationError
from tests.factories import ScriptedModelClient, make_message


async def _no_sleep(_: float) -> None:
    return None


def _orchestrator(
    registry: AgentRegistry,
    client: MockModelClient,
    context_store: ContextStore,
    admission: AdmissionController,
    routing_config: RoutingConfig,
) -> ConversationOrchestrator:
    router = AgentRouter(
        registry,
        client,
        routing_config,
        retry_policy=RetryPolicy(routing_config.retry, sleep=_no_sleep),
    )
    return ConversationOrchestrator(context_store, router, admission)


class TestProcessTurn:
    """The load, route, invoke, save pipeline."""

    @pytest.mark.asyncio
    async def test_successful_turn(
        self,
        orchestrator: ConversationOrchestrator,
        model_client: MockModelClient,
        durable_store: InMemoryDurableContextStore,
    ) -> None:
        model_client.scores = {"model-greeter": 0.9}

        result = await orchestrator.process_turn(make_message("hello"))

        assert result.ok
        assert result.response is not None
        assert result.response.content == "Sure, I can help with that."
        assert result.response.agent == "greeter"
        assert result.decision is not None
        assert result.decision.reason is TransitionReason.SELECTED
        assert not result.durability_warning

        stored = await durable_store.get("conv-1")
        assert stored is not None
        assert [t.direction for t in stored.turns] == [
            TurnDirection.INBOUND,
            TurnDirection.OUTBOUND,
        ]
        assert stored.current_agent == "greeter"
        assert stored.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_second_turn_keeps_agent(
        self,
        orchestrator: ConversationOrchestrator,
        model_client: MockModelClient,
    ) -> None:
        model_client.scores = {"model-tasks": 0.9}

        await orchestrator.process_turn(make_message("book a table"))
        result = await orchestrator.process_turn(make_message("for two"))

        assert result.decision is not None
        assert result.decision.reason is TransitionReason.KEPT
        assert result.decision.previous_agent == "tasks"

    @pytest.mark.asyncio
    async def test_unconfident_agents_route_to_fallback(
        self, orchestrator: ConversationOrchestrator
    ) -> None:
        result = await orchestrator.process_turn(make_message("qwerty"))

        assert result.ok
        assert result.response is not None
        assert result.response.agent == "fallback"

    @pytest.mark.asyncio
    async def test_invocation_failure_reported_not_raised(
        self,
        registry: AgentRegistry,
        context_store: ContextStore,
        admission: AdmissionController,
        routing_config: RoutingConfig,
        durable_store: InMemoryDurableContextStore,
    ) -> None:
        client = ScriptedModelClient(invoke_errors=[AuthenticationError("bad key")])
        orchestrator = _orchestrator(
            registry, client, context_store, admission, routing_config
        )

        result = await orchestrator.process_turn(make_message())

        assert result.status == "failed"
        assert result.response is None
        assert result.error is not None
        assert result.error.code is ErrorCode.AGENT_INVOCATION_FAILED
        assert await durable_store.get("conv-1") is None

    @pytest.mark.asyncio
    async def test_invocation_timeouts_map_to_agent_timeout(
        self,
        registry: AgentRegistry,
        context_store: ContextStore,
        admission: AdmissionController,
        routing_config: RoutingConfig,
    ) -> None:
        client = ScriptedModelClient(invoke_errors=[TimeoutError() for _ in range(4)])
        orchestrator = _orchestrator(
            registry, client, context_store, admission, routing_config
        )

        result = await orchestrator.process_turn(make_message())

        assert result.status == "timeout"
        assert result.error is not None
        assert result.error.code is ErrorCode.AGENT_TIMEOUT
        assert client.invoke_calls == 4

    @pytest.mark.asyncio
    async def test_durability_warning_surfaces(
        self,
        registry: AgentRegistry,
        model_client: MockModelClient,
        context_cache: InMemoryContextCache,
        admission: AdmissionController,
        routing_config: RoutingConfig,
    ) -> None:
        durable = MagicMock(spec=DurableContextStore)
        durable.get = AsyncMock(return_value=None)
        durable.put = AsyncMock(side_effect=PersistenceError("disk full"))
        orchestrator = _orchestrator(
            registry,
            model_client,
            ContextStore(context_cache, durable),
            admission,
            routing_config,
        )

        result = await orchestrator.process_turn(make_message())

        assert result.ok
        assert result.durability_warning
        assert await context_cache.get("conv-1") is not None

    @pytest.mark.asyncio
    async def test_both_tiers_down_still_answers(
        self,
        registry: AgentRegistry,
        model_client: MockModelClient,
        admission: AdmissionController,
        routing_config: RoutingConfig,
    ) -> None:
        cache = MagicMock(spec=ContextCache)
        cache.get = AsyncMock(side_effect=CacheError("down"))
        cache.set = AsyncMock(side_effect=CacheError("down"))
        durable = MagicMock(spec=DurableContextStore)
        durable.get = AsyncMock(side_effect=PersistenceError("down"))
        durable.put = AsyncMock(side_effect=PersistenceError("down"))
        orchestrator = _orchestrator(
            registry, model_client, ContextStore(cache, durable), admission, routing_config
        )

        result = await orchestrator.process_turn(make_message())

        assert result.ok
        assert result.degraded
        assert result.durability_warning


class TestHandle:
    """Admission runs before any work."""

    @pytest.mark.asyncio
    async def test_admitted_request_is_processed(
        self, orchestrator: ConversationOrchestrator
    ) -> None:
        result = await orchestrator.handle(make_message(), source_ip="10.0.0.1")

        assert result.ok

    @pytest.mark.asyncio
    async def test_rate_limited(
        self,
        registry: AgentRegistry,
        model_client: MockModelClient,
        context_store: ContextStore,
        routing_config: RoutingConfig,
        counter_store: InMemoryCounterStore,
    ) -> None:
        config = AdmissionConfig(request_limit=1)
        admission = AdmissionController(
            RateLimiter(counter_store, config), AbuseGuard(counter_store, config)
        )
        orchestrator = _orchestrator(
            registry, model_client, context_store, admission, routing_config
        )

        await orchestrator.handle(make_message())
        with pytest.raises(AdmissionDeniedError) as exc_info:
            await orchestrator.handle(make_message())

        assert exc_info.value.error_code is ErrorCode.RATE_LIMITED
        assert len(model_client.calls) > 0
        stored = await context_store.load("conv-1")
        assert stored.turn_count == 2

    @pytest.mark.asyncio
    async def test_blocked_source_rejected(
        self,
        orchestrator: ConversationOrchestrator,
        admission: AdmissionController,
        model_client: MockModelClient,
    ) -> None:
        for _ in range(6):
            await admission.record_failure("10.0.0.9")

        with pytest.raises(AdmissionDeniedError) as exc_info:
            await orchestrator.handle(make_message(), source_ip="10.0.0.9")

        assert exc_info.value.error_code is ErrorCode.SOURCE_BLOCKED
        assert model_client.calls == []


class TestCloseConversation:
    @pytest.mark.asyncio
    async def test_close_removes_context(
        self,
        orchestrator: ConversationOrchestrator,
        durable_store: InMemoryDurableContextStore,
    ) -> None:
        await orchestrator.process_turn(make_message())

        assert await orchestrator.close_conversation("conv-1") is True
        assert await durable_store.get("conv-1") is None
        assert await orchestrator.close_conversation("conv-1") is False

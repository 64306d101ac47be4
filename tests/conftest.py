"""Shared test fixtures for the Parley test suite."""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from parley.admission import AbuseGuard, AdmissionController, RateLimiter
from parley.admission.stores import InMemoryCounterStore
from parley.agents import (
    AgentCategory,
    AgentDescriptor,
    AgentRegistry,
    AgentRouter,
    RetryPolicy,
)
from parley.config import get_settings
from parley.config.models.admission import AdmissionConfig
from parley.config.models.routing import RetryConfig, RoutingConfig
from parley.conversation import ContextStore
from parley.conversation.stores import InMemoryContextCache, InMemoryDurableContextStore
from parley.orchestration import ConversationOrchestrator
from parley.providers.llm import MockModelClient
from tests.factories import FakeClock, make_descriptor


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Empty config directory for PARLEY_CONFIG_DIR."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Write {filename: content} TOML files into the config directory."""

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Each test sees freshly loaded settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def descriptors() -> list[AgentDescriptor]:
    """One active agent per category; model reference is model-<name>."""
    return [
        make_descriptor("greeter", AgentCategory.GREETING),
        make_descriptor("classifier", AgentCategory.INTENT_CLASSIFICATION),
        make_descriptor("knowledge", AgentCategory.RETRIEVAL),
        make_descriptor("tasks", AgentCategory.TASK_EXECUTION),
        make_descriptor("fallback", AgentCategory.FALLBACK),
    ]


@pytest.fixture
def registry(descriptors: list[AgentDescriptor]) -> AgentRegistry:
    return AgentRegistry(descriptors)


@pytest.fixture
def model_client() -> MockModelClient:
    return MockModelClient(reply="Sure, I can help with that.")


async def _no_sleep(_: float) -> None:
    return None


@pytest.fixture
def routing_config() -> RoutingConfig:
    return RoutingConfig(
        confidence_timeout_seconds=0.5,
        invoke_timeout_seconds=0.5,
        retry=RetryConfig(jitter=0.0),
    )


@pytest.fixture
def router(
    registry: AgentRegistry,
    model_client: MockModelClient,
    routing_config: RoutingConfig,
) -> AgentRouter:
    return AgentRouter(
        registry,
        model_client,
        routing_config,
        retry_policy=RetryPolicy(routing_config.retry, sleep=_no_sleep),
    )


@pytest.fixture
def context_cache(clock: FakeClock) -> InMemoryContextCache:
    return InMemoryContextCache(clock=clock)


@pytest.fixture
def durable_store() -> InMemoryDurableContextStore:
    return InMemoryDurableContextStore()


@pytest.fixture
def context_store(
    context_cache: InMemoryContextCache,
    durable_store: InMemoryDurableContextStore,
) -> ContextStore:
    return ContextStore(context_cache, durable_store)


@pytest.fixture
def counter_store(clock: FakeClock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def admission_config() -> AdmissionConfig:
    return AdmissionConfig()


@pytest.fixture
def admission(
    counter_store: InMemoryCounterStore, admission_config: AdmissionConfig
) -> AdmissionController:
    return AdmissionController(
        RateLimiter(counter_store, admission_config),
        AbuseGuard(counter_store, admission_config),
    )


@pytest.fixture
def orchestrator(
    context_store: ContextStore,
    router: AgentRouter,
    admission: AdmissionController,
) -> ConversationOrchestrator:
    return ConversationOrchestrator(context_store, router, admission)


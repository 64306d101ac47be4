"""Compose the full Parley stack from settings.

Backends are chosen per section (`inmemory` for development and tests,
`redis` / `postgres` / `local` in production). Channel adapters call:

    app = await bootstrap()
    result = await app.orchestrator.handle(message, source_ip=ip)

    # voice
    session = await app.sessions.run(
        WebSocketMediaTransport(websocket),
        user_id=user_id,
        call_id=call_id,
        conversation_id=conversation_id,
        source_ip=ip,
    )

    await app.aclose()
"""

from dataclasses import dataclass, field

import asyncpg
import httpx
import redis.asyncio as redis

from parley.admission import AbuseGuard, AdmissionController, RateLimiter
from parley.admission.store import CounterStore
from parley.admission.stores import InMemoryCounterStore, RedisCounterStore
from parley.agents import AgentRegistry, AgentRouter
from parley.config import get_settings
from parley.config.settings import Settings
from parley.conversation import ContextStore
from parley.conversation.store import ContextCache, DurableContextStore
from parley.conversation.stores import (
    InMemoryContextCache,
    InMemoryDurableContextStore,
    PostgresContextStore,
    RedisContextCache,
)
from parley.observability.logging import get_logger, setup_logging
from parley.orchestration import ConversationOrchestrator
from parley.providers.llm import HttpModelClient, MockModelClient, ModelClient
from parley.providers.speech import (
    DeepgramSpeechToText,
    DeepgramTextToSpeech,
    MockSpeechToText,
    MockTextToSpeech,
    SpeechToText,
    TextToSpeech,
)
from parley.storage import CallRecordStore, ObjectStore
from parley.storage.stores import (
    InMemoryCallRecordStore,
    InMemoryObjectStore,
    LocalObjectStore,
    PostgresCallRecordStore,
)
from parley.voice import AudioSessionManager

logger = get_logger(__name__)


@dataclass
class Application:
    """Composed services plus the connections they share."""

    settings: Settings
    admission: AdmissionController
    context_store: ContextStore
    router: AgentRouter
    orchestrator: ConversationOrchestrator
    sessions: AudioSessionManager
    redis_client: redis.Redis | None = None
    postgres_pool: asyncpg.Pool | None = None
    http_client: httpx.AsyncClient | None = None
    _closed: bool = field(default=False, repr=False)

    async def health(self) -> dict[str, bool]:
        """Reachability of each external backend in use."""
        return await self.context_store.health()

    async def aclose(self) -> None:
        """Flush pending durable writes, then close connections."""
        if self._closed:
            return
        self._closed = True
        await self.context_store.flush()
        if self.http_client is not None:
            await self.http_client.aclose()
        if self.redis_client is not None:
            await self.redis_client.aclose()
        if self.postgres_pool is not None:
            await self.postgres_pool.close()
        logger.info("application_closed")


async def bootstrap(settings: Settings | None = None) -> Application:
    """Build every service from settings.

    Raises:
        RegistryError: If the agent descriptors are inconsistent
    """
    settings = settings or get_settings()
    setup_logging(settings.observability.logging)

    # Validate the registry before opening any connection
    registry = AgentRegistry.from_config(settings.agents)

    storage = settings.storage
    redis_client: redis.Redis | None = None
    if storage.redis.backend == "redis":
        redis_client = redis.from_url(
            storage.redis.url,
            socket_timeout=storage.redis.socket_timeout,
        )

    postgres_pool: asyncpg.Pool | None = None
    if storage.postgres.backend == "postgres":
        postgres_pool = await asyncpg.create_pool(
            storage.postgres.dsn,
            min_size=storage.postgres.min_pool_size,
            max_size=storage.postgres.max_pool_size,
            command_timeout=storage.postgres.command_timeout,
        )

    counters: CounterStore
    cache: ContextCache
    if redis_client is not None:
        counters = RedisCounterStore(redis_client)
        cache = RedisContextCache(redis_client, key_prefix=storage.context.key_prefix)
    else:
        counters = InMemoryCounterStore()
        cache = InMemoryContextCache()

    durable: DurableContextStore
    call_records: CallRecordStore
    if postgres_pool is not None:
        durable = PostgresContextStore(postgres_pool)
        call_records = PostgresCallRecordStore(postgres_pool)
    else:
        durable = InMemoryDurableContextStore()
        call_records = InMemoryCallRecordStore()

    objects: ObjectStore
    if storage.objects.backend == "local":
        objects = LocalObjectStore(storage.objects.root)
    else:
        objects = InMemoryObjectStore()

    admission = AdmissionController(
        RateLimiter(counters, settings.admission),
        AbuseGuard(counters, settings.admission),
    )
    context_store = ContextStore(cache, durable, storage.context)

    model_cfg = settings.providers.model
    speech_cfg = settings.providers.speech
    http_client: httpx.AsyncClient | None = None
    if model_cfg.provider != "mock" or speech_cfg.provider != "mock":
        http_client = httpx.AsyncClient()

    model_client: ModelClient
    if model_cfg.provider == "openai_compatible":
        model_client = HttpModelClient(
            base_url=model_cfg.base_url,
            api_key=model_cfg.api_key.get_secret_value() if model_cfg.api_key else None,
            confidence_model=model_cfg.confidence_model,
            client=http_client,
        )
    else:
        model_client = MockModelClient()

    stt, tts = _speech_providers(settings, http_client)
    router = AgentRouter(registry, model_client, settings.routing)
    orchestrator = ConversationOrchestrator(context_store, router, admission)
    sessions = AudioSessionManager(
        orchestrator,
        admission,
        stt,
        tts,
        call_records,
        objects,
        settings.voice,
    )

    logger.info(
        "application_bootstrapped",
        redis=redis_client is not None,
        postgres=postgres_pool is not None,
        model_provider=model_cfg.provider,
        speech_provider=speech_cfg.provider,
        agents=len(registry),
    )
    return Application(
        settings=settings,
        admission=admission,
        context_store=context_store,
        router=router,
        orchestrator=orchestrator,
        sessions=sessions,
        redis_client=redis_client,
        postgres_pool=postgres_pool,
        http_client=http_client,
    )


def _speech_providers(
    settings: Settings, http_client: httpx.AsyncClient | None
) -> tuple[SpeechToText, TextToSpeech]:
    cfg = settings.providers.speech
    if cfg.provider == "mock":
        logger.warning("speech_provider_mock", detail="voice turns are placeholders")
        return MockSpeechToText(), MockTextToSpeech()

    api_key = cfg.api_key.get_secret_value() if cfg.api_key else None
    audio = {
        "sample_rate": settings.voice.sample_rate,
        "sample_width": settings.voice.sample_width,
    }
    stt = DeepgramSpeechToText(
        base_url=cfg.base_url,
        api_key=api_key,
        model=cfg.stt_model,
        language=cfg.language,
        timeout=cfg.request_timeout_seconds,
        client=http_client,
        **audio,
    )
    tts = DeepgramTextToSpeech(
        base_url=cfg.base_url,
        api_key=api_key,
        model=cfg.tts_model,
        timeout=cfg.request_timeout_seconds,
        client=http_client,
        **audio,
    )
    return stt, tts

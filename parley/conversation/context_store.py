"""Two-tier conversation context store.

Reads go to the fast tier first, then the durable tier (populating the
fast tier on the way back). Writes always hit the fast tier before
returning so the next turn of the same conversation observes them; the
durable write is inline or backgrounded depending on configuration.

Failure handling:
- fast tier down: reads and writes fall through to the durable tier
- durable tier down on load: treated as not found (fresh context)
- durable tier down on save: durability warning, the turn still succeeds
- both down on load: fresh context flagged `degraded` for alerting
"""

import asyncio

from parley.config.models.storage import ContextStoreConfig
from parley.conversation.models import (
    Channel,
    ConversationContext,
    ConversationTurn,
    InboundMessage,
    OutboundMessage,
    SaveResult,
    TurnDirection,
)
from parley.conversation.store import ContextCache, DurableContextStore
from parley.errors import CacheError, ContextUnavailableError, PersistenceError
from parley.observability.logging import get_logger
from parley.observability.metrics import (
    CONTEXT_CACHE_ERRORS,
    CONTEXT_CACHE_HITS,
    CONTEXT_CACHE_MISSES,
    CONTEXT_UNAVAILABLE,
    PERSISTENCE_FAILURES,
)

logger = get_logger(__name__)


class ContextStore:
    """Sole writer of ConversationContext across both storage tiers."""

    def __init__(
        self,
        cache: ContextCache,
        durable: DurableContextStore,
        config: ContextStoreConfig | None = None,
    ) -> None:
        self._cache = cache
        self._durable = durable
        self._config = config or ContextStoreConfig()
        # conversation_id -> latest background durable write
        self._inflight: dict[str, asyncio.Task[bool]] = {}

    @property
    def config(self) -> ContextStoreConfig:
        return self._config

    def new_context(
        self,
        conversation_id: str,
        *,
        user_id: str | None = None,
        channel: Channel | None = None,
    ) -> ConversationContext:
        """Build a fresh, not-yet-persisted context."""
        return ConversationContext(
            conversation_id=conversation_id,
            user_id=user_id,
            channel=channel,
            max_turns=self._config.max_turns,
        )

    async def load(
        self,
        conversation_id: str,
        *,
        user_id: str | None = None,
        channel: Channel | None = None,
    ) -> ConversationContext:
        """Load a context, never failing.

        user_id and channel only seed a fresh context; they are ignored
        when a stored context is found.
        """
        cache_ok = True
        try:
            cached = await self._cache.get(conversation_id)
        except CacheError as e:
            cache_ok = False
            cached = None
            CONTEXT_CACHE_ERRORS.labels(operation="get").inc()
            logger.warning(
                "context_cache_get_error",
                conversation_id=conversation_id,
                error=str(e),
            )

        if cached is not None:
            CONTEXT_CACHE_HITS.inc()
            logger.debug("context_retrieved_cache", conversation_id=conversation_id)
            return cached

        durable_ok = True
        try:
            stored = await self._durable.get(conversation_id)
        except PersistenceError as e:
            durable_ok = False
            stored = None
            logger.warning(
                "context_durable_get_error",
                conversation_id=conversation_id,
                error=str(e),
            )

        if stored is not None:
            CONTEXT_CACHE_MISSES.labels(source="durable").inc()
            logger.debug("context_retrieved_durable", conversation_id=conversation_id)
            if cache_ok:
                await self._write_cache(stored)
            return stored

        CONTEXT_CACHE_MISSES.labels(source="fresh").inc()
        context = self.new_context(conversation_id, user_id=user_id, channel=channel)

        if not cache_ok and not durable_ok:
            context.degraded = True
            CONTEXT_UNAVAILABLE.inc()
            logger.error(
                "context_unavailable",
                conversation_id=conversation_id,
            )

        return context

    async def save(self, context: ConversationContext) -> SaveResult:
        """Write the context to both tiers.

        The fast-tier write has completed when this returns. When the
        fast tier is down the durable write is always inline, since it
        is then the only copy later reads can observe.
        """
        cached = await self._write_cache(context)

        if cached and self._config.durable_write_mode == "background":
            self._schedule_durable(context.model_copy(deep=True))
            return SaveResult(cached=True, persisted=None)

        await self._await_inflight(context.conversation_id)
        persisted = await self._write_durable(context)

        if not cached and not persisted:
            logger.error(
                "context_tiers_unavailable",
                conversation_id=context.conversation_id,
            )

        logger.debug(
            "context_saved",
            conversation_id=context.conversation_id,
            cached=cached,
            persisted=persisted,
        )
        return SaveResult(cached=cached, persisted=persisted)

    async def record_exchange(
        self,
        context: ConversationContext,
        inbound: InboundMessage,
        outbound: OutboundMessage,
    ) -> SaveResult:
        """Append an inbound/outbound turn pair and save."""
        context.append_turn(
            ConversationTurn(
                direction=TurnDirection.INBOUND,
                content=inbound.content,
                timestamp=inbound.timestamp,
            )
        )
        context.append_turn(
            ConversationTurn(
                direction=TurnDirection.OUTBOUND,
                content=outbound.content,
                agent=outbound.agent,
                timestamp=outbound.timestamp,
            )
        )
        if context.user_id is None:
            context.user_id = inbound.user_id
        if context.channel is None:
            context.channel = inbound.channel
        return await self.save(context)

    async def close(self, conversation_id: str) -> bool:
        """Close a conversation, deleting it from both tiers.

        This is the only path that removes durable records.

        Raises:
            PersistenceError: If the durable delete failed
            ContextUnavailableError: If both tiers failed
        """
        await self._await_inflight(conversation_id)

        cache_ok = True
        try:
            await self._cache.delete(conversation_id)
        except CacheError as e:
            cache_ok = False
            CONTEXT_CACHE_ERRORS.labels(operation="delete").inc()
            logger.warning(
                "context_cache_delete_error",
                conversation_id=conversation_id,
                error=str(e),
            )

        try:
            existed = await self._durable.delete(conversation_id)
        except PersistenceError as e:
            if not cache_ok:
                raise ContextUnavailableError(
                    f"Both tiers failed closing {conversation_id}"
                ) from e
            raise

        logger.info("context_closed", conversation_id=conversation_id, existed=existed)
        return existed

    async def flush(self, conversation_id: str | None = None) -> None:
        """Wait for pending background durable writes."""
        if conversation_id is not None:
            await self._await_inflight(conversation_id)
            return
        pending = list(self._inflight.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def health(self) -> dict[str, bool]:
        """Reachability of each tier, checked concurrently."""
        cache_ok, durable_ok = await asyncio.gather(
            self._cache.ping(), self._durable.ping()
        )
        return {"cache": cache_ok, "durable": durable_ok}

    async def _write_cache(self, context: ConversationContext) -> bool:
        try:
            await self._cache.set(context, self._config.cache_ttl_seconds)
            return True
        except CacheError as e:
            CONTEXT_CACHE_ERRORS.labels(operation="set").inc()
            logger.warning(
                "context_cache_set_error",
                conversation_id=context.conversation_id,
                error=str(e),
            )
            return False

    async def _write_durable(self, context: ConversationContext) -> bool:
        try:
            await self._durable.put(context)
            return True
        except PersistenceError as e:
            PERSISTENCE_FAILURES.inc()
            logger.warning(
                "context_durability_warning",
                conversation_id=context.conversation_id,
                error=str(e),
            )
            return False

    def _schedule_durable(self, snapshot: ConversationContext) -> None:
        conversation_id = snapshot.conversation_id
        previous = self._inflight.get(conversation_id)
        task = asyncio.create_task(self._write_after(previous, snapshot))
        self._inflight[conversation_id] = task

        def _done(finished: asyncio.Task[bool]) -> None:
            if self._inflight.get(conversation_id) is finished:
                del self._inflight[conversation_id]

        task.add_done_callback(_done)

    async def _write_after(
        self,
        previous: asyncio.Task[bool] | None,
        snapshot: ConversationContext,
    ) -> bool:
        # Writes for one conversation land in save order
        if previous is not None:
            await asyncio.wait([previous])
        return await self._write_durable(snapshot)

    async def _await_inflight(self, conversation_id: str) -> None:
        task = self._inflight.get(conversation_id)
        if task is not None:
            await asyncio.wait([task])

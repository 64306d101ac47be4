"""In-memory implementations of the context storage tiers."""

import time
from collections.abc import Callable

from parley.conversation.models import ConversationContext
from parley.conversation.store import ContextCache, DurableContextStore


class InMemoryContextCache(ContextCache):
    """Dict-backed fast tier for testing and development.

    Contexts are stored serialized so callers never share mutable
    instances with the cache, mirroring what a network cache gives.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, conversation_id: str) -> ConversationContext | None:
        entry = self._entries.get(conversation_id)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[conversation_id]
            return None
        return ConversationContext.model_validate_json(data)

    async def set(self, context: ConversationContext, ttl_seconds: int) -> None:
        self._entries[context.conversation_id] = (
            context.model_dump_json(),
            self._clock() + ttl_seconds,
        )

    async def delete(self, conversation_id: str) -> None:
        self._entries.pop(conversation_id, None)

    async def ping(self) -> bool:
        return True


class InMemoryDurableContextStore(DurableContextStore):
    """Dict-backed durable tier for testing and development.

    Not suitable for production use.
    """

    def __init__(self) -> None:
        self._contexts: dict[str, str] = {}

    async def get(self, conversation_id: str) -> ConversationContext | None:
        data = self._contexts.get(conversation_id)
        return ConversationContext.model_validate_json(data) if data else None

    async def put(self, context: ConversationContext) -> None:
        self._contexts[context.conversation_id] = context.model_dump_json()

    async def delete(self, conversation_id: str) -> bool:
        return self._contexts.pop(conversation_id, None) is not None

    async def ping(self) -> bool:
        return True

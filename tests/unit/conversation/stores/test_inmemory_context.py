"""Tests for in-memory context tiers."""

import pytest

from parley.conversation.models import ConversationContext
from parley.conversation.stores import InMemoryContextCache, InMemoryDurableContextStore
from tests.factories import FakeClock


class TestInMemoryContextCache:
    """TTL behavior against a fake clock."""

    @pytest.mark.asyncio
    async def test_get_within_ttl(self, clock: FakeClock) -> None:
        cache = InMemoryContextCache(clock=clock)
        await cache.set(ConversationContext(conversation_id="c1"), ttl_seconds=60)

        clock.advance(59)

        assert await cache.get("c1") is not None

    @pytest.mark.asyncio
    async def test_expires_after_ttl(self, clock: FakeClock) -> None:
        cache = InMemoryContextCache(clock=clock)
        await cache.set(ConversationContext(conversation_id="c1"), ttl_seconds=60)

        clock.advance(60)

        assert await cache.get("c1") is None

    @pytest.mark.asyncio
    async def test_returns_copies(self, clock: FakeClock) -> None:
        cache = InMemoryContextCache(clock=clock)
        context = ConversationContext(conversation_id="c1")
        await cache.set(context, ttl_seconds=60)

        context.metadata["mutated"] = True

        cached = await cache.get("c1")
        assert cached is not None
        assert "mutated" not in cached.metadata


class TestInMemoryDurableContextStore:
    @pytest.mark.asyncio
    async def test_put_get_delete(self) -> None:
        store = InMemoryDurableContextStore()
        await store.put(ConversationContext(conversation_id="c1"))

        assert await store.get("c1") is not None
        assert await store.delete("c1") is True
        assert await store.delete("c1") is False
        assert await store.get("c1") is None

"""Storage tier implementations for conversation contexts."""

from parley.conversation.store import ContextCache, DurableContextStore
from parley.conversation.stores.inmemory import (
    InMemoryContextCache,
    InMemoryDurableContextStore,
)
from parley.conversation.stores.postgres import PostgresContextStore
from parley.conversation.stores.redis import RedisContextCache

__all__ = [
    "ContextCache",
    "DurableContextStore",
    "InMemoryContextCache",
    "InMemoryDurableContextStore",
    "PostgresContextStore",
    "RedisContextCache",
]

"""Storage tier interfaces for conversation contexts."""

from abc import ABC, abstractmethod

from parley.conversation.models import ConversationContext


class ContextCache(ABC):
    """Fast tier: contexts held with a time-to-live.

    Implementations raise CacheError when the backend is unreachable.
    """

    @abstractmethod
    async def get(self, conversation_id: str) -> ConversationContext | None:
        """Get an unexpired context by conversation id."""
        pass

    @abstractmethod
    async def set(self, context: ConversationContext, ttl_seconds: int) -> None:
        """Store a context, resetting its TTL."""
        pass

    @abstractmethod
    async def delete(self, conversation_id: str) -> None:
        """Evict a context."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Whether the backend is reachable."""
        pass


class DurableContextStore(ABC):
    """Durable tier: the record of truth for contexts.

    Implementations raise PersistenceError when an operation fails.
    Entries are only removed through `delete`, which the context store
    calls on explicit conversation close.
    """

    @abstractmethod
    async def get(self, conversation_id: str) -> ConversationContext | None:
        """Get a context by conversation id."""
        pass

    @abstractmethod
    async def put(self, context: ConversationContext) -> None:
        """Insert or replace a context."""
        pass

    @abstractmethod
    async def delete(self, conversation_id: str) -> bool:
        """Delete a context, returning whether it existed."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Whether the backend is reachable."""
        pass

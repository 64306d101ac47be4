"""CounterStore abstract interface."""

from abc import ABC, abstractmethod


class CounterStore(ABC):
    """Shared counters with expiry used by every admission policy.

    Implementations must make `incr` and `decr` atomic against the
    shared storage: callers compare the value returned by the increment,
    they never read first and increment afterwards. Backend failures are
    raised as CacheError.
    """

    @abstractmethod
    async def incr(self, key: str, ttl_seconds: int) -> int:
        """Increment a counter and return the new value.

        The expiry is set only when the increment creates the counter
        (result is 1), so a window is never extended by later hits.
        """
        pass

    @abstractmethod
    async def decr(self, key: str) -> int:
        """Decrement a counter, never going below zero.

        A missing counter stays missing and 0 is returned.
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> int:
        """Current counter value (0 when missing or expired)."""
        pass

    @abstractmethod
    async def ttl(self, key: str) -> int | None:
        """Seconds until the key expires, None when missing or persistent."""
        pass

    @abstractmethod
    async def set_flag(self, key: str, ttl_seconds: int) -> None:
        """Set a marker key that expires after ttl_seconds."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Whether a key is present and unexpired."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key."""
        pass

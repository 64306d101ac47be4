"""In-memory implementation of CounterStore."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from parley.admission.store import CounterStore


@dataclass
class _Counter:
    value: int
    expires_at: float | None


class InMemoryCounterStore(CounterStore):
    """In-memory CounterStore for testing and single-process development.

    None of the methods await, so each one runs atomically on the event
    loop. Expiry is evaluated lazily against an injectable clock.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._counters: dict[str, _Counter] = {}

    def _live(self, key: str) -> _Counter | None:
        counter = self._counters.get(key)
        if counter is None:
            return None
        if counter.expires_at is not None and counter.expires_at <= self._clock():
            del self._counters[key]
            return None
        return counter

    async def incr(self, key: str, ttl_seconds: int) -> int:
        counter = self._live(key)
        if counter is None:
            counter = _Counter(value=0, expires_at=self._clock() + ttl_seconds)
            self._counters[key] = counter
        counter.value += 1
        return counter.value

    async def decr(self, key: str) -> int:
        counter = self._live(key)
        if counter is None:
            return 0
        counter.value = max(0, counter.value - 1)
        return counter.value

    async def get(self, key: str) -> int:
        counter = self._live(key)
        return counter.value if counter else 0

    async def ttl(self, key: str) -> int | None:
        counter = self._live(key)
        if counter is None or counter.expires_at is None:
            return None
        return max(0, math.ceil(counter.expires_at - self._clock()))

    async def set_flag(self, key: str, ttl_seconds: int) -> None:
        self._counters[key] = _Counter(value=1, expires_at=self._clock() + ttl_seconds)

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def delete(self, key: str) -> None:
        self._counters.pop(key, None)

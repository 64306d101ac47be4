"""Redis implementation of CounterStore.

Increment-with-expiry and floored decrement run as Lua scripts so each
is a single atomic operation on the Redis server, shared by every
process that admits work.
"""

import redis.asyncio as redis

from parley.admission.store import CounterStore
from parley.errors import CacheError
from parley.observability.logging import get_logger

logger = get_logger(__name__)

INCR_WITH_EXPIRY = """
local value = redis.call('INCR', KEYS[1])
if value == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return value
"""

DECR_FLOORED = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
local value = redis.call('DECR', KEYS[1])
if value < 0 then
    redis.call('SET', KEYS[1], 0, 'KEEPTTL')
    value = 0
end
return value
"""


class RedisCounterStore(CounterStore):
    """Redis-backed counters for distributed admission control.

    Key structure is owned by the callers (RateLimiter, AbuseGuard);
    this class only provides the atomic primitives. Redis failures are
    raised as CacheError.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._incr = client.register_script(INCR_WITH_EXPIRY)
        self._decr = client.register_script(DECR_FLOORED)

    async def incr(self, key: str, ttl_seconds: int) -> int:
        try:
            return int(await self._incr(keys=[key], args=[ttl_seconds]))
        except redis.RedisError as e:
            raise CacheError(f"Failed to increment {key}: {e}", cause=e) from e

    async def decr(self, key: str) -> int:
        try:
            return int(await self._decr(keys=[key]))
        except redis.RedisError as e:
            raise CacheError(f"Failed to decrement {key}: {e}", cause=e) from e

    async def get(self, key: str) -> int:
        try:
            value = await self._client.get(key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to read {key}: {e}", cause=e) from e
        return int(value) if value is not None else 0

    async def ttl(self, key: str) -> int | None:
        try:
            remaining = await self._client.ttl(key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to read TTL of {key}: {e}", cause=e) from e
        # -2: missing, -1: no expiry
        return remaining if remaining >= 0 else None

    async def set_flag(self, key: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, 1, ex=ttl_seconds)
        except redis.RedisError as e:
            raise CacheError(f"Failed to set {key}: {e}", cause=e) from e

    async def exists(self, key: str) -> bool:
        try:
            return await self._client.exists(key) > 0
        except redis.RedisError as e:
            raise CacheError(f"Failed to check {key}: {e}", cause=e) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to delete {key}: {e}", cause=e) from e

    async def health_check(self) -> bool:
        """Check Redis connection health."""
        try:
            await self._client.ping()
            return True
        except redis.RedisError as e:
            logger.warning("counter_store_health_check_failed", error=str(e))
            return False

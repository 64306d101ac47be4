"""Redis implementation of the context cache tier."""

import redis.asyncio as redis
from pydantic import ValidationError

from parley.conversation.models import ConversationContext
from parley.conversation.store import ContextCache
from parley.errors import CacheError
from parley.observability.logging import get_logger

logger = get_logger(__name__)


class RedisContextCache(ContextCache):
    """Redis fast tier holding serialized contexts with a TTL.

    Key structure:
    - {prefix}:ctx:{conversation_id}
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "parley") -> None:
        self._client = client
        self._prefix = key_prefix

    def _key(self, conversation_id: str) -> str:
        return f"{self._prefix}:ctx:{conversation_id}"

    async def get(self, conversation_id: str) -> ConversationContext | None:
        try:
            data = await self._client.get(self._key(conversation_id))
        except redis.RedisError as e:
            raise CacheError(f"Failed to get context: {e}", cause=e) from e

        if not data:
            return None
        try:
            return ConversationContext.model_validate_json(data)
        except ValidationError as e:
            logger.warning(
                "redis_payload_invalid",
                conversation_id=conversation_id,
                error_count=e.error_count(),
            )
            raise CacheError(f"Cached context is unreadable: {e}", cause=e) from e

    async def set(self, context: ConversationContext, ttl_seconds: int) -> None:
        try:
            await self._client.setex(
                self._key(context.conversation_id),
                ttl_seconds,
                context.model_dump_json(),
            )
        except redis.RedisError as e:
            raise CacheError(f"Failed to cache context: {e}", cause=e) from e

    async def delete(self, conversation_id: str) -> None:
        try:
            await self._client.delete(self._key(conversation_id))
        except redis.RedisError as e:
            raise CacheError(f"Failed to evict context: {e}", cause=e) from e

    async def ping(self) -> bool:
        try:
            await self._client.ping()
            return True
        except redis.RedisError as e:
            logger.warning("redis_health_check_failed", error=str(e))
            return False

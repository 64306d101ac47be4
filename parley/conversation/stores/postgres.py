"""PostgreSQL implementation of the durable context tier."""

import asyncpg
from pydantic import ValidationError

from parley.conversation.models import ConversationContext
from parley.conversation.store import DurableContextStore
from parley.errors import PersistenceError
from parley.observability.logging import get_logger

logger = get_logger(__name__)

# Connection-level failures surface as OSError/TimeoutError rather than
# PostgresError when the server is unreachable.
POSTGRES_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, TimeoutError)


class PostgresContextStore(DurableContextStore):
    """Durable tier storing each context as a JSONB document.

    Table: conversation_contexts (see alembic migration
    001_create_conversation_tables). Identity columns are kept outside
    the payload for lookups and retention jobs.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get(self, conversation_id: str) -> ConversationContext | None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT payload FROM conversation_contexts
                    WHERE conversation_id = $1
                    """,
                    conversation_id,
                )
        except POSTGRES_ERRORS as e:
            logger.error(
                "postgres_get_error",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise PersistenceError(f"Failed to get context: {e}", cause=e) from e

        if not row:
            return None
        try:
            return ConversationContext.model_validate_json(row["payload"])
        except ValidationError as e:
            logger.error(
                "postgres_payload_invalid",
                conversation_id=conversation_id,
                error_count=e.error_count(),
            )
            raise PersistenceError(f"Stored context is unreadable: {e}", cause=e) from e

    async def put(self, context: ConversationContext) -> None:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO conversation_contexts (
                        conversation_id, user_id, channel, current_agent,
                        payload, created_at, last_activity_at
                    ) VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7)
                    ON CONFLICT (conversation_id) DO UPDATE SET
                        user_id = EXCLUDED.user_id,
                        channel = EXCLUDED.channel,
                        current_agent = EXCLUDED.current_agent,
                        payload = EXCLUDED.payload,
                        last_activity_at = GREATEST(
                            conversation_contexts.last_activity_at,
                            EXCLUDED.last_activity_at
                        )
                    """,
                    context.conversation_id,
                    context.user_id,
                    context.channel.value if context.channel else None,
                    context.current_agent,
                    context.model_dump_json(),
                    context.created_at,
                    context.last_activity_at,
                )
        except POSTGRES_ERRORS as e:
            logger.error(
                "postgres_put_error",
                conversation_id=context.conversation_id,
                error=str(e),
            )
            raise PersistenceError(f"Failed to persist context: {e}", cause=e) from e

    async def delete(self, conversation_id: str) -> bool:
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    """
                    DELETE FROM conversation_contexts
                    WHERE conversation_id = $1
                    """,
                    conversation_id,
                )
        except POSTGRES_ERRORS as e:
            logger.error(
                "postgres_delete_error",
                conversation_id=conversation_id,
                error=str(e),
            )
            raise PersistenceError(f"Failed to delete context: {e}", cause=e) from e

        # asyncpg returns the command tag, e.g. "DELETE 1"
        return status.endswith(" 1")

    async def ping(self) -> bool:
        try:
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except POSTGRES_ERRORS as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False

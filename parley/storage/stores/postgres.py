"""PostgreSQL call record store."""

import asyncpg

from parley.conversation.stores.postgres import POSTGRES_ERRORS
from parley.errors import PersistenceError
from parley.observability.logging import get_logger
from parley.storage.models import CallRecord
from parley.storage.store import CallRecordStore

logger = get_logger(__name__)


class PostgresCallRecordStore(CallRecordStore):
    """Table: call_records (see alembic migration 001)."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def append(self, record: CallRecord) -> None:
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO call_records (
                        record_id, call_id, conversation_id, user_id,
                        connection_id, started_at, ended_at, end_reason,
                        turns, failed_turns, bytes_received, bytes_sent,
                        transcript_key, recording_key
                    ) VALUES (
                        $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14
                    )
                    """,
                    record.record_id,
                    record.call_id,
                    record.conversation_id,
                    record.user_id,
                    record.connection_id,
                    record.started_at,
                    record.ended_at,
                    record.end_reason,
                    record.turns,
                    record.failed_turns,
                    record.bytes_received,
                    record.bytes_sent,
                    record.transcript_key,
                    record.recording_key,
                )
        except POSTGRES_ERRORS as e:
            logger.error(
                "postgres_call_record_error",
                call_id=record.call_id,
                error=str(e),
            )
            raise PersistenceError(f"Failed to append call record: {e}", cause=e) from e

    async def list_for_conversation(self, conversation_id: str) -> list[CallRecord]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT * FROM call_records
                    WHERE conversation_id = $1
                    ORDER BY started_at
                    """,
                    conversation_id,
                )
        except POSTGRES_ERRORS as e:
            raise PersistenceError(f"Failed to list call records: {e}", cause=e) from e

        return [CallRecord.model_validate(dict(row)) for row in rows]

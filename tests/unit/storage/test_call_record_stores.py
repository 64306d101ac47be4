"""Tests for call record stores."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest

from parley.conversation.models import utc_now
from parley.errors import PersistenceError
from parley.storage import CallRecord
from parley.storage.stores import (
    InMemoryCallRecordStore,
    InMemoryObjectStore,
    PostgresCallRecordStore,
)


def _record(conversation_id: str = "conv-1", **overrides) -> CallRecord:
    started = utc_now() - timedelta(seconds=90)
    values = {
        "call_id": "call-1",
        "conversation_id": conversation_id,
        "user_id": "user-1",
        "connection_id": uuid4().hex,
        "started_at": started,
        "ended_at": started + timedelta(seconds=90),
        "end_reason": "stop",
        "turns": 3,
    }
    values.update(overrides)
    return CallRecord(**values)


class TestCallRecord:
    def test_duration(self) -> None:
        assert _record().duration_seconds == pytest.approx(90.0)


class TestInMemoryStores:
    @pytest.mark.asyncio
    async def test_records_filtered_by_conversation(self) -> None:
        store = InMemoryCallRecordStore()
        await store.append(_record("a"))
        await store.append(_record("b"))
        await store.append(_record("a", call_id="call-2"))

        records = await store.list_for_conversation("a")

        assert [r.call_id for r in records] == ["call-1", "call-2"]

    @pytest.mark.asyncio
    async def test_object_store(self) -> None:
        store = InMemoryObjectStore()

        key = await store.put(b"data", prefix="/calls/c1/", suffix=".json")

        assert key.startswith("calls/c1/")
        assert await store.get(key) == b"data"
        assert store.keys() == [key]


@pytest.fixture
def conn() -> AsyncMock:
    connection = AsyncMock()
    connection.execute = AsyncMock(return_value="INSERT 0 1")
    connection.fetch = AsyncMock(return_value=[])
    return connection


@pytest.fixture
def pool(conn: AsyncMock) -> MagicMock:
    acquire = MagicMock()
    acquire.__aenter__ = AsyncMock(return_value=conn)
    acquire.__aexit__ = AsyncMock(return_value=False)
    mock_pool = MagicMock()
    mock_pool.acquire = MagicMock(return_value=acquire)
    return mock_pool


class TestPostgresCallRecordStore:
    @pytest.mark.asyncio
    async def test_append(self, pool: MagicMock, conn: AsyncMock) -> None:
        record = _record()

        await PostgresCallRecordStore(pool).append(record)

        sql, *params = conn.execute.await_args.args
        assert "INSERT INTO call_records" in sql
        assert params[0] == record.record_id
        assert params[1] == "call-1"
        assert len(params) == 14

    @pytest.mark.asyncio
    async def test_list_maps_rows(self, pool: MagicMock, conn: AsyncMock) -> None:
        record = _record()
        conn.fetch.return_value = [record.model_dump()]

        records = await PostgresCallRecordStore(pool).list_for_conversation("conv-1")

        assert records == [record]

    @pytest.mark.asyncio
    async def test_errors_become_persistence_error(
        self, pool: MagicMock, conn: AsyncMock
    ) -> None:
        conn.execute.side_effect = asyncpg.PostgresError("boom")

        with pytest.raises(PersistenceError):
            await PostgresCallRecordStore(pool).append(_record())

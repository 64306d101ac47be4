"""In-memory call record and object stores for development and tests."""

from uuid import uuid4

from parley.storage.models import CallRecord
from parley.storage.store import CallRecordStore, ObjectStore


class InMemoryCallRecordStore(CallRecordStore):
    def __init__(self) -> None:
        self._records: list[CallRecord] = []

    async def append(self, record: CallRecord) -> None:
        self._records.append(record.model_copy(deep=True))

    async def list_for_conversation(self, conversation_id: str) -> list[CallRecord]:
        return [
            r.model_copy(deep=True)
            for r in self._records
            if r.conversation_id == conversation_id
        ]


class InMemoryObjectStore(ObjectStore):
    def __init__(self) -> None:
        self._objects: dict[str, bytes] = {}

    async def put(self, data: bytes, *, prefix: str, suffix: str = "") -> str:
        key = f"{prefix.strip('/')}/{uuid4().hex}{suffix}"
        self._objects[key] = bytes(data)
        return key

    async def get(self, key: str) -> bytes | None:
        return self._objects.get(key)

    def keys(self) -> list[str]:
        return list(self._objects)

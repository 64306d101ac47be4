"""Interfaces for call records and object storage."""

from abc import ABC, abstractmethod

from parley.storage.models import CallRecord


class CallRecordStore(ABC):
    """Append-only durable log of finished calls.

    Implementations raise PersistenceError when an operation fails.
    """

    @abstractmethod
    async def append(self, record: CallRecord) -> None:
        """Add a record."""
        pass

    @abstractmethod
    async def list_for_conversation(self, conversation_id: str) -> list[CallRecord]:
        """Records for a conversation, oldest first."""
        pass


class ObjectStore(ABC):
    """Put-once blob storage for transcripts and recordings.

    Every put gets a fresh, unique key; existing objects are never
    overwritten.
    """

    @abstractmethod
    async def put(self, data: bytes, *, prefix: str, suffix: str = "") -> str:
        """Store data under a new key and return the key."""
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Read an object back, or None when the key is unknown."""
        pass

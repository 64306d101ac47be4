"""Call records and object storage for finished voice sessions."""

from parley.storage.models import CallRecord
from parley.storage.store import CallRecordStore, ObjectStore

__all__ = ["CallRecord", "CallRecordStore", "ObjectStore"]

"""Call record and object store implementations."""

from parley.storage.stores.inmemory import InMemoryCallRecordStore, InMemoryObjectStore
from parley.storage.stores.local import LocalObjectStore
from parley.storage.stores.postgres import PostgresCallRecordStore

__all__ = [
    "InMemoryCallRecordStore",
    "InMemoryObjectStore",
    "LocalObjectStore",
    "PostgresCallRecordStore",
]

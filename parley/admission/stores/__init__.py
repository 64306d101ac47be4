"""Counter stores for admission control."""

from parley.admission.store import CounterStore
from parley.admission.stores.inmemory import InMemoryCounterStore
from parley.admission.stores.redis import RedisCounterStore

__all__ = [
    "CounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
]

"""In-memory store implementations for tests and local runs."""

from orderflow.store.fake.store import InMemoryOrderStore, PushRecord

__all__ = [
    "InMemoryOrderStore",
    "PushRecord",
]

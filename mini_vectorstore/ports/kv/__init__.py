"""Key-value backing stores for `PersistentEmbeddingCache`."""

from .in_memory import InMemoryKeyValueStore
from .sqlite import SQLiteKeyValueStore

__all__ = ["InMemoryKeyValueStore", "SQLiteKeyValueStore"]

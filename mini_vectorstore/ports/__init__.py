"""Concrete adapters for persistence and key-value backing stores."""

from .db_api import Database
from .kv import InMemoryKeyValueStore, SQLiteKeyValueStore
from .persistence import (
    ChunkedFilePersistence,
    HTTPPersistence,
    InMemoryPersistence,
    SQLitePersistence,
)

__all__ = [
    "ChunkedFilePersistence",
    "Database",
    "HTTPPersistence",
    "InMemoryKeyValueStore",
    "InMemoryPersistence",
    "SQLiteKeyValueStore",
    "SQLitePersistence",
]

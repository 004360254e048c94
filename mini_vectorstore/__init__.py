"""mini_vectorstore: an in-memory vector document store with pluggable adapters."""

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .ports import (
    ChunkedFilePersistence,
    Database,
    HTTPPersistence,
    InMemoryKeyValueStore,
    InMemoryPersistence,
    SQLiteKeyValueStore,
    SQLitePersistence,
)

__all__ = [
    *_core_all,
    "ChunkedFilePersistence",
    "Database",
    "HTTPPersistence",
    "InMemoryKeyValueStore",
    "InMemoryPersistence",
    "SQLiteKeyValueStore",
    "SQLitePersistence",
]

"""Persistence adapter exports."""

from .chunked_file import ChunkedFilePersistence
from .http import HTTPPersistence
from .in_memory import InMemoryPersistence
from .sqlite import SQLitePersistence

__all__ = [
    "ChunkedFilePersistence",
    "HTTPPersistence",
    "InMemoryPersistence",
    "SQLitePersistence",
]

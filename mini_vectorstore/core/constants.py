"""Default configuration values shared by the store, adapters, and policies."""

from __future__ import annotations

# Search
DEFAULT_SEARCH_LIMIT = 10
DEFAULT_SEARCH_THRESHOLD = 0.0
DEFAULT_VECTOR_WEIGHT = 0.7
DEFAULT_KEYWORD_WEIGHT = 0.3

# Snapshot schema version written by `VectorStore.export_store()`.
EXPORT_VERSION = 1

# Embedding cache
EMBEDDING_CACHE_DEFAULT_MAX_SIZE = 1000
EMBEDDING_CACHE_DEFAULT_TTL_MS = 3_600_000
EMBEDDING_CACHE_SWEEP_INTERVAL = 100
EMBEDDING_CACHE_DEFAULT_NAMESPACE = "embedding_cache"

# Embedding batches
EMBEDDING_BATCH_DEFAULT_SIZE = 100
EMBEDDING_BATCH_DEFAULT_DELAY_MS = 50

# Persistence
CHUNKED_FILE_DEFAULT_CHUNK_SIZE = 100
CHUNKED_FILE_METADATA_NAME = "_metadata.json"
CHUNKED_FILE_DOCUMENTS_PREFIX = "chunk_"
HTTP_DEFAULT_TIMEOUT_SECONDS = 30.0
SQLITE_DOCUMENTS_TABLE = "vs_documents"
SQLITE_METADATA_TABLE = "vs_metadata"
SQLITE_METADATA_KEY = "vectorstore_metadata"
SQLITE_KV_TABLE = "vs_kv"

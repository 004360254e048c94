"""Embedding caches keyed by raw text: LRU+TTL, TTL-only, and persistent-backed."""

from __future__ import annotations

import hashlib
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..constants import (
    EMBEDDING_CACHE_DEFAULT_MAX_SIZE,
    EMBEDDING_CACHE_DEFAULT_TTL_MS,
    EMBEDDING_CACHE_SWEEP_INTERVAL,
)
from ..contracts import KeyValueStorePort
from ..types import CacheStats, Embedding, freeze_embedding, now_ms

logger = logging.getLogger(__name__)

EvictCallback = Callable[[str, Embedding], None]
Clock = Callable[[], int]


def compute_content_hash(text: str) -> str:
    """SHA-256 hex digest of `text`."""

    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass
class _CacheEntry:
    embedding: Embedding
    cached_at: int
    access_count: int = 0


class _EmbeddingCacheBase:
    """Shared bookkeeping: ordered entries, expiry, and hit/miss counters."""

    def __init__(
        self,
        *,
        ttl_ms: int | None,
        max_size: int | None,
        clock: Clock,
    ) -> None:
        if ttl_ms is not None and ttl_ms <= 0:
            raise ValueError("ttl_ms must be > 0")
        if max_size is not None and max_size <= 0:
            raise ValueError("max_size must be > 0")

        self.ttl_ms = ttl_ms
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, text: str) -> Optional[Embedding]:
        key = self._key(text)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._is_expired(entry):
            self._discard(key)
            self._misses += 1
            return None

        self._touch(key)
        entry.access_count += 1
        self._hits += 1
        return entry.embedding

    def set(self, text: str, embedding: Embedding) -> None:
        key = self._key(text)
        self._entries.pop(key, None)
        self._before_insert()
        entry = _CacheEntry(embedding=freeze_embedding(embedding), cached_at=self._clock())
        self._entries[key] = entry
        self._after_insert(key, entry)

    def has(self, text: str) -> bool:
        key = self._key(text)
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._is_expired(entry):
            self._discard(key)
            return False
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def get_stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            max_size=self.max_size,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def _key(self, text: str) -> str:
        return text

    def _is_expired(self, entry: _CacheEntry) -> bool:
        if self.ttl_ms is None:
            return False
        return self._clock() - entry.cached_at > self.ttl_ms

    def _discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def _touch(self, key: str) -> None:
        pass

    def _before_insert(self) -> None:
        pass

    def _after_insert(self, key: str, entry: _CacheEntry) -> None:
        pass


class LRUEmbeddingCache(_EmbeddingCacheBase):
    """Least-recently-used cache with an optional time-to-live.

    A live hit moves the entry to the most-recently-used end. When the cache is
    full, `set()` evicts the single least-recently-used entry before inserting.
    """

    def __init__(
        self,
        *,
        max_size: int = EMBEDDING_CACHE_DEFAULT_MAX_SIZE,
        ttl_ms: int | None = None,
        on_evict: EvictCallback | None = None,
        clock: Clock = now_ms,
    ) -> None:
        super().__init__(ttl_ms=ttl_ms, max_size=max_size, clock=clock)
        self._on_evict = on_evict

    def _touch(self, key: str) -> None:
        self._entries.move_to_end(key)

    def _before_insert(self) -> None:
        assert self.max_size is not None
        if len(self._entries) >= self.max_size:
            key, entry = self._entries.popitem(last=False)
            self._evicted(key, entry)

    def _evicted(self, key: str, entry: _CacheEntry) -> None:
        logger.debug("Evicted least recently used embedding (cache size %d)", len(self._entries))
        if self._on_evict is not None:
            self._on_evict(key, entry.embedding)


class TTLEmbeddingCache(_EmbeddingCacheBase):
    """Unbounded cache whose entries expire `ttl_ms` after insertion.

    Expired entries are swept opportunistically every
    `EMBEDDING_CACHE_SWEEP_INTERVAL` writes and before reporting stats.
    """

    def __init__(
        self,
        *,
        ttl_ms: int = EMBEDDING_CACHE_DEFAULT_TTL_MS,
        clock: Clock = now_ms,
    ) -> None:
        super().__init__(ttl_ms=ttl_ms, max_size=None, clock=clock)
        self._writes = 0

    def _before_insert(self) -> None:
        self._writes += 1
        if self._writes % EMBEDDING_CACHE_SWEEP_INTERVAL == 0:
            self.sweep()

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""

        expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get_stats(self) -> CacheStats:
        self.sweep()
        return super().get_stats()


class PersistentEmbeddingCache(LRUEmbeddingCache):
    """LRU/TTL cache mirrored into a key-value store that survives restarts.

    Reads are served from the in-memory mirror, which is hydrated from the
    backing store at construction. Writes, removals, and clears are forwarded
    to the backing store without waiting on or raising its failures; they are
    logged instead. Entries are keyed by the SHA-256 of the text.
    """

    def __init__(
        self,
        store: KeyValueStorePort,
        *,
        max_size: int = EMBEDDING_CACHE_DEFAULT_MAX_SIZE,
        ttl_ms: int | None = None,
        clock: Clock = now_ms,
    ) -> None:
        super().__init__(max_size=max_size, ttl_ms=ttl_ms, clock=clock)
        self.store = store
        self._hydrate()

    def _hydrate(self) -> None:
        try:
            rows = list(self.store.items())
        except Exception:
            logger.warning("Could not read persisted embedding cache", exc_info=True)
            return

        live: list[tuple[str, _CacheEntry]] = []
        for key, value in rows:
            try:
                entry = _CacheEntry(
                    embedding=freeze_embedding(value["embedding"]),
                    cached_at=int(value["cachedAt"]),
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed cache entry %s", key)
                self._forward("delete", key)
                continue
            if self._is_expired(entry):
                self._forward("delete", key)
                continue
            live.append((key, entry))

        live.sort(key=lambda item: item[1].cached_at)
        assert self.max_size is not None
        for key, entry in live[-self.max_size:]:
            self._entries[key] = entry
        logger.debug("Hydrated %d cached embeddings", len(self._entries))

    def clear(self) -> None:
        super().clear()
        self._forward("clear")

    def _key(self, text: str) -> str:
        return compute_content_hash(text)

    def _discard(self, key: str) -> None:
        super()._discard(key)
        self._forward("delete", key)

    def _evicted(self, key: str, entry: _CacheEntry) -> None:
        super()._evicted(key, entry)
        self._forward("delete", key)

    def _after_insert(self, key: str, entry: _CacheEntry) -> None:
        self._forward(
            "set",
            key,
            {"embedding": [float(v) for v in entry.embedding], "cachedAt": entry.cached_at},
        )

    def _forward(self, operation: str, *args: Any) -> None:
        try:
            getattr(self.store, operation)(*args)
        except Exception:
            logger.warning("Embedding cache backing store %s failed", operation, exc_info=True)

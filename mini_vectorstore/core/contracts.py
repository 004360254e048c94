"""Port contracts for the collaborators used by `VectorStore`.

Every port except the embedding provider is optional. Provider, persistence,
and reranker ports may be implemented with plain or `async` methods; the store
awaits whatever they return.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Protocol, Sequence, Tuple

from .types import (
    CacheStats,
    Embedding,
    EmbeddingInput,
    EmbeddingModelMetadata,
    ScoredResult,
    StoredDocument,
    VectorStoreMetadata,
)


class EmbeddingProviderPort(Protocol):
    """Converts texts to vectors; one vector per input text, order preserved."""

    def embed(self, texts: Sequence[str]) -> Sequence[EmbeddingInput]: ...

    def get_model_metadata(self) -> EmbeddingModelMetadata: ...


class AsyncEmbeddingProviderPort(Protocol):
    """Async variant of `EmbeddingProviderPort`."""

    async def embed(self, texts: Sequence[str]) -> Sequence[EmbeddingInput]: ...

    def get_model_metadata(self) -> EmbeddingModelMetadata: ...


class PersistencePort(Protocol):
    """Durable storage for documents and store metadata."""

    def load(self) -> List[StoredDocument]: ...

    def load_metadata(self) -> Optional[VectorStoreMetadata]: ...

    def save(self, documents: StoredDocument | Sequence[StoredDocument]) -> None: ...

    def save_metadata(self, metadata: VectorStoreMetadata) -> None: ...

    def remove(self, ids: str | Sequence[str]) -> None: ...

    def clear(self) -> None: ...

    def is_available(self) -> bool: ...


class AsyncPersistencePort(Protocol):
    """Async variant of `PersistencePort`."""

    async def load(self) -> List[StoredDocument]: ...

    async def load_metadata(self) -> Optional[VectorStoreMetadata]: ...

    async def save(self, documents: StoredDocument | Sequence[StoredDocument]) -> None: ...

    async def save_metadata(self, metadata: VectorStoreMetadata) -> None: ...

    async def remove(self, ids: str | Sequence[str]) -> None: ...

    async def clear(self) -> None: ...

    async def is_available(self) -> bool: ...


class EmbeddingCachePort(Protocol):
    """Synchronous text -> embedding cache consulted before the provider."""

    def get(self, text: str) -> Optional[Embedding]: ...

    def set(self, text: str, embedding: Embedding) -> None: ...

    def has(self, text: str) -> bool: ...

    def clear(self) -> None: ...

    def get_stats(self) -> CacheStats: ...


class BatchPolicyPort(Protocol):
    """Chunking and pacing of embedding requests."""

    def get_batch_size(self) -> int: ...

    def get_delay_ms(self) -> int: ...

    def should_deduplicate(self) -> bool: ...


class SimilarityPort(Protocol):
    name: str

    def compute(self, left: EmbeddingInput, right: EmbeddingInput) -> float: ...


class RerankerPort(Protocol):
    """Re-scores a candidate result set, usually with a more expensive model."""

    def rerank(self, query: str, results: Sequence[ScoredResult]) -> Sequence[ScoredResult]: ...


class KeyValueStorePort(Protocol):
    """String-keyed JSON value store backing the persistent embedding cache."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def items(self) -> Iterable[Tuple[str, Any]]: ...

    def clear(self) -> None: ...

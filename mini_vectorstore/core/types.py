"""Shared document, search, and metadata entities used by the store and adapters."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt

Embedding = npt.NDArray[np.float32]
EmbeddingInput = Union[Sequence[float], npt.NDArray[Any]]
DocumentMetadata = Mapping[str, Any]
MetadataPredicate = Callable[[Optional[DocumentMetadata]], bool]
MetadataFilter = Union[Mapping[str, Any], MetadataPredicate]
Unsubscribe = Callable[[], None]


def to_embedding(values: EmbeddingInput) -> Embedding:
    """Coerce a numeric sequence into a flat float32 vector."""

    array = np.asarray(values, dtype=np.float32)
    if array.ndim != 1:
        raise ValueError(f"Embedding must be one-dimensional, got shape {array.shape}")
    return array


def freeze_embedding(values: EmbeddingInput) -> Embedding:
    """Return a private read-only float32 copy of `values`."""

    array = np.array(values, dtype=np.float32, copy=True)
    if array.ndim != 1:
        raise ValueError(f"Embedding must be one-dimensional, got shape {array.shape}")
    array.flags.writeable = False
    return array


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""

    return int(time.time() * 1000)


class KeywordMode(str, Enum):
    """Term matching mode used by keyword scoring."""

    EXACT = "exact"
    PREFIX = "prefix"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class Document:
    """Caller-supplied document; `id` is the stable identity key."""

    id: str
    content: str
    metadata: DocumentMetadata | None = None


@dataclass(frozen=True)
class StoredDocument:
    """Authoritative stored form of a document with its embedding.

    The embedding is a private read-only copy and metadata a read-only
    shallow copy of what the caller passed in.
    """

    id: str
    content: str
    embedding: Embedding = field(repr=False, compare=False)
    metadata: DocumentMetadata | None = None
    created_at: int = 0
    updated_at: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "embedding", freeze_embedding(self.embedding))
        if self.metadata is not None:
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True)
class ScoredResult:
    """One ranked search hit; never stored."""

    id: str
    content: str
    score: float
    metadata: DocumentMetadata | None = None
    embedding: Embedding | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class EmbeddingModelMetadata:
    """Identity and dimensionality reported by an embedding provider."""

    provider: str
    model: str
    dimensions: int

    @property
    def model_id(self) -> str:
        return f"{self.provider}:{self.model}"

    @classmethod
    def coerce(cls, value: Any) -> EmbeddingModelMetadata:
        """Accept an instance, a mapping, or any object with the same attributes."""

        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(
                provider=str(value["provider"]),
                model=str(value["model"]),
                dimensions=int(value["dimensions"]),
            )
        return cls(
            provider=str(value.provider),
            model=str(value.model),
            dimensions=int(value.dimensions),
        )


@dataclass(frozen=True)
class VectorStoreMetadata:
    """Store-level record persisted next to the documents."""

    model_id: str
    dimension: int
    document_count: int
    created_at: int
    updated_at: int


@dataclass(frozen=True)
class ExportedVectorStore:
    """Versioned snapshot of a full document set."""

    version: int
    exported_at: int
    model_id: str
    dimension: int
    documents: tuple[StoredDocument, ...] = ()


@dataclass(frozen=True)
class CacheStats:
    size: int
    hits: int
    misses: int
    max_size: int | None = None


@dataclass(frozen=True)
class MemoryInfo:
    document_count: int
    estimated_bytes: int
    dimension_count: int


def is_document(value: Any) -> bool:
    """Return True for a `Document` or a mapping shaped like one."""

    if isinstance(value, Document):
        return True
    if not isinstance(value, Mapping):
        return False
    if not isinstance(value.get("id"), str) or not isinstance(value.get("content"), str):
        return False
    metadata = value.get("metadata")
    return metadata is None or isinstance(metadata, Mapping)


def estimate_document_bytes(doc: StoredDocument) -> int:
    """Rough in-memory footprint of a stored document."""

    total = int(doc.embedding.nbytes)
    total += len(doc.id.encode("utf-8")) + len(doc.content.encode("utf-8"))
    if doc.metadata:
        for key, value in doc.metadata.items():
            total += len(str(key).encode("utf-8")) + len(repr(value).encode("utf-8"))
    # two integer timestamps
    return total + 16

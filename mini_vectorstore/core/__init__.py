"""Public core API for the document store, scoring, caching, and batching."""

from .contracts import (
    AsyncEmbeddingProviderPort,
    AsyncPersistencePort,
    BatchPolicyPort,
    EmbeddingCachePort,
    EmbeddingProviderPort,
    KeyValueStorePort,
    PersistencePort,
    RerankerPort,
    SimilarityPort,
)
from .enhancement.batch import BatchedEmbeddingProvider, BatchPolicy, embed_in_batches
from .enhancement.cache import (
    LRUEmbeddingCache,
    PersistentEmbeddingCache,
    TTLEmbeddingCache,
    compute_content_hash,
)
from .errors import (
    DimensionMismatchError,
    EmbeddingError,
    ModelMismatchError,
    PersistenceError,
    VectorStoreError,
    VectorStoreErrorCode,
    is_vector_store_error,
)
from .types import (
    CacheStats,
    Document,
    EmbeddingModelMetadata,
    ExportedVectorStore,
    KeywordMode,
    MemoryInfo,
    ScoredResult,
    StoredDocument,
    VectorStoreMetadata,
    is_document,
)
from .vector_store import VectorStore, create_vector_store
from .vectors.document_codecs import (
    MetadataCodec,
    TaggedJsonMetadataCodec,
    deserialize_snapshot,
    deserialize_stored_document,
    dumps_snapshot,
    loads_snapshot,
    serialize_snapshot,
    serialize_stored_document,
)
from .vectors.keywords import compute_keyword_score, levenshtein_distance, tokenize
from .vectors.similarity import (
    CosineSimilarity,
    DotSimilarity,
    EuclideanSimilarity,
    SimilarityMetric,
    cosine_similarity,
    dimensions_match,
    dot_product_similarity,
    euclidean_similarity,
    magnitude,
    normalize_similarity_metric,
    normalize_vector,
    resolve_similarity,
)

__all__ = [
    "VectorStore",
    "create_vector_store",
    "Document",
    "StoredDocument",
    "ScoredResult",
    "EmbeddingModelMetadata",
    "VectorStoreMetadata",
    "ExportedVectorStore",
    "CacheStats",
    "MemoryInfo",
    "KeywordMode",
    "is_document",
    "EmbeddingProviderPort",
    "AsyncEmbeddingProviderPort",
    "PersistencePort",
    "AsyncPersistencePort",
    "EmbeddingCachePort",
    "BatchPolicyPort",
    "SimilarityPort",
    "RerankerPort",
    "KeyValueStorePort",
    "LRUEmbeddingCache",
    "TTLEmbeddingCache",
    "PersistentEmbeddingCache",
    "compute_content_hash",
    "BatchPolicy",
    "BatchedEmbeddingProvider",
    "embed_in_batches",
    "VectorStoreError",
    "VectorStoreErrorCode",
    "ModelMismatchError",
    "DimensionMismatchError",
    "EmbeddingError",
    "PersistenceError",
    "is_vector_store_error",
    "MetadataCodec",
    "TaggedJsonMetadataCodec",
    "serialize_stored_document",
    "deserialize_stored_document",
    "serialize_snapshot",
    "deserialize_snapshot",
    "dumps_snapshot",
    "loads_snapshot",
    "tokenize",
    "levenshtein_distance",
    "compute_keyword_score",
    "SimilarityMetric",
    "normalize_similarity_metric",
    "cosine_similarity",
    "dot_product_similarity",
    "euclidean_similarity",
    "magnitude",
    "normalize_vector",
    "dimensions_match",
    "resolve_similarity",
    "CosineSimilarity",
    "DotSimilarity",
    "EuclideanSimilarity",
]

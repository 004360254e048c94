"""Document store with embedding, similarity search, hybrid search, and persistence."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Mapping, Optional, Sequence, TypeVar, Union, overload

from ._async_utils import _as_list, _maybe_await
from .constants import (
    DEFAULT_KEYWORD_WEIGHT,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SEARCH_THRESHOLD,
    DEFAULT_VECTOR_WEIGHT,
    EXPORT_VERSION,
)
from .contracts import (
    AsyncEmbeddingProviderPort,
    AsyncPersistencePort,
    BatchPolicyPort,
    EmbeddingCachePort,
    EmbeddingProviderPort,
    PersistencePort,
    RerankerPort,
)
from .enhancement.batch import ProgressCallback, embed_in_batches
from .errors import (
    DimensionMismatchError,
    ModelMismatchError,
    VectorStoreError,
    VectorStoreErrorCode,
)
from .types import (
    Document,
    DocumentMetadata,
    Embedding,
    EmbeddingModelMetadata,
    ExportedVectorStore,
    KeywordMode,
    MemoryInfo,
    MetadataFilter,
    ScoredResult,
    StoredDocument,
    Unsubscribe,
    VectorStoreMetadata,
    estimate_document_bytes,
    is_document,
    now_ms,
    to_embedding,
)
from .vectors.document_codecs import deserialize_snapshot, dumps_snapshot, loads_snapshot
from .vectors.keywords import KeywordModeInput, compute_keyword_score
from .vectors.similarity import resolve_similarity

logger = logging.getLogger(__name__)

T = TypeVar("T")
DocumentInput = Union[Document, Mapping[str, Any]]
_Scorer = Callable[[Embedding, StoredDocument], float]


class _ListenerSet(Generic[T]):
    """Ordered callbacks for one event kind; each subscription gets its own token."""

    def __init__(self) -> None:
        self._callbacks: dict[int, Callable[[T], None]] = {}
        self._next_token = 0

    def add(self, callback: Callable[[T], None]) -> Unsubscribe:
        token = self._next_token
        self._next_token += 1
        self._callbacks[token] = callback

        def unsubscribe() -> None:
            self._callbacks.pop(token, None)

        return unsubscribe

    def emit(self, value: T) -> None:
        # Listener exceptions propagate to the mutating call.
        for callback in list(self._callbacks.values()):
            callback(value)

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)


class VectorStore:
    """In-memory document store over vector embeddings.

    The store owns the authoritative `id -> StoredDocument` map. Searches are
    an exhaustive scan of that map. Every collaborator except the embedding
    provider is optional; provider, persistence, and reranker methods may be
    sync or async.
    """

    def __init__(
        self,
        embedding: EmbeddingProviderPort | AsyncEmbeddingProviderPort,
        *,
        persistence: PersistencePort | AsyncPersistencePort | None = None,
        similarity: Any = None,
        cache: EmbeddingCachePort | None = None,
        batch: BatchPolicyPort | None = None,
        reranker: RerankerPort | None = None,
        auto_save: bool = True,
        on_document_added: Callable[[StoredDocument], None] | None = None,
        on_document_updated: Callable[[StoredDocument], None] | None = None,
        on_document_removed: Callable[[str], None] | None = None,
    ) -> None:
        """Create a vector store.

        Args:
            embedding: Embedding provider; its model metadata fixes the store's
                model id and dimension.
            persistence: Optional durable storage. Without it the store is
                purely in-memory.
            similarity: Metric name (`"cosine"`, `"dot"`, `"euclidean"`), an
                object with `compute(a, b)`, or a callable. Defaults to cosine.
            cache: Optional text -> embedding cache consulted before the provider.
            batch: Optional batch policy for chunking and pacing provider calls.
            reranker: Optional reranker used when a search passes `rerank=True`.
            auto_save: Persist after every mutation when persistence is set.
            on_document_added: Listener registered at construction.
            on_document_updated: Listener registered at construction.
            on_document_removed: Listener registered at construction.
        """

        model = EmbeddingModelMetadata.coerce(embedding.get_model_metadata())
        if model.dimensions <= 0:
            raise ValueError("dimension must be > 0")

        self.embedding = embedding
        self.persistence = persistence
        self.cache = cache
        self.batch = batch
        self.reranker = reranker
        self.auto_save = auto_save
        self._similarity = resolve_similarity(similarity)
        self._model_id = model.model_id
        self._dimension = model.dimensions

        self._documents: dict[str, StoredDocument] = {}
        self._loaded = False
        self._metadata_created_at: int | None = None

        self._added = _ListenerSet[StoredDocument]()
        self._updated = _ListenerSet[StoredDocument]()
        self._removed = _ListenerSet[str]()
        if on_document_added is not None:
            self._added.add(on_document_added)
        if on_document_updated is not None:
            self._updated.add(on_document_updated)
        if on_document_removed is not None:
            self._removed.add(on_document_removed)

    # ---- Document operations ----

    async def upsert_document(
        self,
        doc: DocumentInput | Sequence[DocumentInput],
        *,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Embed and store one or many documents, replacing existing ids in place."""

        docs = self._coerce_documents(doc)
        if not docs:
            return

        embeddings: list[Embedding | None] = []
        pending: list[int] = []
        for index, item in enumerate(docs):
            cached = self.cache.get(item.content) if self.cache is not None else None
            embeddings.append(cached)
            if cached is None:
                pending.append(index)

        if pending:
            vectors = await embed_in_batches(
                self.embedding,
                [docs[index].content for index in pending],
                self.batch,
                on_progress=on_progress,
            )
            for index, vector in zip(pending, vectors):
                embeddings[index] = vector
                if self.cache is not None:
                    self.cache.set(docs[index].content, vector)

        logger.debug(
            "Upserting %d documents (%d from cache)", len(docs), len(docs) - len(pending)
        )
        for item, vector in zip(docs, embeddings):
            assert vector is not None
            self._put(item, vector)

        if self._should_auto_save():
            await self.save()

    @overload
    async def get_document(self, id: str) -> Optional[StoredDocument]: ...

    @overload
    async def get_document(self, id: Sequence[str]) -> list[Optional[StoredDocument]]: ...

    async def get_document(
        self, id: str | Sequence[str]
    ) -> Optional[StoredDocument] | list[Optional[StoredDocument]]:
        """Fetch by id; a sequence of ids returns a same-order list with `None` gaps."""

        if isinstance(id, str):
            return self._documents.get(id)
        return [self._documents.get(item_id) for item_id in id]

    async def remove_document(self, id: str | Sequence[str]) -> None:
        """Delete ids; unknown ids are ignored and emit no event."""

        ids = _as_list(id, str)
        for item_id in ids:
            if self._documents.pop(item_id, None) is not None:
                self._removed.emit(item_id)

        if ids and self._should_auto_save():
            await _maybe_await(self.persistence.remove(ids))  # type: ignore[union-attr]

    async def has_document(self, id: str) -> bool:
        return id in self._documents

    async def all(self) -> list[StoredDocument]:
        return list(self._documents.values())

    async def count(self) -> int:
        return len(self._documents)

    async def clear(self) -> None:
        """Remove every document and clear persisted state when persistence is set."""

        ids = list(self._documents)
        self._documents.clear()
        for item_id in ids:
            self._removed.emit(item_id)

        if self.persistence is not None:
            await _maybe_await(self.persistence.clear())

    async def update_metadata(self, id: str, metadata: DocumentMetadata) -> None:
        """Replace only the metadata of `id`; a no-op for unknown ids."""

        existing = self._documents.get(id)
        if existing is None:
            return

        updated = StoredDocument(
            id=existing.id,
            content=existing.content,
            embedding=existing.embedding,
            metadata=dict(metadata),
            created_at=existing.created_at,
            updated_at=max(now_ms(), existing.updated_at),
        )
        self._documents[id] = updated
        self._updated.emit(updated)

        if self._should_auto_save():
            await _maybe_await(self.persistence.save(updated))  # type: ignore[union-attr]

    # ---- Search ----

    async def similarity_search(
        self,
        query: str,
        *,
        limit: int = DEFAULT_SEARCH_LIMIT,
        threshold: float = DEFAULT_SEARCH_THRESHOLD,
        filter: MetadataFilter | None = None,
        include_embeddings: bool = False,
        rerank: bool = False,
        rerank_top_k: int | None = None,
    ) -> list[ScoredResult]:
        """Rank stored documents by vector similarity to `query`."""

        similarity = self._similarity

        def score(query_vector: Embedding, doc: StoredDocument) -> float:
            return similarity(query_vector, doc.embedding)

        return await self._rank(
            query,
            score,
            limit=limit,
            threshold=threshold,
            filter=filter,
            include_embeddings=include_embeddings,
            rerank=rerank,
            rerank_top_k=rerank_top_k,
        )

    async def hybrid_search(
        self,
        query: str,
        *,
        vector_weight: float = DEFAULT_VECTOR_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        keyword_mode: KeywordModeInput = KeywordMode.EXACT,
        limit: int = DEFAULT_SEARCH_LIMIT,
        threshold: float = DEFAULT_SEARCH_THRESHOLD,
        filter: MetadataFilter | None = None,
        include_embeddings: bool = False,
        rerank: bool = False,
        rerank_top_k: int | None = None,
    ) -> list[ScoredResult]:
        """Rank by `vector_weight * similarity + keyword_weight * keyword_score`."""

        mode = KeywordMode(keyword_mode)
        similarity = self._similarity

        def score(query_vector: Embedding, doc: StoredDocument) -> float:
            vector_score = similarity(query_vector, doc.embedding) if vector_weight else 0.0
            keyword_score = (
                compute_keyword_score(query, doc.content, mode) if keyword_weight else 0.0
            )
            return vector_weight * vector_score + keyword_weight * keyword_score

        return await self._rank(
            query,
            score,
            limit=limit,
            threshold=threshold,
            filter=filter,
            include_embeddings=include_embeddings,
            rerank=rerank,
            rerank_top_k=rerank_top_k,
        )

    # ---- Persistence ----

    async def load(
        self,
        *,
        ignore_mismatch: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Replace the in-memory set with persisted documents.

        Raises:
            ModelMismatchError: Persisted metadata names another model and
                `ignore_mismatch` is false. The in-memory set is untouched.
        """

        if self.persistence is None:
            self._loaded = True
            return

        if not await _maybe_await(self.persistence.is_available()):
            logger.info("Persistence unavailable; starting with the current in-memory set")
            self._loaded = True
            return

        stored = await _maybe_await(self.persistence.load_metadata())
        if stored is not None and not ignore_mismatch and stored.model_id != self._model_id:
            raise ModelMismatchError(
                expected=self._model_id,
                actual=stored.model_id,
                source="stored",
            )

        docs = list(await _maybe_await(self.persistence.load()))
        documents: dict[str, StoredDocument] = {}
        for index, doc in enumerate(docs, start=1):
            documents[doc.id] = doc
            if on_progress is not None:
                on_progress(index, len(docs))

        self._documents = documents
        if stored is not None:
            self._metadata_created_at = stored.created_at
        self._loaded = True
        logger.info("Loaded %d documents for model %s", len(documents), self._model_id)

    async def save(self) -> None:
        """Write the full document set and a fresh metadata record."""

        if self.persistence is None:
            return

        docs = list(self._documents.values())
        await _maybe_await(self.persistence.save(docs))

        now = now_ms()
        if self._metadata_created_at is None:
            self._metadata_created_at = now
        metadata = VectorStoreMetadata(
            model_id=self._model_id,
            dimension=self._dimension,
            document_count=len(docs),
            created_at=self._metadata_created_at,
            updated_at=now,
        )
        await _maybe_await(self.persistence.save_metadata(metadata))
        logger.debug("Saved %d documents", len(docs))

    async def reload(self) -> None:
        """Load from persistence without model mismatch checking."""

        await self.load(ignore_mismatch=True)

    async def reindex(self, *, on_progress: ProgressCallback | None = None) -> None:
        """Re-embed every document, ignoring and then refilling the cache."""

        if self.cache is not None:
            self.cache.clear()

        docs = list(self._documents.values())
        if not docs:
            return

        vectors = await embed_in_batches(
            self.embedding,
            [doc.content for doc in docs],
            self.batch,
            on_progress=on_progress,
        )
        for doc, vector in zip(docs, vectors):
            if self.cache is not None:
                self.cache.set(doc.content, vector)
            current = self._documents.get(doc.id)
            if current is None:
                continue
            self._put(
                Document(id=current.id, content=current.content, metadata=current.metadata),
                vector,
            )

        logger.info("Reindexed %d documents with %s", len(docs), self._model_id)
        if self._should_auto_save():
            await self.save()

    def is_loaded(self) -> bool:
        return self._loaded

    # ---- Info ----

    def get_model_id(self) -> str:
        return self._model_id

    def get_dimension(self) -> int:
        return self._dimension

    def get_memory_info(self) -> MemoryInfo:
        return MemoryInfo(
            document_count=len(self._documents),
            estimated_bytes=sum(
                estimate_document_bytes(doc) for doc in self._documents.values()
            ),
            dimension_count=self._dimension,
        )

    # ---- Export / import ----

    async def export_store(self) -> ExportedVectorStore:
        return ExportedVectorStore(
            version=EXPORT_VERSION,
            exported_at=now_ms(),
            model_id=self._model_id,
            dimension=self._dimension,
            documents=tuple(self._documents.values()),
        )

    async def import_store(self, data: ExportedVectorStore | Mapping[str, Any]) -> None:
        """Merge a snapshot into the live store by id, keeping imported timestamps.

        Raises:
            ModelMismatchError: The snapshot was produced by another model.
            VectorStoreError: The snapshot version is newer than supported.
        """

        snapshot = data if isinstance(data, ExportedVectorStore) else deserialize_snapshot(data)
        if snapshot.model_id != self._model_id:
            raise ModelMismatchError(
                expected=self._model_id,
                actual=snapshot.model_id,
                source="imported",
            )
        if snapshot.version > EXPORT_VERSION:
            raise VectorStoreError(
                f"Unsupported snapshot version {snapshot.version} "
                f"(max supported {EXPORT_VERSION})",
                VectorStoreErrorCode.INVALID_SNAPSHOT,
            )
        if snapshot.dimension and snapshot.dimension != self._dimension:
            raise DimensionMismatchError(self._dimension, snapshot.dimension)

        for doc in snapshot.documents:
            existed = doc.id in self._documents
            self._documents[doc.id] = doc
            if existed:
                self._updated.emit(doc)
            else:
                self._added.emit(doc)

        logger.info("Imported %d documents", len(snapshot.documents))
        if self._should_auto_save():
            await self.save()

    async def export_json(self, *, indent: int | None = None) -> str:
        """Snapshot as JSON text with embeddings written as plain number lists."""

        return dumps_snapshot(await self.export_store(), indent=indent)

    async def import_json(self, text: str) -> None:
        await self.import_store(loads_snapshot(text))

    # ---- Event subscriptions ----

    def on_document_added(self, callback: Callable[[StoredDocument], None]) -> Unsubscribe:
        return self._added.add(callback)

    def on_document_updated(self, callback: Callable[[StoredDocument], None]) -> Unsubscribe:
        return self._updated.add(callback)

    def on_document_removed(self, callback: Callable[[str], None]) -> Unsubscribe:
        return self._removed.add(callback)

    # ---- Lifecycle ----

    def destroy(self) -> None:
        """Drop documents and listeners; the instance can be loaded and used again."""

        self._documents.clear()
        self._added.clear()
        self._updated.clear()
        self._removed.clear()
        self._loaded = False

    # ---- Internals ----

    def _should_auto_save(self) -> bool:
        return self.auto_save and self.persistence is not None

    def _put(self, doc: Document, embedding: Embedding) -> StoredDocument:
        existing = self._documents.get(doc.id)
        now = now_ms()
        stored = StoredDocument(
            id=doc.id,
            content=doc.content,
            embedding=embedding,
            metadata=dict(doc.metadata) if doc.metadata is not None else None,
            created_at=existing.created_at if existing is not None else now,
            updated_at=max(now, existing.updated_at) if existing is not None else now,
        )
        self._documents[doc.id] = stored
        if existing is not None:
            self._updated.emit(stored)
        else:
            self._added.emit(stored)
        return stored

    async def _rank(
        self,
        query: str,
        scorer: _Scorer,
        *,
        limit: int,
        threshold: float,
        filter: MetadataFilter | None,
        include_embeddings: bool,
        rerank: bool,
        rerank_top_k: int | None,
    ) -> list[ScoredResult]:
        if limit <= 0:
            return []

        vectors = await _maybe_await(self.embedding.embed([query]))
        if len(vectors) == 0:
            return []
        query_vector = to_embedding(vectors[0])

        results: list[ScoredResult] = []
        for doc in list(self._documents.values()):
            if not _matches_filter(doc.metadata, filter):
                continue
            score = scorer(query_vector, doc)
            if score < threshold:
                continue
            results.append(
                ScoredResult(
                    id=doc.id,
                    content=doc.content,
                    score=score,
                    metadata=doc.metadata,
                    embedding=doc.embedding if include_embeddings else None,
                )
            )

        results.sort(key=lambda item: item.score, reverse=True)

        if rerank and self.reranker is not None and results:
            top_k = rerank_top_k if rerank_top_k is not None else limit
            reranked = await _maybe_await(self.reranker.rerank(query, results[:top_k]))
            return list(reranked)[:limit]
        return results[:limit]

    @staticmethod
    def _coerce_documents(doc: DocumentInput | Sequence[DocumentInput]) -> list[Document]:
        items = [doc] if isinstance(doc, (Document, Mapping)) else list(doc)
        documents: list[Document] = []
        for item in items:
            if not is_document(item):
                raise VectorStoreError(
                    f"Invalid document: {item!r}",
                    VectorStoreErrorCode.INVALID_DOCUMENT,
                )
            if isinstance(item, Document):
                documents.append(item)
            else:
                documents.append(
                    Document(id=item["id"], content=item["content"], metadata=item.get("metadata"))
                )
        return documents


def _matches_filter(
    metadata: DocumentMetadata | None,
    filter: MetadataFilter | None,
) -> bool:
    if filter is None:
        return True
    if isinstance(filter, Mapping):
        if not filter:
            return True
        if metadata is None:
            return False
        return all(key in metadata and metadata[key] == value for key, value in filter.items())
    return bool(filter(metadata))


async def create_vector_store(
    embedding: EmbeddingProviderPort | AsyncEmbeddingProviderPort,
    *,
    load: bool = True,
    **options: Any,
) -> VectorStore:
    """Construct a `VectorStore` and, by default, load it from persistence."""

    store = VectorStore(embedding, **options)
    if load:
        await store.load()
    return store

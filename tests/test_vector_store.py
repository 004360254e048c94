from __future__ import annotations

import inspect
import unittest
from unittest.mock import MagicMock, patch

import numpy as np

from mini_vectorstore import (
    BatchPolicy,
    Document,
    DimensionMismatchError,
    EmbeddingError,
    ExportedVectorStore,
    InMemoryPersistence,
    LRUEmbeddingCache,
    ModelMismatchError,
    StoredDocument,
    VectorStore,
    VectorStoreError,
    VectorStoreErrorCode,
    VectorStoreMetadata,
    create_vector_store,
)
from tests.vector_test_helpers import (
    AsyncBagOfWordsEmbeddingProvider,
    BagOfWordsEmbeddingProvider,
    FailingEmbeddingProvider,
    FixedEmbeddingProvider,
    ReverseReranker,
    ShortEmbeddingProvider,
)

_NOW = "mini_vectorstore.core.vector_store.now_ms"

DOC1 = Document(id="doc1", content="TypeScript is great")
DOC2 = Document(id="doc2", content="Python is great")
DOC3 = Document(id="doc3", content="hello world")


class _AsyncInMemoryPersistence:
    def __init__(self) -> None:
        self._delegate = InMemoryPersistence()

    async def load(self):  # noqa: ANN201
        return self._delegate.load()

    async def load_metadata(self):  # noqa: ANN201
        return self._delegate.load_metadata()

    async def save(self, documents) -> None:  # noqa: ANN001
        self._delegate.save(documents)

    async def save_metadata(self, metadata) -> None:  # noqa: ANN001
        self._delegate.save_metadata(metadata)

    async def remove(self, ids) -> None:  # noqa: ANN001
        self._delegate.remove(ids)

    async def clear(self) -> None:
        self._delegate.clear()

    async def is_available(self) -> bool:
        return True


class VectorStoreSurfaceTests(unittest.TestCase):
    def test_async_operations_are_coroutines(self) -> None:
        names = [
            "upsert_document",
            "get_document",
            "remove_document",
            "has_document",
            "all",
            "count",
            "clear",
            "similarity_search",
            "hybrid_search",
            "update_metadata",
            "load",
            "save",
            "reload",
            "reindex",
            "export_store",
            "import_store",
        ]
        for name in names:
            self.assertTrue(inspect.iscoroutinefunction(getattr(VectorStore, name)), name)

    def test_model_identity_comes_from_provider(self) -> None:
        store = VectorStore(FixedEmbeddingProvider({"a": [1.0, 0.0]}, provider="acme", model="m1"))
        self.assertEqual(store.get_model_id(), "acme:m1")
        self.assertEqual(store.get_dimension(), 2)
        self.assertFalse(store.is_loaded())

    def test_rejects_provider_without_dimensions(self) -> None:
        provider = MagicMock()
        provider.get_model_metadata.return_value = {"provider": "p", "model": "m", "dimensions": 0}
        with self.assertRaises(ValueError):
            VectorStore(provider)


class DocumentOperationTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.provider = BagOfWordsEmbeddingProvider()
        self.store = VectorStore(self.provider)

    async def test_fetch_after_insert_returns_content_and_full_embedding(self) -> None:
        await self.store.upsert_document([DOC1, DOC2])

        stored = await self.store.get_document("doc1")
        self.assertIsNotNone(stored)
        self.assertEqual(stored.content, DOC1.content)
        self.assertEqual(len(stored.embedding), self.store.get_dimension())
        self.assertEqual(stored.embedding.dtype, np.float32)
        self.assertEqual(await self.store.count(), 2)
        self.assertTrue(await self.store.has_document("doc2"))
        self.assertFalse(await self.store.has_document("missing"))

    async def test_get_document_with_ids_keeps_order_and_gaps(self) -> None:
        await self.store.upsert_document([DOC1, DOC2])

        found = await self.store.get_document(["doc2", "missing", "doc1"])

        self.assertEqual([doc.id if doc else None for doc in found], ["doc2", None, "doc1"])

    async def test_caller_metadata_is_copied_on_upsert(self) -> None:
        metadata = {"tag": "x", "tags": ["a"]}
        await self.store.upsert_document(Document(id="doc1", content="hi", metadata=metadata))
        metadata["tag"] = "changed"
        metadata["extra"] = True

        stored = await self.store.get_document("doc1")
        self.assertEqual(dict(stored.metadata), {"tag": "x", "tags": ["a"]})
        with self.assertRaises(TypeError):
            stored.metadata["tag"] = "y"
        self.assertFalse(stored.embedding.flags.writeable)

    async def test_accepts_mapping_documents(self) -> None:
        await self.store.upsert_document({"id": "m1", "content": "hello", "metadata": {"a": 1}})

        stored = await self.store.get_document("m1")
        self.assertEqual(stored.metadata, {"a": 1})

    async def test_rejects_invalid_documents(self) -> None:
        with self.assertRaises(VectorStoreError) as ctx:
            await self.store.upsert_document({"id": 1, "content": "hello"})
        self.assertEqual(ctx.exception.code, VectorStoreErrorCode.INVALID_DOCUMENT)
        self.assertEqual(self.provider.calls, [])

    async def test_upsert_preserves_created_at_and_advances_updated_at(self) -> None:
        with patch(_NOW, side_effect=[1_000, 2_000]):
            await self.store.upsert_document(DOC1)
            await self.store.upsert_document(Document(id="doc1", content="Python is fast"))

        stored = await self.store.get_document("doc1")
        self.assertEqual(stored.content, "Python is fast")
        self.assertEqual(stored.created_at, 1_000)
        self.assertEqual(stored.updated_at, 2_000)
        self.assertEqual(await self.store.count(), 1)

    async def test_updated_at_never_moves_backwards(self) -> None:
        with patch(_NOW, side_effect=[5_000, 4_000]):
            await self.store.upsert_document(DOC1)
            await self.store.upsert_document(DOC1)

        stored = await self.store.get_document("doc1")
        self.assertEqual(stored.updated_at, 5_000)

    async def test_empty_upsert_is_a_no_op(self) -> None:
        await self.store.upsert_document([])
        self.assertEqual(self.provider.calls, [])

    async def test_async_provider_is_awaited(self) -> None:
        store = VectorStore(AsyncBagOfWordsEmbeddingProvider())
        await store.upsert_document(DOC1)
        results = await store.similarity_search("TypeScript")
        self.assertEqual(results[0].id, "doc1")

    async def test_wrong_vector_count_stores_nothing(self) -> None:
        store = VectorStore(ShortEmbeddingProvider())
        with self.assertRaises(EmbeddingError):
            await store.upsert_document([DOC1, DOC2])
        self.assertEqual(await store.count(), 0)

    async def test_provider_errors_propagate_unmodified(self) -> None:
        store = VectorStore(FailingEmbeddingProvider())
        with self.assertRaisesRegex(RuntimeError, "provider unavailable"):
            await store.upsert_document(DOC1)

    async def test_remove_ignores_unknown_ids(self) -> None:
        await self.store.upsert_document([DOC1, DOC2])
        removed: list[str] = []
        self.store.on_document_removed(removed.append)

        await self.store.remove_document(["doc1", "missing"])

        self.assertEqual(removed, ["doc1"])
        self.assertEqual([doc.id for doc in await self.store.all()], ["doc2"])

    async def test_clear_emits_removed_for_every_document(self) -> None:
        await self.store.upsert_document([DOC1, DOC2])
        removed: list[str] = []
        self.store.on_document_removed(removed.append)

        await self.store.clear()

        self.assertEqual(sorted(removed), ["doc1", "doc2"])
        self.assertEqual(await self.store.count(), 0)

    async def test_update_metadata_keeps_content_and_embedding(self) -> None:
        await self.store.upsert_document(Document(id="doc1", content="hello", metadata={"a": 1}))
        before = await self.store.get_document("doc1")
        updated: list[StoredDocument] = []
        self.store.on_document_updated(updated.append)

        await self.store.update_metadata("doc1", {"b": 2})
        await self.store.update_metadata("missing", {"b": 2})

        after = await self.store.get_document("doc1")
        self.assertEqual(after.metadata, {"b": 2})
        self.assertEqual(after.content, "hello")
        np.testing.assert_array_equal(after.embedding, before.embedding)
        self.assertEqual(after.created_at, before.created_at)
        self.assertEqual([doc.id for doc in updated], ["doc1"])

    async def test_memory_info(self) -> None:
        await self.store.upsert_document([DOC1, DOC2])

        info = self.store.get_memory_info()

        self.assertEqual(info.document_count, 2)
        self.assertEqual(info.dimension_count, self.store.get_dimension())
        self.assertGreater(info.estimated_bytes, 2 * self.store.get_dimension() * 4)


class EventTests(unittest.IsolatedAsyncioTestCase):
    async def test_added_then_updated_events(self) -> None:
        added: list[str] = []
        updated: list[str] = []
        store = VectorStore(
            BagOfWordsEmbeddingProvider(),
            on_document_added=lambda doc: added.append(doc.id),
        )
        store.on_document_updated(lambda doc: updated.append(doc.id))

        await store.upsert_document([DOC1, DOC2])
        await store.upsert_document(DOC1)

        self.assertEqual(added, ["doc1", "doc2"])
        self.assertEqual(updated, ["doc1"])

    async def test_unsubscribe_is_idempotent_and_only_removes_its_listener(self) -> None:
        store = VectorStore(BagOfWordsEmbeddingProvider())
        first: list[str] = []
        second: list[str] = []
        unsubscribe = store.on_document_added(lambda doc: first.append(doc.id))
        store.on_document_added(lambda doc: second.append(doc.id))

        unsubscribe()
        unsubscribe()
        await store.upsert_document(DOC1)

        self.assertEqual(first, [])
        self.assertEqual(second, ["doc1"])

    async def test_listener_exception_propagates_to_mutating_call(self) -> None:
        store = VectorStore(BagOfWordsEmbeddingProvider())

        def explode(doc: StoredDocument) -> None:
            raise RuntimeError(f"listener failed for {doc.id}")

        store.on_document_added(explode)

        with self.assertRaisesRegex(RuntimeError, "listener failed for doc1"):
            await store.upsert_document(DOC1)


class SearchTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.provider = BagOfWordsEmbeddingProvider()
        self.store = VectorStore(self.provider)
        await self.store.upsert_document([DOC1, DOC2, DOC3])

    async def test_similarity_search_ranks_matching_document_first(self) -> None:
        results = await self.store.similarity_search("TypeScript")

        self.assertEqual(results[0].id, "doc1")
        ids = [item.id for item in results]
        self.assertLess(ids.index("doc1"), ids.index("doc2"))

    async def test_hybrid_keyword_only_scores_both_matches_equally(self) -> None:
        results = await self.store.hybrid_search(
            "great",
            vector_weight=0,
            keyword_weight=1,
            keyword_mode="exact",
        )

        by_id = {item.id: item.score for item in results}
        self.assertEqual(by_id["doc1"], by_id["doc2"])
        self.assertEqual(by_id["doc1"], 1.0)
        self.assertEqual(by_id["doc3"], 0.0)

    async def test_hybrid_search_combines_weights(self) -> None:
        results = await self.store.hybrid_search("python", limit=1)

        self.assertEqual(results[0].id, "doc2")
        self.assertAlmostEqual(results[0].score, 0.7 * (1 / np.sqrt(3)) + 0.3, places=5)

    async def test_hybrid_search_rejects_unknown_keyword_mode(self) -> None:
        with self.assertRaises(ValueError):
            await self.store.hybrid_search("python", keyword_mode="phonetic")

    async def test_scores_are_non_increasing_and_above_threshold(self) -> None:
        results = await self.store.similarity_search("python great", threshold=0.3)

        scores = [item.score for item in results]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertTrue(all(score >= 0.3 for score in scores))
        self.assertEqual([item.id for item in results], ["doc2", "doc1"])

    async def test_limit_bounds(self) -> None:
        calls_before = len(self.provider.calls)
        self.assertEqual(await self.store.similarity_search("python", limit=0), [])
        self.assertEqual(len(self.provider.calls), calls_before)

        results = await self.store.similarity_search("python", limit=50)
        self.assertEqual(len(results), await self.store.count())

    async def test_mapping_filter_requires_every_key(self) -> None:
        await self.store.upsert_document(
            [
                Document(id="t1", content="python", metadata={"lang": "py", "level": 1}),
                Document(id="t2", content="python", metadata={"lang": "py", "level": 2}),
            ]
        )

        results = await self.store.similarity_search("python", filter={"lang": "py", "level": 2})

        self.assertEqual([item.id for item in results], ["t2"])

    async def test_predicate_filter_sees_missing_metadata_as_none(self) -> None:
        await self.store.upsert_document(Document(id="t1", content="python", metadata={"x": 1}))
        seen: list[object] = []

        def keep_tagged(metadata) -> bool:  # noqa: ANN001
            seen.append(metadata)
            return metadata is not None

        results = await self.store.similarity_search("python", filter=keep_tagged)

        self.assertEqual([item.id for item in results], ["t1"])
        self.assertIn(None, seen)

    async def test_embeddings_are_included_only_on_request(self) -> None:
        without = await self.store.similarity_search("python", limit=1)
        self.assertIsNone(without[0].embedding)

        with_embeddings = await self.store.similarity_search(
            "python",
            limit=1,
            include_embeddings=True,
        )
        self.assertEqual(len(with_embeddings[0].embedding), self.store.get_dimension())

    async def test_search_results_cannot_modify_stored_documents(self) -> None:
        store = VectorStore(self.provider)
        await store.upsert_document(Document(id="t", content="python", metadata={"tag": "x"}))
        before = (await store.get_document("t")).embedding.copy()

        hit = (await store.similarity_search("python", include_embeddings=True))[0]
        with self.assertRaises(TypeError):
            hit.metadata["tag"] = "mutated"
        with self.assertRaises(ValueError):
            hit.embedding[:] = 0

        stored = await store.get_document("t")
        self.assertEqual(stored.metadata, {"tag": "x"})
        np.testing.assert_array_equal(stored.embedding, before)
        self.assertEqual(
            [item.id for item in await store.similarity_search("python", filter={"tag": "x"})],
            ["t"],
        )

    async def test_rerank_sees_top_k_and_result_is_cut_to_limit(self) -> None:
        reranker = ReverseReranker()
        store = VectorStore(self.provider, reranker=reranker)
        await store.upsert_document([DOC1, DOC2, DOC3])

        results = await store.similarity_search("python great", limit=2, rerank=True, rerank_top_k=3)

        self.assertEqual(reranker.seen, [["doc2", "doc1", "doc3"]])
        self.assertEqual([item.id for item in results], ["doc3", "doc1"])

    async def test_rerank_defaults_top_k_to_limit(self) -> None:
        reranker = ReverseReranker()
        store = VectorStore(self.provider, reranker=reranker)
        await store.upsert_document([DOC1, DOC2, DOC3])

        results = await store.similarity_search("python great", limit=2, rerank=True)

        self.assertEqual(reranker.seen, [["doc2", "doc1"]])
        self.assertEqual([item.id for item in results], ["doc1", "doc2"])

    async def test_rerank_without_reranker_is_plain_search(self) -> None:
        results = await self.store.similarity_search("python great", limit=2, rerank=True)
        self.assertEqual([item.id for item in results], ["doc2", "doc1"])

    async def test_configured_metric_is_used(self) -> None:
        store = VectorStore(self.provider, similarity="dot")
        await store.upsert_document(Document(id="twice", content="python python"))

        results = await store.similarity_search("python")

        self.assertEqual(results[0].score, 2.0)


class CacheAndBatchTests(unittest.IsolatedAsyncioTestCase):
    async def test_cache_hit_skips_provider(self) -> None:
        provider = BagOfWordsEmbeddingProvider()
        cache = LRUEmbeddingCache(max_size=10)
        store = VectorStore(provider, cache=cache)

        await store.upsert_document(DOC1)
        await store.upsert_document(Document(id="copy", content=DOC1.content))

        self.assertEqual(provider.embedded_texts, [DOC1.content])
        self.assertEqual(cache.get_stats().hits, 1)
        self.assertEqual(await store.count(), 2)

    async def test_cached_vector_is_not_shared_with_stored_documents(self) -> None:
        cache = LRUEmbeddingCache(max_size=10)
        store = VectorStore(BagOfWordsEmbeddingProvider(), cache=cache)
        await store.upsert_document(DOC1)

        cached = cache.get(DOC1.content)
        stored = await store.get_document("doc1")
        self.assertFalse(np.shares_memory(cached, stored.embedding))
        self.assertFalse(cached.flags.writeable)

    async def test_deduplicated_batch_embeds_each_text_once(self) -> None:
        provider = BagOfWordsEmbeddingProvider()
        store = VectorStore(provider, batch=BatchPolicy(batch_size=2, delay_ms=0))

        await store.upsert_document(
            [
                Document(id="a", content="hello"),
                Document(id="b", content="world"),
                Document(id="c", content="hello"),
            ]
        )

        self.assertEqual(provider.calls, [["hello", "world"]])
        a = await store.get_document("a")
        c = await store.get_document("c")
        np.testing.assert_array_equal(a.embedding, c.embedding)

    async def test_upsert_reports_progress(self) -> None:
        store = VectorStore(
            BagOfWordsEmbeddingProvider(),
            batch=BatchPolicy(batch_size=1, delay_ms=0),
        )
        progress: list[tuple[int, int]] = []

        await store.upsert_document(
            [DOC1, DOC2],
            on_progress=lambda done, total: progress.append((done, total)),
        )

        self.assertEqual(progress, [(1, 2), (2, 2)])

    async def test_reindex_bypasses_cache_and_keeps_created_at(self) -> None:
        provider = BagOfWordsEmbeddingProvider()
        cache = LRUEmbeddingCache(max_size=10)
        store = VectorStore(provider, cache=cache)
        with patch(_NOW, side_effect=[1_000, 1_000, 3_000, 3_000]):
            await store.upsert_document([DOC1, DOC2])
            updated: list[str] = []
            store.on_document_updated(lambda doc: updated.append(doc.id))
            await store.reindex()

        self.assertEqual(len(provider.calls), 2)
        self.assertEqual(sorted(updated), ["doc1", "doc2"])
        stored = await store.get_document("doc1")
        self.assertEqual(stored.created_at, 1_000)
        self.assertEqual(stored.updated_at, 3_000)
        self.assertTrue(cache.has(DOC1.content))


class PersistenceTests(unittest.IsolatedAsyncioTestCase):
    async def test_auto_save_writes_documents_and_metadata(self) -> None:
        persistence = InMemoryPersistence()
        store = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)

        await store.upsert_document([DOC1, DOC2])

        self.assertEqual(sorted(doc.id for doc in persistence.load()), ["doc1", "doc2"])
        metadata = persistence.load_metadata()
        self.assertEqual(metadata.model_id, "test:bag-of-words")
        self.assertEqual(metadata.document_count, 2)
        self.assertEqual(metadata.dimension, store.get_dimension())

    async def test_metadata_created_at_is_kept_across_saves(self) -> None:
        persistence = InMemoryPersistence()
        store = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        with patch(_NOW, side_effect=[100, 100, 200, 200]):
            await store.upsert_document(DOC1)
            await store.upsert_document(DOC2)

        metadata = persistence.load_metadata()
        self.assertEqual((metadata.created_at, metadata.updated_at), (100, 200))

    async def test_auto_save_disabled_skips_persistence_until_save(self) -> None:
        persistence = InMemoryPersistence()
        store = VectorStore(
            BagOfWordsEmbeddingProvider(),
            persistence=persistence,
            auto_save=False,
        )

        await store.upsert_document(DOC1)
        self.assertEqual(persistence.load(), [])

        await store.save()
        self.assertEqual([doc.id for doc in persistence.load()], ["doc1"])

    async def test_remove_forwards_every_requested_id(self) -> None:
        persistence = MagicMock(wraps=InMemoryPersistence())
        store = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        await store.upsert_document(DOC1)

        await store.remove_document(["doc1", "missing"])

        persistence.remove.assert_called_once_with(["doc1", "missing"])

    async def test_update_metadata_saves_only_that_document(self) -> None:
        persistence = MagicMock(wraps=InMemoryPersistence())
        store = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        await store.upsert_document([DOC1, DOC2])
        persistence.reset_mock()

        await store.update_metadata("doc1", {"tag": "x"})

        persistence.save.assert_called_once()
        saved = persistence.save.call_args.args[0]
        self.assertIsInstance(saved, StoredDocument)
        self.assertEqual(saved.metadata, {"tag": "x"})
        persistence.save_metadata.assert_not_called()

    async def test_clear_clears_persistence_even_without_auto_save(self) -> None:
        persistence = MagicMock(wraps=InMemoryPersistence())
        store = VectorStore(
            BagOfWordsEmbeddingProvider(),
            persistence=persistence,
            auto_save=False,
        )

        await store.clear()

        persistence.clear.assert_called_once_with()

    async def test_load_replaces_in_memory_set(self) -> None:
        persistence = InMemoryPersistence()
        writer = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        await writer.upsert_document([DOC1, DOC2])

        reader = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence, auto_save=False)
        await reader.upsert_document(DOC3)
        progress: list[tuple[int, int]] = []
        await reader.load(on_progress=lambda done, total: progress.append((done, total)))

        self.assertTrue(reader.is_loaded())
        self.assertEqual(sorted(doc.id for doc in await reader.all()), ["doc1", "doc2"])
        self.assertEqual(progress, [(1, 2), (2, 2)])

    async def test_load_without_persistence_marks_loaded(self) -> None:
        store = VectorStore(BagOfWordsEmbeddingProvider())
        await store.load()
        self.assertTrue(store.is_loaded())

    async def test_unavailable_persistence_is_not_an_error(self) -> None:
        persistence = MagicMock()
        persistence.is_available.return_value = False
        store = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence, auto_save=False)
        await store.upsert_document(DOC1)

        await store.load()

        self.assertTrue(store.is_loaded())
        self.assertEqual(await store.count(), 1)
        persistence.load.assert_not_called()

    async def test_model_mismatch_on_load_leaves_store_untouched(self) -> None:
        persistence = InMemoryPersistence()
        writer = VectorStore(BagOfWordsEmbeddingProvider(model="a"), persistence=persistence)
        await writer.upsert_document([DOC1, DOC2])

        reader = VectorStore(
            BagOfWordsEmbeddingProvider(model="b"),
            persistence=persistence,
            auto_save=False,
        )
        await reader.upsert_document(DOC3)

        with self.assertRaises(ModelMismatchError) as ctx:
            await reader.load()

        self.assertEqual(ctx.exception.code, VectorStoreErrorCode.MODEL_MISMATCH)
        self.assertEqual(ctx.exception.expected, "test:b")
        self.assertEqual(ctx.exception.actual, "test:a")
        self.assertEqual([doc.id for doc in await reader.all()], ["doc3"])
        self.assertFalse(reader.is_loaded())

        await reader.load(ignore_mismatch=True)
        self.assertEqual(await reader.count(), 2)

    async def test_reload_ignores_model_mismatch(self) -> None:
        persistence = InMemoryPersistence()
        writer = VectorStore(BagOfWordsEmbeddingProvider(model="a"), persistence=persistence)
        await writer.upsert_document(DOC1)

        reader = VectorStore(BagOfWordsEmbeddingProvider(model="b"), persistence=persistence)
        await reader.reload()

        self.assertEqual(await reader.count(), 1)

    async def test_async_persistence_is_awaited(self) -> None:
        persistence = _AsyncInMemoryPersistence()
        store = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        await store.upsert_document([DOC1, DOC2])
        await store.remove_document("doc2")

        fresh = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        await fresh.load()

        self.assertEqual([doc.id for doc in await fresh.all()], ["doc1"])

    async def test_create_vector_store_loads_persisted_documents(self) -> None:
        persistence = InMemoryPersistence()
        writer = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        await writer.upsert_document(DOC1)

        store = await create_vector_store(BagOfWordsEmbeddingProvider(), persistence=persistence)

        self.assertTrue(store.is_loaded())
        self.assertTrue(await store.has_document("doc1"))

        lazy = await create_vector_store(
            BagOfWordsEmbeddingProvider(),
            persistence=persistence,
            load=False,
        )
        self.assertFalse(lazy.is_loaded())


class ExportImportTests(unittest.IsolatedAsyncioTestCase):
    async def test_export_then_import_into_fresh_store(self) -> None:
        source = VectorStore(BagOfWordsEmbeddingProvider())
        await source.upsert_document([DOC1, Document(id="doc2", content="Python", metadata={"k": "v"})])
        snapshot = await source.export_store()

        target = VectorStore(BagOfWordsEmbeddingProvider())
        await target.import_store(snapshot)

        self.assertEqual(snapshot.version, 1)
        self.assertEqual(await target.count(), await source.count())
        for original in await source.all():
            copied = await target.get_document(original.id)
            self.assertEqual(copied, original)
            np.testing.assert_array_equal(copied.embedding, original.embedding)

    async def test_json_round_trip(self) -> None:
        source = VectorStore(BagOfWordsEmbeddingProvider())
        await source.upsert_document(Document(id="doc1", content="hello", metadata={"n": 1}))
        text = await source.export_json()

        target = VectorStore(BagOfWordsEmbeddingProvider())
        await target.import_json(text)

        copied = await target.get_document("doc1")
        self.assertEqual(copied.metadata, {"n": 1})

    async def test_import_merges_and_emits_events(self) -> None:
        source = VectorStore(BagOfWordsEmbeddingProvider())
        await source.upsert_document([DOC1, DOC2])
        snapshot = await source.export_store()

        target = VectorStore(BagOfWordsEmbeddingProvider())
        await target.upsert_document([Document(id="doc1", content="old"), DOC3])
        added: list[str] = []
        updated: list[str] = []
        target.on_document_added(lambda doc: added.append(doc.id))
        target.on_document_updated(lambda doc: updated.append(doc.id))

        await target.import_store(snapshot)

        self.assertEqual(added, ["doc2"])
        self.assertEqual(updated, ["doc1"])
        self.assertEqual(await target.count(), 3)
        self.assertEqual((await target.get_document("doc1")).content, DOC1.content)

    async def test_import_rejects_other_model(self) -> None:
        source = VectorStore(BagOfWordsEmbeddingProvider(model="a"))
        await source.upsert_document(DOC1)
        snapshot = await source.export_store()

        target = VectorStore(BagOfWordsEmbeddingProvider(model="b"))
        with self.assertRaises(ModelMismatchError):
            await target.import_store(snapshot)
        self.assertEqual(await target.count(), 0)

    async def test_import_rejects_newer_version_and_wrong_dimension(self) -> None:
        target = VectorStore(BagOfWordsEmbeddingProvider())
        newer = ExportedVectorStore(
            version=2,
            exported_at=0,
            model_id=target.get_model_id(),
            dimension=target.get_dimension(),
        )
        with self.assertRaises(VectorStoreError) as ctx:
            await target.import_store(newer)
        self.assertEqual(ctx.exception.code, VectorStoreErrorCode.INVALID_SNAPSHOT)

        wider = ExportedVectorStore(
            version=1,
            exported_at=0,
            model_id=target.get_model_id(),
            dimension=target.get_dimension() + 1,
        )
        with self.assertRaises(DimensionMismatchError):
            await target.import_store(wider)

    async def test_import_auto_saves(self) -> None:
        source = VectorStore(BagOfWordsEmbeddingProvider())
        await source.upsert_document(DOC1)
        snapshot = await source.export_store()

        persistence = InMemoryPersistence()
        target = VectorStore(BagOfWordsEmbeddingProvider(), persistence=persistence)
        await target.import_store(snapshot)

        self.assertEqual([doc.id for doc in persistence.load()], ["doc1"])
        self.assertIsInstance(persistence.load_metadata(), VectorStoreMetadata)


class LifecycleTests(unittest.IsolatedAsyncioTestCase):
    async def test_destroy_drops_documents_and_listeners(self) -> None:
        store = VectorStore(BagOfWordsEmbeddingProvider())
        added: list[str] = []
        store.on_document_added(lambda doc: added.append(doc.id))
        await store.upsert_document(DOC1)
        await store.load()

        store.destroy()

        self.assertEqual(await store.count(), 0)
        self.assertFalse(store.is_loaded())
        await store.upsert_document(DOC2)
        self.assertEqual(added, ["doc1"])
        self.assertEqual(await store.count(), 1)


if __name__ == "__main__":
    unittest.main()

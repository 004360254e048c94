"""Embedding cache and batched provider calls."""

from __future__ import annotations

import asyncio
import sys
import tempfile
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "mini_vectorstore").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from _toy_provider import HashingEmbeddingProvider

from mini_vectorstore import (
    BatchPolicy,
    Document,
    PersistentEmbeddingCache,
    SQLiteKeyValueStore,
    VectorStore,
)


class CountingProvider(HashingEmbeddingProvider):
    def __init__(self) -> None:
        super().__init__()
        self.requests = 0

    def embed(self, texts):  # noqa: ANN001,ANN201
        self.requests += 1
        print(f"  provider call with {len(texts)} texts")
        return super().embed(texts)


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        cache = PersistentEmbeddingCache(SQLiteKeyValueStore(Path(tmp) / "cache.db"))
        provider = CountingProvider()
        store = VectorStore(
            provider,
            cache=cache,
            batch=BatchPolicy(batch_size=2, delay_ms=10),
        )

        docs = [Document(id=f"d{index}", content=f"note number {index % 3}") for index in range(6)]
        print("First upsert (3 distinct texts, batches of 2):")
        await store.upsert_document(
            docs,
            on_progress=lambda done, total: print(f"  progress {done}/{total}"),
        )

        print("Second upsert is served from the cache:")
        await store.upsert_document(docs)
        print("Provider calls:", provider.requests, "cache:", cache.get_stats())


if __name__ == "__main__":
    asyncio.run(main())

"""Hybrid search, metadata filters, reranking, and change events."""

from __future__ import annotations

import asyncio
import sys
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

from mini_vectorstore import Document, ScoredResult, VectorStore


class LengthReranker:
    """Prefers shorter documents among the candidates."""

    def rerank(self, query: str, results: list[ScoredResult]) -> list[ScoredResult]:
        return sorted(results, key=lambda item: len(item.content))


async def main() -> None:
    store = VectorStore(HashingEmbeddingProvider(), reranker=LengthReranker())
    unsubscribe = store.on_document_added(lambda doc: print("added:", doc.id))
    store.on_document_updated(lambda doc: print("updated:", doc.id))

    await store.upsert_document(
        [
            Document(id="ts", content="TypeScript adds types to JavaScript", metadata={"kind": "web"}),
            Document(id="py", content="Python is great for data work", metadata={"kind": "data"}),
            Document(id="sql", content="SQL queries tabular data", metadata={"kind": "data"}),
        ]
    )
    unsubscribe()

    print("Keyword-only (prefix):")
    for result in await store.hybrid_search(
        "typ",
        vector_weight=0.0,
        keyword_weight=1.0,
        keyword_mode="prefix",
    ):
        print(f"  {result.id}: {result.score:.2f}")

    print("Filtered kind=data:")
    for result in await store.similarity_search("data", filter={"kind": "data"}):
        print(f"  {result.id}: {result.score:.3f}")

    print("Reranked top 3, keep 2:")
    for result in await store.similarity_search("data", limit=2, rerank=True, rerank_top_k=3):
        print(f"  {result.id}")

    await store.update_metadata("py", {"kind": "data", "level": "intro"})


if __name__ == "__main__":
    asyncio.run(main())

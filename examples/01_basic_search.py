"""Basic document flow: upsert, fetch, similarity search, remove."""

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

from mini_vectorstore import Document, VectorStore


async def main() -> None:
    store = VectorStore(HashingEmbeddingProvider())
    print("Model:", store.get_model_id(), "dimension:", store.get_dimension())

    # Upsert documents (insert new and replace existing by ID).
    await store.upsert_document(
        [
            Document(id="doc1", content="TypeScript is great"),
            Document(id="doc2", content="Python is great"),
            Document(id="doc3", content="Rust is fast"),
        ]
    )

    print("Count:", await store.count())
    print("Selected:", await store.get_document(["doc2", "missing"]))

    for result in await store.similarity_search("TypeScript", limit=2):
        print(f"  {result.id}: {result.score:.3f} {result.content!r}")

    await store.remove_document(["doc3", "missing"])
    print("Remaining:", [doc.id for doc in await store.all()])


if __name__ == "__main__":
    asyncio.run(main())

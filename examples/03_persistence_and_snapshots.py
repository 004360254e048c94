"""SQLite persistence, model mismatch detection, and JSON snapshots."""

from __future__ import annotations

import asyncio
import logging
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
    Document,
    ModelMismatchError,
    SQLitePersistence,
    VectorStore,
    create_vector_store,
)


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "vectors.db"

        persistence = SQLitePersistence(path)
        store = VectorStore(HashingEmbeddingProvider(), persistence=persistence)
        await store.upsert_document(
            [
                Document(id="doc1", content="TypeScript is great"),
                Document(id="doc2", content="Python is great"),
            ]
        )
        persistence.close()

        # A new process reopens the same file.
        reopened = await create_vector_store(
            HashingEmbeddingProvider(),
            persistence=SQLitePersistence(path),
        )
        print("Reloaded count:", await reopened.count())

        # Embeddings from another model are rejected unless explicitly ignored.
        other = VectorStore(
            HashingEmbeddingProvider(model="hashing-v2"),
            persistence=SQLitePersistence(path),
            auto_save=False,
        )
        try:
            await other.load()
        except ModelMismatchError as exc:
            print("Refused:", exc)
        await other.load(ignore_mismatch=True)
        await other.reindex()
        print("Reindexed under", other.get_model_id())

        snapshot = await reopened.export_json(indent=2)
        copy = VectorStore(HashingEmbeddingProvider())
        await copy.import_json(snapshot)
        print("Imported count:", await copy.count(), copy.get_memory_info())


if __name__ == "__main__":
    asyncio.run(main())

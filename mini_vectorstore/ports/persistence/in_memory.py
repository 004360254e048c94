"""In-memory persistence adapter for testing and local development."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ...core._async_utils import _as_list
from ...core.types import StoredDocument, VectorStoreMetadata


class InMemoryPersistence:
    """Dict-backed persistence; survives across `VectorStore` instances sharing it."""

    def __init__(self) -> None:
        self._documents: dict[str, StoredDocument] = {}
        self._metadata: VectorStoreMetadata | None = None

    def load(self) -> List[StoredDocument]:
        return list(self._documents.values())

    def load_metadata(self) -> Optional[VectorStoreMetadata]:
        return self._metadata

    def save(self, documents: StoredDocument | Sequence[StoredDocument]) -> None:
        for doc in _as_list(documents, StoredDocument):
            self._documents[doc.id] = doc

    def save_metadata(self, metadata: VectorStoreMetadata) -> None:
        self._metadata = metadata

    def remove(self, ids: str | Sequence[str]) -> None:
        for doc_id in _as_list(ids, str):
            self._documents.pop(doc_id, None)

    def clear(self) -> None:
        self._documents.clear()
        self._metadata = None

    def is_available(self) -> bool:
        return True

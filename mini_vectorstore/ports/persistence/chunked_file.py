"""Directory-backed persistence writing documents as numbered JSON chunk files."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from ...core._async_utils import _as_list
from ...core.constants import (
    CHUNKED_FILE_DEFAULT_CHUNK_SIZE,
    CHUNKED_FILE_DOCUMENTS_PREFIX,
    CHUNKED_FILE_METADATA_NAME,
)
from ...core.errors import PersistenceError, VectorStoreError, VectorStoreErrorCode
from ...core.types import StoredDocument, VectorStoreMetadata
from ...core.vectors.document_codecs import (
    DEFAULT_METADATA_CODEC,
    MetadataCodec,
    deserialize_store_metadata,
    deserialize_stored_document,
    serialize_store_metadata,
    serialize_stored_document,
)

logger = logging.getLogger(__name__)


class ChunkedFilePersistence:
    """Stores documents in `chunk_<n>.json` files plus a `_metadata.json` record.

    Every `save()` merges the given documents into the persisted set by id and
    rewrites all chunk files, `chunk_size` documents per file. New chunks are
    staged as temp files and swapped in before stale chunks are pruned.

    Unreadable chunk files are skipped on load with a warning, but `save()` and
    `remove()` refuse to rewrite the directory while any chunk is unreadable.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        *,
        chunk_size: int = CHUNKED_FILE_DEFAULT_CHUNK_SIZE,
        codec: MetadataCodec = DEFAULT_METADATA_CODEC,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self.directory = Path(directory)
        self.chunk_size = chunk_size
        self.codec = codec

    def load(self) -> List[StoredDocument]:
        documents, _ = self._read_chunks()
        return documents

    def load_metadata(self) -> Optional[VectorStoreMetadata]:
        path = self.directory / CHUNKED_FILE_METADATA_NAME
        if not path.exists():
            return None
        try:
            return deserialize_store_metadata(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable metadata file %s", path, exc_info=True)
            return None

    def save(self, documents: StoredDocument | Sequence[StoredDocument]) -> None:
        docs = _as_list(documents, StoredDocument)
        if not docs:
            return
        merged = {doc.id: doc for doc in self._load_for_rewrite()}
        for doc in docs:
            merged[doc.id] = doc
        self._write_chunks(list(merged.values()))

    def save_metadata(self, metadata: VectorStoreMetadata) -> None:
        self._write_json(
            self.directory / CHUNKED_FILE_METADATA_NAME,
            serialize_store_metadata(metadata),
        )

    def remove(self, ids: str | Sequence[str]) -> None:
        removed = set(_as_list(ids, str))
        remaining = [doc for doc in self._load_for_rewrite() if doc.id not in removed]
        self._write_chunks(remaining)

    def clear(self) -> None:
        for path in self._chunk_files():
            path.unlink(missing_ok=True)
        (self.directory / CHUNKED_FILE_METADATA_NAME).unlink(missing_ok=True)

    def is_available(self) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.directory, os.W_OK)

    def _chunk_files(self) -> list[Path]:
        if not self.directory.is_dir():
            return []
        paths = [
            path
            for path in self.directory.glob(f"{CHUNKED_FILE_DOCUMENTS_PREFIX}*.json")
            if path.is_file()
        ]
        return sorted(paths, key=_chunk_index)

    def _read_chunks(self) -> tuple[list[StoredDocument], list[Path]]:
        documents: list[StoredDocument] = []
        unreadable: list[Path] = []
        for path in self._chunk_files():
            try:
                chunk = json.loads(path.read_text(encoding="utf-8"))
                documents.extend(deserialize_stored_document(item, self.codec) for item in chunk)
            except (OSError, ValueError, TypeError, VectorStoreError):
                logger.warning("Skipping unreadable chunk file %s", path, exc_info=True)
                unreadable.append(path)
        return documents, unreadable

    def _load_for_rewrite(self) -> list[StoredDocument]:
        documents, unreadable = self._read_chunks()
        if unreadable:
            names = ", ".join(path.name for path in unreadable)
            raise PersistenceError(
                f"Refusing to rewrite {self.directory}; unreadable chunk files: {names}",
                VectorStoreErrorCode.LOAD_FAILED,
            )
        return documents

    def _write_chunks(self, documents: list[StoredDocument]) -> None:
        # Encode everything before the directory is touched.
        texts = [
            json.dumps(
                [
                    serialize_stored_document(doc, self.codec)
                    for doc in documents[start : start + self.chunk_size]
                ]
            )
            for start in range(0, len(documents), self.chunk_size)
        ]
        staged: list[tuple[Path, Path]] = []
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for index, text in enumerate(texts):
                path = self.directory / f"{CHUNKED_FILE_DOCUMENTS_PREFIX}{index}.json"
                tmp = path.with_name(path.name + ".tmp")
                tmp.write_text(text, encoding="utf-8")
                staged.append((tmp, path))
            for tmp, path in staged:
                os.replace(tmp, path)
        except OSError as exc:
            for tmp, _ in staged:
                tmp.unlink(missing_ok=True)
            raise PersistenceError(
                f"Could not write chunk files in {self.directory}: {exc}",
                VectorStoreErrorCode.SAVE_FAILED,
            ) from exc

        for path in self._chunk_files():
            if _chunk_index(path) >= len(texts):
                path.unlink(missing_ok=True)
        logger.debug("Wrote %d documents to %s", len(documents), self.directory)

    def _write_json(self, path: Path, data: object) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise PersistenceError(
                f"Could not write {path}: {exc}",
                VectorStoreErrorCode.SAVE_FAILED,
            ) from exc


def _chunk_index(path: Path) -> int:
    suffix = path.stem[len(CHUNKED_FILE_DOCUMENTS_PREFIX) :]
    return int(suffix) if suffix.isdigit() else -1

"""SQLite persistence adapter built on the shared DB-API wrapper."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from typing import List, Optional, Sequence

from ...core._async_utils import _as_list
from ...core.constants import (
    SQLITE_DOCUMENTS_TABLE,
    SQLITE_METADATA_KEY,
    SQLITE_METADATA_TABLE,
)
from ...core.types import StoredDocument, VectorStoreMetadata, to_embedding
from ...core.vectors.document_codecs import (
    DEFAULT_METADATA_CODEC,
    MetadataCodec,
    deserialize_store_metadata,
    serialize_store_metadata,
)
from ..db_api.database import Database

logger = logging.getLogger(__name__)


class SQLitePersistence:
    """Stores one row per document and a single metadata row.

    Embeddings are stored as JSON float lists and metadata through the tagged
    JSON metadata codec, so a database written here can be read by any SQLite
    client.
    """

    def __init__(
        self,
        database: Database | sqlite3.Connection | str | os.PathLike[str],
        *,
        documents_table: str = SQLITE_DOCUMENTS_TABLE,
        metadata_table: str = SQLITE_METADATA_TABLE,
        codec: MetadataCodec = DEFAULT_METADATA_CODEC,
    ) -> None:
        self.db = database if isinstance(database, Database) else Database(database)
        self.documents_table = documents_table
        self.metadata_table = metadata_table
        self.codec = codec
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self.db.transaction():
            self.db.execute(
                f'CREATE TABLE IF NOT EXISTS "{self.documents_table}" ('
                "id TEXT PRIMARY KEY, "
                "content TEXT NOT NULL, "
                "embedding TEXT NOT NULL, "
                "metadata TEXT, "
                "created_at INTEGER NOT NULL, "
                "updated_at INTEGER NOT NULL)"
            )
            self.db.execute(
                f'CREATE TABLE IF NOT EXISTS "{self.metadata_table}" ('
                "key TEXT PRIMARY KEY, "
                "value TEXT NOT NULL)"
            )

    def load(self) -> List[StoredDocument]:
        rows = self.db.fetchall(
            f"SELECT id, content, embedding, metadata, created_at, updated_at "
            f'FROM "{self.documents_table}" ORDER BY rowid'
        )
        return [self._row_to_document(row) for row in rows]

    def load_metadata(self) -> Optional[VectorStoreMetadata]:
        row = self.db.fetchone(
            f'SELECT value FROM "{self.metadata_table}" WHERE key = ?',
            (SQLITE_METADATA_KEY,),
        )
        if row is None:
            return None
        return deserialize_store_metadata(json.loads(row["value"]))

    def save(self, documents: StoredDocument | Sequence[StoredDocument]) -> None:
        docs = _as_list(documents, StoredDocument)
        if not docs:
            return
        with self.db.transaction():
            self.db.executemany(
                f'INSERT INTO "{self.documents_table}" '
                "(id, content, embedding, metadata, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "content = excluded.content, "
                "embedding = excluded.embedding, "
                "metadata = excluded.metadata, "
                "created_at = excluded.created_at, "
                "updated_at = excluded.updated_at",
                [self._document_to_row(doc) for doc in docs],
            )
        logger.debug("Saved %d documents to %s", len(docs), self.documents_table)

    def save_metadata(self, metadata: VectorStoreMetadata) -> None:
        with self.db.transaction():
            self.db.execute(
                f'INSERT OR REPLACE INTO "{self.metadata_table}" (key, value) VALUES (?, ?)',
                (SQLITE_METADATA_KEY, json.dumps(serialize_store_metadata(metadata))),
            )

    def remove(self, ids: str | Sequence[str]) -> None:
        id_list = _as_list(ids, str)
        if not id_list:
            return
        with self.db.transaction():
            self.db.executemany(
                f'DELETE FROM "{self.documents_table}" WHERE id = ?',
                [(doc_id,) for doc_id in id_list],
            )

    def clear(self) -> None:
        with self.db.transaction():
            self.db.execute(f'DELETE FROM "{self.documents_table}"')
            self.db.execute(f'DELETE FROM "{self.metadata_table}"')

    def is_available(self) -> bool:
        try:
            self.db.execute("SELECT 1")
        except (sqlite3.Error, RuntimeError):
            return False
        return True

    def close(self) -> None:
        self.db.close()

    def _document_to_row(self, doc: StoredDocument) -> tuple:
        metadata = self.codec.serialize(doc.metadata)
        return (
            doc.id,
            doc.content,
            json.dumps([float(value) for value in doc.embedding]),
            json.dumps(metadata) if metadata is not None else None,
            doc.created_at,
            doc.updated_at,
        )

    def _row_to_document(self, row) -> StoredDocument:
        metadata = row["metadata"]
        return StoredDocument(
            id=row["id"],
            content=row["content"],
            embedding=to_embedding(json.loads(row["embedding"])),
            metadata=self.codec.deserialize(json.loads(metadata)) if metadata else None,
            created_at=int(row["created_at"]),
            updated_at=int(row["updated_at"]),
        )

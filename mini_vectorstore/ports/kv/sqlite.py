"""SQLite-backed key-value store for the persistent embedding cache."""

from __future__ import annotations

import json
import os
import sqlite3
from typing import Any, Iterable, Optional, Tuple

from ...core.constants import EMBEDDING_CACHE_DEFAULT_NAMESPACE, SQLITE_KV_TABLE
from ..db_api.database import Database


class SQLiteKeyValueStore:
    """JSON values in one SQLite table, scoped by `namespace`.

    Several namespaces can share a database file without seeing each other's
    keys. The table is created on construction.
    """

    def __init__(
        self,
        database: Database | sqlite3.Connection | str | os.PathLike[str],
        *,
        namespace: str = EMBEDDING_CACHE_DEFAULT_NAMESPACE,
        table: str = SQLITE_KV_TABLE,
    ) -> None:
        if not namespace:
            raise ValueError("namespace must be a non-empty string")
        self.db = database if isinstance(database, Database) else Database(database)
        self.namespace = namespace
        self.table = table
        with self.db.transaction():
            self.db.execute(
                f'CREATE TABLE IF NOT EXISTS "{table}" ('
                "namespace TEXT NOT NULL, "
                "key TEXT NOT NULL, "
                "value TEXT NOT NULL, "
                "PRIMARY KEY (namespace, key))"
            )

    def get(self, key: str) -> Optional[Any]:
        row = self.db.fetchone(
            f'SELECT value FROM "{self.table}" WHERE namespace = ? AND key = ?',
            (self.namespace, key),
        )
        if row is None:
            return None
        return json.loads(row["value"])

    def set(self, key: str, value: Any) -> None:
        with self.db.transaction():
            self.db.execute(
                f'INSERT OR REPLACE INTO "{self.table}" (namespace, key, value) '
                "VALUES (?, ?, ?)",
                (self.namespace, key, json.dumps(value)),
            )

    def delete(self, key: str) -> None:
        with self.db.transaction():
            self.db.execute(
                f'DELETE FROM "{self.table}" WHERE namespace = ? AND key = ?',
                (self.namespace, key),
            )

    def items(self) -> Iterable[Tuple[str, Any]]:
        rows = self.db.fetchall(
            f'SELECT key, value FROM "{self.table}" WHERE namespace = ? ORDER BY key',
            (self.namespace,),
        )
        return [(row["key"], json.loads(row["value"])) for row in rows]

    def clear(self) -> None:
        with self.db.transaction():
            self.db.execute(
                f'DELETE FROM "{self.table}" WHERE namespace = ?',
                (self.namespace,),
            )

    def close(self) -> None:
        self.db.close()

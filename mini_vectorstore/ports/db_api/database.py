"""Thin SQLite DB-API wrapper shared by the SQL-backed adapters."""

from __future__ import annotations

import contextlib
import os
import sqlite3
from typing import Any, Iterator, Mapping, Optional, Sequence, Union

QueryParams = Optional[Union[Sequence[Any], Mapping[str, Any]]]
RowMapping = Mapping[str, Any]


class Database:
    """Owns one SQLite connection and normalizes execution and row mapping."""

    def __init__(self, conn: sqlite3.Connection | str | os.PathLike[str]):
        """Create database adapter.

        Args:
            conn: Open `sqlite3.Connection`, or a filesystem path (or
                `":memory:"`) to open one. A connection opened here is
                owned and closed by this adapter.
        """

        self._closed = False
        self._owns_connection = not isinstance(conn, sqlite3.Connection)
        if isinstance(conn, sqlite3.Connection):
            self.conn: sqlite3.Connection | None = conn
        else:
            self.conn = sqlite3.connect(os.fspath(conn), isolation_level=None)

    def _require_open_connection(self) -> sqlite3.Connection:
        if self._closed or self.conn is None:
            raise RuntimeError("connection is closed")
        return self.conn

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Provide commit/rollback transaction scope."""

        conn = self._require_open_connection()
        try:
            if conn.isolation_level is None and not conn.in_transaction:
                conn.execute("BEGIN")
            yield
            conn.commit()
        except BaseException:
            conn.rollback()
            raise

    def execute(self, sql: str, params: QueryParams = None) -> sqlite3.Cursor:
        conn = self._require_open_connection()
        cur = conn.cursor()
        if params is None:
            cur.execute(sql)
        else:
            cur.execute(sql, params)
        return cur

    def executemany(self, sql: str, rows: Sequence[Sequence[Any]]) -> sqlite3.Cursor:
        conn = self._require_open_connection()
        cur = conn.cursor()
        cur.executemany(sql, rows)
        return cur

    def _row_to_mapping(self, cursor: sqlite3.Cursor, row: Any) -> RowMapping:
        """Map tuple rows to dicts via `cursor.description`."""

        if isinstance(row, Mapping):
            return row
        if isinstance(row, sqlite3.Row):
            return dict(row)

        desc = cursor.description
        if not desc:
            raise TypeError("Cursor has no description; cannot map tuple rows to dict.")
        return dict(zip([d[0] for d in desc], row))

    def fetchone(self, sql: str, params: QueryParams = None) -> Optional[RowMapping]:
        cur = self.execute(sql, params)
        row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_mapping(cur, row)

    def fetchall(self, sql: str, params: QueryParams = None) -> list[RowMapping]:
        cur = self.execute(sql, params)
        return [self._row_to_mapping(cur, r) for r in cur.fetchall()]

    def close(self) -> None:
        """Close the connection if this adapter opened it."""

        if self._closed:
            return
        conn = self.conn
        self._closed = True
        self.conn = None
        if conn is not None and self._owns_connection:
            conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

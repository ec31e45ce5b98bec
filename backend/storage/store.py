from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import duckdb

from storage.sql import CREATE_KV_TABLE_SQL, DELETE_KV_SQL, GET_KV_SQL, UPSERT_KV_SQL

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """
    Durable string key-value store (the server-side stand-in for browser storage).
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


@dataclass
class DuckDBKeyValueStore:
    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_KV_TABLE_SQL)

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self.conn.execute(GET_KV_SQL, [key]).fetchone()
        if row is None:
            return None
        return row[0]

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self.conn.execute(UPSERT_KV_SQL, [key, value, int(time.time() * 1000)])

    def delete(self, key: str) -> None:
        with self._lock:
            self.conn.execute(DELETE_KV_SQL, [key])

    def execute(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        """
        Run a statement on the shared connection (used by the alert backend).
        """
        with self._lock:
            cur = self.conn.execute(sql, params) if params else self.conn.execute(sql)
            try:
                return cur.fetchall()
            except duckdb.Error:
                # Statements without a result set (DDL/DML on some versions).
                return []

    def close(self) -> None:
        with self._lock:
            try:
                self.conn.close()
            except duckdb.Error as e:
                logger.debug("Closing store %s failed: %s", self.path, e)

    def reset(self) -> None:
        # Delete the database file to start from an empty store.
        self.close()
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete store file %s: %s", self.path, e)


@dataclass
class MemoryKeyValueStore:
    """
    Process-local fallback used when durable storage is disabled or unavailable.
    """

    _data: dict[str, str] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

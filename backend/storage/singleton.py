from __future__ import annotations

import logging
import threading

import duckdb

from storage.config import store_durable, store_path
from storage.store import DuckDBKeyValueStore, KeyValueStore, MemoryKeyValueStore

logger = logging.getLogger(__name__)

_STORE: DuckDBKeyValueStore | None = None
_MEMORY: MemoryKeyValueStore | None = None
_STORE_LOCK = threading.RLock()


def get_store() -> KeyValueStore:
    global _STORE, _MEMORY
    with _STORE_LOCK:
        if not store_durable():
            if _MEMORY is None:
                _MEMORY = MemoryKeyValueStore()
            return _MEMORY

        path = store_path()
        if _STORE is not None:
            # If env/config changes the path during a dev session (or across tests),
            # reopen the store on the new path.
            if _STORE.path.resolve() == path.resolve():
                return _STORE
            _STORE.close()
            _STORE = None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = duckdb.connect(str(path))
        except (OSError, duckdb.Error) as e:
            logger.warning(
                "Durable store unavailable at %s (%s); using in-memory fallback", path, e
            )
            if _MEMORY is None:
                _MEMORY = MemoryKeyValueStore()
            return _MEMORY

        _STORE = DuckDBKeyValueStore(path=path, conn=conn)
        _STORE.ensure_schema()
        return _STORE


def get_durable_store() -> DuckDBKeyValueStore | None:
    store = get_store()
    return store if isinstance(store, DuckDBKeyValueStore) else None


def reset_store() -> None:
    global _STORE, _MEMORY
    with _STORE_LOCK:
        _MEMORY = None
        if _STORE is not None:
            _STORE.reset()
            _STORE = None
        else:
            try:
                store_path().unlink(missing_ok=True)
            except OSError:
                pass

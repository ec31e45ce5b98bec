from __future__ import annotations

import asyncio
import json
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Protocol

from alerts.types import AlertSubscription
from storage.sql import (
    CREATE_ALERTS_TABLE_SQL,
    DELETE_ALERT_SQL,
    GET_ALERT_SQL,
    INSERT_ALERT_SQL,
    LIST_ALERTS_SQL,
    UPDATE_ALERT_ACTIVE_SQL,
)
from storage.store import DuckDBKeyValueStore


class AlertBackend(Protocol):
    """
    Alert persistence scoped to one user (the remote CRUD endpoint in the web app).
    """

    async def create(self, user_id: str, alert: AlertSubscription) -> None: ...

    async def list(self, user_id: str) -> list[AlertSubscription]: ...

    async def get(self, user_id: str, alert_id: str) -> AlertSubscription | None: ...

    async def set_active(self, user_id: str, alert_id: str, is_active: bool) -> bool: ...

    async def delete(self, user_id: str, alert_id: str) -> bool: ...


class DuckDBAlertBackend(AlertBackend):
    """
    Alerts table in the DuckDB store. Queries run in a worker thread so the event
    loop is not blocked on file I/O.
    """

    def __init__(self, store: DuckDBKeyValueStore) -> None:
        self._store = store
        self._store.execute(CREATE_ALERTS_TABLE_SQL)

    async def create(self, user_id: str, alert: AlertSubscription) -> None:
        await asyncio.to_thread(
            self._store.execute,
            INSERT_ALERT_SQL,
            [
                alert.id,
                user_id,
                alert.alert_type.value,
                json.dumps(alert.payload()),
                alert.is_active,
                int(alert.created_at.timestamp() * 1000),
            ],
        )

    async def list(self, user_id: str) -> list[AlertSubscription]:
        rows = await asyncio.to_thread(self._store.execute, LIST_ALERTS_SQL, [user_id])
        return [_from_row(r) for r in rows]

    async def get(self, user_id: str, alert_id: str) -> AlertSubscription | None:
        rows = await asyncio.to_thread(self._store.execute, GET_ALERT_SQL, [user_id, alert_id])
        return _from_row(rows[0]) if rows else None

    async def set_active(self, user_id: str, alert_id: str, is_active: bool) -> bool:
        if await self.get(user_id, alert_id) is None:
            return False
        await asyncio.to_thread(
            self._store.execute, UPDATE_ALERT_ACTIVE_SQL, [bool(is_active), user_id, alert_id]
        )
        return True

    async def delete(self, user_id: str, alert_id: str) -> bool:
        if await self.get(user_id, alert_id) is None:
            return False
        await asyncio.to_thread(self._store.execute, DELETE_ALERT_SQL, [user_id, alert_id])
        return True


class MemoryAlertBackend(AlertBackend):
    def __init__(self) -> None:
        self._by_user: dict[str, dict[str, AlertSubscription]] = {}
        self._lock = threading.RLock()

    async def create(self, user_id: str, alert: AlertSubscription) -> None:
        with self._lock:
            self._by_user.setdefault(user_id, {})[alert.id] = alert

    async def list(self, user_id: str) -> list[AlertSubscription]:
        with self._lock:
            return list(self._by_user.get(user_id, {}).values())

    async def get(self, user_id: str, alert_id: str) -> AlertSubscription | None:
        with self._lock:
            return self._by_user.get(user_id, {}).get(alert_id)

    async def set_active(self, user_id: str, alert_id: str, is_active: bool) -> bool:
        with self._lock:
            bucket = self._by_user.get(user_id, {})
            alert = bucket.get(alert_id)
            if alert is None:
                return False
            bucket[alert_id] = replace(alert, is_active=bool(is_active))
            return True

    async def delete(self, user_id: str, alert_id: str) -> bool:
        with self._lock:
            return self._by_user.get(user_id, {}).pop(alert_id, None) is not None


def _from_row(row: tuple) -> AlertSubscription:
    alert_id, alert_type, payload_json, is_active, created_ms = row
    return AlertSubscription.from_payload(
        alert_id=str(alert_id),
        alert_type=str(alert_type),
        payload=json.loads(payload_json or "{}"),
        is_active=bool(is_active),
        created_at=datetime.fromtimestamp(int(created_ms) / 1000.0, tz=timezone.utc),
    )

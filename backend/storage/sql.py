from __future__ import annotations

CREATE_KV_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS kv (
  key TEXT PRIMARY KEY,
  value TEXT,
  updated_ms BIGINT
);
"""

GET_KV_SQL = "SELECT value FROM kv WHERE key = ?"

UPSERT_KV_SQL = """
INSERT OR REPLACE INTO kv (key, value, updated_ms)
VALUES (?, ?, ?)
"""

DELETE_KV_SQL = "DELETE FROM kv WHERE key = ?"

CREATE_ALERTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS alerts (
  id TEXT PRIMARY KEY,
  user_id TEXT,
  alert_type TEXT,
  payload_json TEXT,
  is_active BOOLEAN,
  created_ms BIGINT
);
"""

INSERT_ALERT_SQL = """
INSERT INTO alerts (id, user_id, alert_type, payload_json, is_active, created_ms)
VALUES (?, ?, ?, ?, ?, ?)
"""

LIST_ALERTS_SQL = """
SELECT id, alert_type, payload_json, is_active, created_ms
FROM alerts
WHERE user_id = ?
ORDER BY created_ms, id
"""

GET_ALERT_SQL = """
SELECT id, alert_type, payload_json, is_active, created_ms
FROM alerts
WHERE user_id = ? AND id = ?
"""

UPDATE_ALERT_ACTIVE_SQL = "UPDATE alerts SET is_active = ? WHERE user_id = ? AND id = ?"

DELETE_ALERT_SQL = "DELETE FROM alerts WHERE user_id = ? AND id = ?"

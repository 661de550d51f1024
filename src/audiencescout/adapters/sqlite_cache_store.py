"""SQLite-backed CacheStore for search responses."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from ..ports.cache_store import CacheEntry


class SqliteCacheStore:
    """Stores cache entries in a single table; expiry is swept by time."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_parent_dir()
        self._init_schema()

    def _ensure_parent_dir(self) -> None:
        path = Path(self._db_path)
        if path.parent.exists():
            return
        path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS search_cache (
                    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    cache_key TEXT NOT NULL,
                    filters TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    expires_ts REAL NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_search_cache_key ON search_cache (cache_key)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_search_cache_expires ON search_cache (expires_ts)"
            )

    def insert(self, entry: CacheEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO search_cache (
                    cache_key, filters, payload, created_at, expires_at, expires_ts
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.key,
                    entry.filters_json,
                    entry.payload,
                    entry.created_at.isoformat(),
                    entry.expires_at.isoformat(),
                    entry.expires_at.timestamp(),
                ),
            )

    def query(self, key: str) -> list[CacheEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT cache_key, filters, payload, created_at, expires_at
                FROM search_cache
                WHERE cache_key = ?
                ORDER BY entry_id DESC
                """,
                (key,),
            ).fetchall()
        return [
            CacheEntry(
                key=row["cache_key"],
                filters_json=row["filters"],
                payload=row["payload"],
                created_at=datetime.fromisoformat(row["created_at"]),
                expires_at=datetime.fromisoformat(row["expires_at"]),
            )
            for row in rows
        ]

    def delete_expired(self, now: datetime) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM search_cache WHERE expires_ts <= ?", (now.timestamp(),)
            )
            return cursor.rowcount

    def clear(self) -> int:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM search_cache")
            return cursor.rowcount

    def count(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM search_cache").fetchone()
        return int(row["n"] or 0)

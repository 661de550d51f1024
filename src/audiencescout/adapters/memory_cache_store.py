"""Adapter: in-process CacheStore."""

from __future__ import annotations

import threading
from datetime import datetime

from ..ports.cache_store import CacheEntry


class InMemoryCacheStore:
    """Lock-guarded list of entries; suitable for tests and single processes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[CacheEntry] = []

    def insert(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def query(self, key: str) -> list[CacheEntry]:
        with self._lock:
            matches = [e for e in self._entries if e.key == key]
        return sorted(matches, key=lambda e: e.created_at, reverse=True)

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if not e.is_expired(now)]
            return before - len(self._entries)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries = []
            return removed

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

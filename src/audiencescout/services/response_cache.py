"""ResponseCache: TTL cache of search results keyed by query and filters."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from ..models.search_requests import FilterSet
from ..models.search_responses import CategorizedResultSet
from ..ports.cache_store import CacheEntry, CacheStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_query(query: str) -> str:
    return query.strip().casefold()


class ResponseCache:
    """Read-through cache over an injected ``CacheStore``.

    A hit requires the same normalized query, an unexpired entry, and a
    filter set whose canonical form is identical to the request's. Any store
    failure is logged and treated as a miss (on read) or dropped (on write).
    With ``store=None`` the cache is disabled and every lookup misses.
    """

    def __init__(
        self,
        store: CacheStore | None,
        ttl_seconds: float = 3600.0,
        clock: Clock = utc_now,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._store = store
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "writes": 0, "errors": 0}

    @property
    def enabled(self) -> bool:
        return self._store is not None

    def get(self, query: str, filters: FilterSet | None = None) -> CategorizedResultSet | None:
        if self._store is None:
            self._bump("misses")
            return None
        key = normalize_query(query)
        wanted = (filters or FilterSet()).canonical_json()
        now = self._clock()
        try:
            entries = self._store.query(key)
        except Exception as exc:
            logger.warning("cache_read_failed", extra={"error": str(exc)}, exc_info=True)
            self._bump("errors")
            self._bump("misses")
            return None

        live = [e for e in entries if not e.is_expired(now) and e.filters_json == wanted]
        if not live:
            self._bump("misses")
            return None
        newest = max(live, key=lambda e: e.created_at)
        try:
            result = CategorizedResultSet.model_validate_json(newest.payload)
        except ValueError as exc:
            logger.warning("cache_payload_invalid", extra={"error": str(exc)})
            self._bump("errors")
            self._bump("misses")
            return None
        self._bump("hits")
        return result

    def put(self, query: str, filters: FilterSet | None, result: CategorizedResultSet) -> bool:
        if self._store is None:
            return False
        now = self._clock()
        entry = CacheEntry(
            key=normalize_query(query),
            filters_json=(filters or FilterSet()).canonical_json(),
            payload=result.model_dump_json(),
            created_at=now,
            expires_at=now + self._ttl,
        )
        try:
            self._store.insert(entry)
        except Exception as exc:
            logger.warning("cache_write_failed", extra={"error": str(exc)}, exc_info=True)
            self._bump("errors")
            return False
        self._bump("writes")
        return True

    def purge_expired(self) -> int:
        """Delete expired entries; returns how many were removed."""
        if self._store is None:
            return 0
        try:
            removed = self._store.delete_expired(self._clock())
        except Exception as exc:
            logger.warning("cache_purge_failed", extra={"error": str(exc)}, exc_info=True)
            self._bump("errors")
            return 0
        logger.info("cache_purged", extra={"removed": removed})
        return removed

    def invalidate_all(self) -> int:
        if self._store is None:
            return 0
        try:
            return self._store.clear()
        except Exception as exc:
            logger.warning("cache_clear_failed", extra={"error": str(exc)}, exc_info=True)
            self._bump("errors")
            return 0

    def stats(self) -> dict:
        with self._lock:
            snapshot = dict(self._stats)
        snapshot["enabled"] = self.enabled
        snapshot["ttl_seconds"] = self._ttl.total_seconds()
        if self._store is not None:
            try:
                snapshot["entries"] = self._store.count()
            except Exception as exc:
                logger.warning("cache_count_failed", extra={"error": str(exc)})
                snapshot["entries"] = None
        return snapshot

    def _bump(self, name: str) -> None:
        with self._lock:
            self._stats[name] += 1

"""Port: persistence for the response cache."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """A stored search response."""

    key: str = Field(..., description="Normalized query")
    filters_json: str = Field(..., description="Canonical JSON of the filters used")
    payload: str = Field(..., description="Serialized CategorizedResultSet")
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@runtime_checkable
class CacheStore(Protocol):
    """Insert-only entry store with expiry sweeping."""

    def insert(self, entry: CacheEntry) -> None: ...

    def query(self, key: str) -> list[CacheEntry]:
        """All entries stored under ``key``, most recent first."""
        ...

    def delete_expired(self, now: datetime) -> int: ...

    def clear(self) -> int: ...

    def count(self) -> int: ...

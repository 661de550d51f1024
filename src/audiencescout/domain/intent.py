"""Normalized campaign intent derived from a free-text query."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field

_WHITESPACE_RE = re.compile(r"\s+")


def tokenize_query(query: str) -> list[str]:
    """Deterministic tokenization: split on whitespace, drop empties."""
    return [t for t in _WHITESPACE_RE.split(query.strip()) if t]


class IntentRecord(BaseModel):
    """Ephemeral per-request interpretation of a campaign query."""

    category: str = Field(..., description="Product or service category guess")
    demographic: str | None = Field(default=None, description="Target demographic guess")
    goal: str | None = Field(default=None, description="Campaign goal guess")
    keywords: list[str] = Field(default_factory=list, description="Keywords used for matching")
    audience_hints: list[str] = Field(default_factory=list, description="Intended audience types")
    source: Literal["generator", "fallback"] = Field(default="generator")

    @classmethod
    def from_query(cls, query: str) -> IntentRecord:
        """Fallback intent: the query verbatim plus its whitespace tokens."""
        text = query.strip()
        return cls(
            category=text,
            keywords=tokenize_query(text),
            audience_hints=[],
            source="fallback",
        )

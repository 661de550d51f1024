"""Request DTOs for audience search."""

from __future__ import annotations

import json
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ..domain.segment import SegmentType


class FilterSet(BaseModel):
    """Hard constraints applied to the catalog before scoring.

    All fields are optional and combined with AND semantics.
    """

    model_config = {"extra": "forbid", "frozen": True}

    segment_type: SegmentType | None = Field(
        default=None,
        description="Exact segment type ('commerce_audience' or 'interest')",
    )
    max_cpm: float | None = Field(
        default=None,
        ge=0,
        description="Price ceiling: keep segments with cpm <= max_cpm",
    )
    actively_generated: bool | None = Field(
        default=None,
        description="Keep only segments whose actively-generated flag equals this value",
    )
    min_scale: float | None = Field(
        default=None,
        ge=0,
        description="Scale floor met by any of the segment's reach estimates",
    )

    @field_validator("segment_type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> object:
        if isinstance(value, str):
            return SegmentType.parse(value)
        return value

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())

    def canonical(self) -> dict:
        """Serialised form used for cache keys and equality checks."""
        return self.model_dump(mode="json", exclude_none=True)

    def canonical_json(self) -> str:
        return json.dumps(self.canonical(), sort_keys=True, separators=(",", ":"))


class ConversationTurn(BaseModel):
    """A prior message in the marketer's conversation."""

    role: Literal["user", "assistant"] = Field(..., description="Who sent the message")
    content: str = Field(..., description="Message text")


class SearchRequest(BaseModel):
    """Input DTO for the audiences search entry point."""

    query: str = Field(
        ...,
        description="Natural-language campaign description",
    )
    filters: FilterSet = Field(
        default_factory=FilterSet,
        description="Hard constraints on candidate segments",
    )
    conversation_history: list[ConversationTurn] = Field(
        default_factory=list,
        description="Prior conversation turns for intent extraction",
    )

"""Audience segment domain model."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, ValidationInfo, field_validator

MAX_TIER_DEPTH = 6

_TYPE_ALIASES = {
    "commerce audience": "commerce_audience",
    "commerce-audience": "commerce_audience",
    "commerce": "commerce_audience",
    "interest": "interest",
}


class SegmentType(str, Enum):
    """Enumerated segment kinds."""

    commerce_audience = "commerce_audience"
    interest = "interest"

    @classmethod
    def parse(cls, value: str | SegmentType) -> SegmentType:
        """Accept enum values as well as the display labels used in taxonomy exports."""
        if isinstance(value, SegmentType):
            return value
        key = str(value).strip().lower()
        return cls(_TYPE_ALIASES.get(key, key.replace(" ", "_").replace("-", "_")))


class Segment(BaseModel):
    """A targetable audience/inventory unit from the taxonomy catalog."""

    model_config = {"frozen": True}

    segment_id: str = Field(..., min_length=1, description="Stable identifier, unique per catalog snapshot")
    parent_segment_id: str | None = Field(default=None, description="Parent identifier (forms a tree)")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Free-text description")
    segment_type: SegmentType = Field(..., description="Segment kind")
    cpm: float = Field(default=0.0, ge=0, description="Price signal (CPM, USD)")
    media_cost_percent: float | None = Field(default=None, ge=0, description="Media cost share")
    actively_generated: bool = Field(default=False, description="Whether the segment is actively generated")
    scale_7day_global: float | None = Field(default=None, ge=0, description="7-day global reach")
    scale_7day_us: float | None = Field(default=None, ge=0, description="7-day US reach")
    scale_hem_us: float | None = Field(default=None, ge=0, description="Hashed-email US reach")
    scale_1day_ip: float | None = Field(default=None, ge=0, description="1-day IP reach")
    tier_number: int = Field(default=0, ge=0, le=MAX_TIER_DEPTH, description="Depth in the taxonomy")
    tiers: tuple[str, ...] = Field(default=(), description="Ordered tier labels (max 6)")
    full_path: str = Field(default="", validate_default=True, description="Precomputed full path string")

    @field_validator("segment_type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> object:
        if isinstance(value, str):
            return SegmentType.parse(value)
        return value

    @field_validator("tiers", mode="before")
    @classmethod
    def _drop_empty_tiers(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return tuple(str(t).strip() for t in value if t is not None and str(t).strip())
        return value

    @field_validator("tiers")
    @classmethod
    def _tier_depth(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) > MAX_TIER_DEPTH:
            raise ValueError(f"tier path has {len(value)} labels; max is {MAX_TIER_DEPTH}")
        return value

    @field_validator("full_path")
    @classmethod
    def _default_path(cls, value: str, info: ValidationInfo) -> str:
        if not value and info.data.get("tiers"):
            return " > ".join(info.data["tiers"])
        return value

    @property
    def is_commerce(self) -> bool:
        return self.segment_type == SegmentType.commerce_audience

    @property
    def search_text(self) -> str:
        """Lower-cased name, description and path used for keyword matching."""
        return " ".join([self.name, self.description, self.full_path]).lower()

    @property
    def embedding_text(self) -> str:
        """Text sent to the embedding provider when indexing."""
        parts = [self.name, self.description, self.full_path]
        return " | ".join(p for p in parts if p)

    def tier(self, level: int) -> str:
        """Return the tier label at 1-based ``level`` or '' when absent."""
        if 1 <= level <= len(self.tiers):
            return self.tiers[level - 1]
        return ""

    def to_payload(self) -> dict:
        """Flatten to a JSON-serialisable payload for storage adapters."""
        payload = self.model_dump(mode="json")
        payload["tiers"] = list(self.tiers)
        return payload

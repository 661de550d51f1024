"""Response DTOs for audience search."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..domain.segment import Segment

ScoringMethod = Literal["generator", "fallback"]


class ScoredCandidate(BaseModel):
    """A segment paired with its relevance score and justification."""

    model_config = {"frozen": True}

    segment: Segment = Field(..., description="Scored segment")
    score: float = Field(..., ge=0.0, le=100.0, description="Relevance score (0-100)")
    reason: str = Field(default="", description="Short relevance justification")
    method: ScoringMethod = Field(default="generator", description="Which scorer produced the score")
    position: int = Field(default=0, ge=0, description="Catalog order, used to break score ties")


class BehavioralInsight(BaseModel):
    """Cross-purchase context drawn from the behavioral dataset."""

    primary_category: str = Field(..., description="Audience the insight is about")
    cross_purchases: list[str] = Field(default_factory=list, description="Co-occurring audiences")
    insight: str = Field(..., description="Human-readable summary")
    overlap_percentage: float | None = Field(
        default=None, ge=0.0, le=100.0, description="Share of locations shared with the top cross-purchase"
    )
    location_count: int = Field(default=0, ge=0, description="Locations with behavioral records")


class GeographicInsight(BaseModel):
    """A geographic group where the audience concentrates."""

    area_name: str = Field(..., description="Geographic group (metro area or location key)")
    state: str = Field(default="US", description="Two-letter state code when known")
    over_index: int = Field(..., ge=0, description="Group mean weight / overall mean weight x 100")
    total_weight: float = Field(..., ge=0.0, description="Aggregate weight of the group")
    location_count: int = Field(..., ge=1, description="Locations aggregated into the group")
    population: int | None = Field(default=None, ge=0, description="Population of the group when known")


class EnrichedCard(BaseModel):
    """A ranked (or looked-up) segment with auxiliary insights attached."""

    segment: Segment = Field(..., description="Underlying segment")
    score: float | None = Field(default=None, ge=0.0, le=100.0, description="Relevance score, absent for lookups")
    relevance_reason: str = Field(default="", description="Why the segment was surfaced")
    behavioral_insights: list[BehavioralInsight] = Field(default_factory=list)
    geographic_insights: list[GeographicInsight] = Field(default_factory=list)
    data_sources: list[str] = Field(default_factory=list, description="Labels of datasets actually used")


class CategorizedResultSet(BaseModel):
    """Tiered, enriched search results."""

    best_fit: list[EnrichedCard] = Field(default_factory=list, description="Top-ranked window")
    high_value: list[EnrichedCard] = Field(default_factory=list, description="Second window")
    related: list[EnrichedCard] = Field(default_factory=list, description="Third window")
    query: str = Field(..., description="Original query string")
    total_found: int = Field(default=0, ge=0, description="Candidates scored before windowing")
    scoring_method: Literal["generator", "mixed", "fallback", "none"] = Field(
        default="none", description="How the ranking was produced"
    )
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Share of generator-backed scores")
    degraded: bool = Field(default=False, description="True when no partial result could be produced")
    warnings: list[str] = Field(default_factory=list)

    def all_cards(self) -> list[EnrichedCard]:
        return [*self.best_fit, *self.high_value, *self.related]

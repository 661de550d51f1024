"""InsightEnricher: attach behavioral and geographic context to segments."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from ..config.runtime import PipelineConfig
from ..domain.segment import Segment
from ..models.search_responses import BehavioralInsight, EnrichedCard, GeographicInsight
from ..ports.datasets import AudienceDataset, BehavioralRecord, GeoArea, GeographyResolver

logger = logging.getLogger(__name__)

_STATE_SUFFIX_RE = re.compile(r",\s*([A-Z]{2})\b")
TOP_GEO_AREAS = 3


@dataclass(frozen=True)
class EnrichmentItem:
    """A segment to enrich, with its ranking context when it has one."""

    segment: Segment
    score: float | None = None
    reason: str = ""


def state_from_area_name(area_name: str) -> str | None:
    """Extract 'ST' from names such as 'Austin-Round Rock, TX'."""
    match = _STATE_SUFFIX_RE.search(area_name)
    return match.group(1) if match else None


class InsightEnricher:
    """Fan enrichment out per segment; a failing segment yields a bare card."""

    def __init__(
        self,
        dataset: AudienceDataset | None = None,
        geography: GeographyResolver | None = None,
        config: PipelineConfig = PipelineConfig(),
    ) -> None:
        self._dataset = dataset
        self._geography = geography
        self._config = config

    def enrich_many(self, items: Sequence[EnrichmentItem]) -> list[EnrichedCard]:
        if not items:
            return []
        workers = max(1, min(self._config.enrich_max_workers, len(items)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="enricher") as pool:
            return list(pool.map(self.enrich_isolated, items))

    def enrich_isolated(self, item: EnrichmentItem) -> EnrichedCard:
        try:
            return self.enrich(item)
        except Exception as exc:
            logger.warning(
                "enrichment_failed",
                extra={"segment_id": item.segment.segment_id, "error": str(exc)},
                exc_info=True,
            )
            return self.bare_card(item)

    def bare_card(self, item: EnrichmentItem) -> EnrichedCard:
        return EnrichedCard(
            segment=item.segment,
            score=item.score,
            relevance_reason=item.reason,
            data_sources=[self._config.catalog_label],
        )

    def enrich(self, item: EnrichmentItem) -> EnrichedCard:
        """Enrich one segment. Dataset errors propagate to ``enrich_isolated``."""
        segment = item.segment
        behavioral: list[BehavioralInsight] = []
        geographic: list[GeographicInsight] = []

        if segment.is_commerce and self._dataset is not None:
            records = self._dataset.lookup_by_audience_name(
                segment.name, self._config.geographic_lookup_limit
            )
            if records:
                behavioral = self._behavioral_insights(
                    segment, records[: self._config.behavioral_lookup_limit]
                )
                geographic = self._geographic_insights(records)

        sources = [self._config.catalog_label]
        if behavioral:
            sources.append(self._config.behavioral_label)
        if geographic:
            sources.append(self._config.geographic_label)

        return EnrichedCard(
            segment=segment,
            score=item.score,
            relevance_reason=item.reason,
            behavioral_insights=behavioral,
            geographic_insights=geographic,
            data_sources=sources,
        )

    # ------------------------------------------------------------------
    # Behavioral
    # ------------------------------------------------------------------

    def _behavioral_insights(
        self, segment: Segment, records: list[BehavioralRecord]
    ) -> list[BehavioralInsight]:
        keys = list(dict.fromkeys(r.location_key for r in records))
        cross, overlap = self._cross_purchases(segment.name, keys)
        category = segment.tier(2) or segment.tier(1) or segment.name
        return [
            BehavioralInsight(
                primary_category=segment.name,
                cross_purchases=cross,
                insight=f"This audience shows strong purchase intent in the {category} category",
                overlap_percentage=overlap,
                location_count=len(keys),
            )
        ]

    def _cross_purchases(self, audience_name: str, keys: list[str]) -> tuple[list[str], float | None]:
        limit = self._config.cross_purchase_limit
        if not keys or limit <= 0 or self._dataset is None:
            return [], None
        own = audience_name.strip().lower()
        weight: dict[str, float] = defaultdict(float)
        locations: dict[str, set[str]] = defaultdict(set)
        for record in self._dataset.lookup_by_location_keys(keys):
            if own and own in record.audience_name.lower():
                continue
            weight[record.audience_name] += record.weight
            locations[record.audience_name].add(record.location_key)
        if not weight:
            return [], None
        ranked = sorted(weight, key=lambda name: (-weight[name], name))[:limit]
        overlap = round(len(locations[ranked[0]]) / len(keys) * 100, 1)
        return ranked, min(overlap, 100.0)

    # ------------------------------------------------------------------
    # Geographic
    # ------------------------------------------------------------------

    def _geographic_insights(self, records: list[BehavioralRecord]) -> list[GeographicInsight]:
        overall_mean = sum(r.weight for r in records) / len(records)
        if overall_mean <= 0:
            return []

        areas: dict[str, GeoArea] = {}
        if self._geography is not None:
            areas = self._geography.resolve(list({r.location_key for r in records}))

        groups: dict[str, list[BehavioralRecord]] = defaultdict(list)
        group_area: dict[str, GeoArea | None] = {}
        for record in records:
            area = areas.get(record.location_key)
            if self._geography is not None and area is None:
                continue
            name = area.area_name if area is not None else record.location_key
            groups[name].append(record)
            group_area.setdefault(name, area)

        top = sorted(
            groups.items(),
            key=lambda kv: (-sum(r.weight for r in kv[1]), kv[0]),
        )[:TOP_GEO_AREAS]

        insights: list[GeographicInsight] = []
        for name, members in top:
            total = sum(r.weight for r in members)
            group_mean = total / len(members)
            area = group_area.get(name)
            insights.append(
                GeographicInsight(
                    area_name=name,
                    state=self._state_for(name, area),
                    over_index=round(group_mean / overall_mean * 100),
                    total_weight=total,
                    location_count=len(members),
                    population=self._population(members, areas),
                )
            )
        return insights

    @staticmethod
    def _state_for(name: str, area: GeoArea | None) -> str:
        if area is not None and area.state:
            return area.state
        return state_from_area_name(name) or "US"

    @staticmethod
    def _population(members: list[BehavioralRecord], areas: dict[str, GeoArea]) -> int | None:
        known = [
            areas[r.location_key].population
            for r in members
            if r.location_key in areas and areas[r.location_key].population is not None
        ]
        return sum(known) if known else None

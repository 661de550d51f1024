"""SegmentCatalogService: browsing, statistics and reload over a catalog."""

from __future__ import annotations

import logging
from typing import Any

from ..domain.segment import MAX_TIER_DEPTH, Segment, SegmentType
from ..ports.catalog import SegmentCatalog
from .errors import SearchValidationError
from .response_cache import ResponseCache

logger = logging.getLogger(__name__)


class SegmentCatalogService:
    """Read helpers and admin operations for the segment catalog."""

    def __init__(self, catalog: SegmentCatalog, cache: ResponseCache | None = None) -> None:
        self._catalog = catalog
        self._cache = cache

    def list_segments(self) -> list[Segment]:
        return self._catalog.list_segments()

    def get_segment_by_id(self, segment_id: str) -> Segment | None:
        return self._catalog.get_segment_by_id(segment_id)

    def get_segment_by_name(self, name: str) -> Segment | None:
        """Case-insensitive exact name match; first in catalog order wins."""
        wanted = name.strip().casefold()
        return next((s for s in self._catalog.list_segments() if s.name.casefold() == wanted), None)

    def search_segments(self, keyword: str) -> list[Segment]:
        """Plain substring search over name, description and path."""
        needle = keyword.strip().lower()
        if not needle:
            raise SearchValidationError("keyword must be a non-empty string")
        return [s for s in self._catalog.list_segments() if needle in s.search_text]

    def get_child_segments(self, parent_id: str) -> list[Segment]:
        return [s for s in self._catalog.list_segments() if s.parent_segment_id == parent_id]

    def get_segments_by_tier(self, tier: int, tier_value: str | None = None) -> list[Segment]:
        if not 1 <= tier <= MAX_TIER_DEPTH:
            raise SearchValidationError(f"tier must be between 1 and {MAX_TIER_DEPTH}")
        segments = [s for s in self._catalog.list_segments() if s.tier_number == tier]
        if tier_value:
            segments = [s for s in segments if s.tier(tier) == tier_value]
        return segments

    def browse(
        self,
        keyword: str | None = None,
        name: str | None = None,
        parent_id: str | None = None,
        tier: int | None = None,
        tier_value: str | None = None,
    ) -> list[Segment]:
        """Run exactly one browse helper, chosen by which argument is set."""
        chosen = [v for v in (keyword, name, parent_id, tier) if v is not None]
        if len(chosen) != 1:
            raise SearchValidationError("give exactly one of keyword, name, parent_id or tier")
        if tier_value is not None and tier is None:
            raise SearchValidationError("tier_value requires tier")
        if keyword is not None:
            return self.search_segments(keyword)
        if name is not None:
            match = self.get_segment_by_name(name)
            return [match] if match is not None else []
        if parent_id is not None:
            return self.get_child_segments(parent_id)
        return self.get_segments_by_tier(tier, tier_value)

    def stats(self) -> dict[str, Any]:
        segments = self._catalog.list_segments()
        total = len(segments)
        return {
            "total_segments": total,
            "commerce_audiences": sum(1 for s in segments if s.segment_type == SegmentType.commerce_audience),
            "interests": sum(1 for s in segments if s.segment_type == SegmentType.interest),
            "actively_generated": sum(1 for s in segments if s.actively_generated),
            "average_cpm": round(sum(s.cpm for s in segments) / total, 4) if total else 0.0,
            "tier_distribution": {
                f"tier{n}": sum(1 for s in segments if s.tier_number == n)
                for n in range(1, MAX_TIER_DEPTH + 1)
            },
        }

    def reload(self) -> dict[str, int]:
        """Reload the catalog and drop cached responses built on the old snapshot."""
        count = self._catalog.reload()
        purged = 0
        if self._cache is not None:
            purged = self._cache.invalidate_all()
        logger.info("catalog_reloaded", extra={"segments": count, "cache_purged": purged})
        return {"segments": count, "cache_purged": purged}

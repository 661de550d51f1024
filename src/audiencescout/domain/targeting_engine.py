"""TargetingEngine: builds typed SegmentFilters from a FilterSet."""

from __future__ import annotations

from typing import Iterable

from .filters import FieldFilter, FilterOp, SegmentFilter
from .segment import Segment
from ..models.search_requests import FilterSet

SCALE_FIELDS = ("scale_7day_global", "scale_7day_us", "scale_hem_us", "scale_1day_ip")


class TargetingEngine:
    """Translate a FilterSet into a domain SegmentFilter."""

    def build_filter(self, filters: FilterSet | None) -> SegmentFilter:
        if filters is None:
            return SegmentFilter()

        must: list[FieldFilter] = []

        if filters.segment_type is not None:
            must.append(FieldFilter(fields=("segment_type",), op=FilterOp.equals, value=filters.segment_type))

        if filters.max_cpm is not None:
            must.append(FieldFilter(fields=("cpm",), op=FilterOp.lte, value=filters.max_cpm))

        if filters.actively_generated is not None:
            must.append(
                FieldFilter(
                    fields=("actively_generated",),
                    op=FilterOp.equals,
                    value=filters.actively_generated,
                )
            )

        if filters.min_scale is not None:
            # Any measurement methodology may satisfy the floor.
            must.append(FieldFilter(fields=SCALE_FIELDS, op=FilterOp.gte, value=filters.min_scale))

        return SegmentFilter(must=tuple(must))

    def filter_candidates(self, catalog: Iterable[Segment], filters: FilterSet | None) -> list[Segment]:
        """Narrow the catalog to segments satisfying every hard constraint."""
        return self.build_filter(filters).apply(catalog)

"""Domain layer for audiencescout."""

from .categorizer import DEFAULT_WINDOWS, Tiers, categorize
from .filters import FieldFilter, FilterOp, SegmentFilter
from .intent import IntentRecord, tokenize_query
from .keyword_scoring import FALLBACK_REASON, keyword_score, normalize_keywords
from .segment import MAX_TIER_DEPTH, Segment, SegmentType

__all__ = [
    "DEFAULT_WINDOWS",
    "FALLBACK_REASON",
    "MAX_TIER_DEPTH",
    "FieldFilter",
    "FilterOp",
    "IntentRecord",
    "Segment",
    "SegmentFilter",
    "SegmentType",
    "Tiers",
    "categorize",
    "keyword_score",
    "normalize_keywords",
    "tokenize_query",
]

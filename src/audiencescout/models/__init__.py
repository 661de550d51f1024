"""Domain and search request/response models."""

from ..domain.segment import Segment, SegmentType
from .search_requests import ConversationTurn, FilterSet, SearchRequest
from .search_responses import (
    BehavioralInsight,
    CategorizedResultSet,
    EnrichedCard,
    GeographicInsight,
    ScoredCandidate,
)

__all__ = [
    # Domain
    "Segment",
    "SegmentType",
    # Requests
    "ConversationTurn",
    "FilterSet",
    "SearchRequest",
    # Responses
    "BehavioralInsight",
    "CategorizedResultSet",
    "EnrichedCard",
    "GeographicInsight",
    "ScoredCandidate",
]

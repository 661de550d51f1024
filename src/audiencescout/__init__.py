"""audiencescout: campaign-brief to audience-segment relevance pipeline."""

from .models import (
    BehavioralInsight,
    CategorizedResultSet,
    ConversationTurn,
    EnrichedCard,
    FilterSet,
    GeographicInsight,
    ScoredCandidate,
    SearchRequest,
    Segment,
    SegmentType,
)
from .services.errors import SearchValidationError

__version__ = "0.1.0"
__all__ = [
    "BehavioralInsight",
    "CategorizedResultSet",
    "ConversationTurn",
    "EnrichedCard",
    "FilterSet",
    "GeographicInsight",
    "ScoredCandidate",
    "SearchRequest",
    "SearchValidationError",
    "Segment",
    "SegmentType",
]

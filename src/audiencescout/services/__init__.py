"""Application services: orchestrate domain logic via ports."""

from .catalog_service import SegmentCatalogService
from .errors import SearchValidationError
from .generation import GuardedGenerator
from .insight_enricher import EnrichmentItem, InsightEnricher
from .intent_extractor import IntentExtractor
from .relevance_scorer import RelevanceScorer, rank_candidates
from .response_cache import ResponseCache
from .search_service import AudienceSearchService

__all__ = [
    "AudienceSearchService",
    "EnrichmentItem",
    "GuardedGenerator",
    "InsightEnricher",
    "IntentExtractor",
    "RelevanceScorer",
    "ResponseCache",
    "SearchValidationError",
    "SegmentCatalogService",
    "rank_candidates",
]

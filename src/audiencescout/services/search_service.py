"""AudienceSearchService: the end-to-end relevance pipeline."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Sequence

from pydantic import ValidationError

from ..config.runtime import PipelineConfig
from ..domain.categorizer import categorize
from ..domain.intent import IntentRecord
from ..domain.segment import Segment
from ..domain.targeting_engine import TargetingEngine
from ..models.search_requests import ConversationTurn, FilterSet, SearchRequest
from ..models.search_responses import CategorizedResultSet, EnrichedCard, ScoredCandidate
from ..ports.catalog import SegmentCatalog
from .errors import SearchValidationError
from .insight_enricher import EnrichmentItem, InsightEnricher
from .intent_extractor import IntentExtractor
from .relevance_scorer import RelevanceScorer
from .response_cache import ResponseCache

_log = logging.getLogger(__name__)

DETAIL_REASON = "This audience segment matches your targeting criteria."
FALLBACK_CONFIDENCE_FLOOR = 0.3


def scoring_summary(scored: Sequence[ScoredCandidate]) -> tuple[str, float]:
    """Return (scoring_method, confidence) for a scored candidate list."""
    if not scored:
        return "none", 0.0
    generator = sum(1 for c in scored if c.method == "generator")
    if generator == len(scored):
        return "generator", 1.0
    if generator == 0:
        return "fallback", FALLBACK_CONFIDENCE_FLOOR
    share = generator / len(scored)
    return "mixed", round(max(FALLBACK_CONFIDENCE_FLOOR, share), 3)


class AudienceSearchService:
    """Orchestrates intent -> filter -> score -> categorize -> enrich -> cache."""

    def __init__(
        self,
        catalog: SegmentCatalog,
        intent_extractor: IntentExtractor,
        scorer: RelevanceScorer,
        enricher: InsightEnricher,
        cache: ResponseCache | None = None,
        targeting_engine: TargetingEngine | None = None,
        config: PipelineConfig = PipelineConfig(),
        logger: Any = None,
    ) -> None:
        self._catalog = catalog
        self._intent = intent_extractor
        self._scorer = scorer
        self._enricher = enricher
        self._cache = cache or ResponseCache(store=None, ttl_seconds=config.cache_ttl_seconds)
        self._targeting = targeting_engine or TargetingEngine()
        self._config = config
        self._logger = logger or _log

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        filters: FilterSet | dict | None = None,
        conversation_history: Sequence[ConversationTurn | dict] | None = None,
    ) -> CategorizedResultSet:
        request = self.validate_request(query, filters, conversation_history)
        trace_id = str(uuid.uuid4())
        self._logger.info(
            "search_start",
            extra={"trace_id": trace_id, "filters": request.filters.canonical()},
        )

        cached = self._cache.get(request.query, request.filters)
        if cached is not None:
            self._logger.info("search_cache_hit", extra={"trace_id": trace_id})
            return cached.model_copy(update={"query": request.query})

        intent = self._intent.extract(request.query, request.conversation_history)
        catalog = self._load_catalog(trace_id)
        candidates = self._targeting.filter_candidates(catalog, request.filters)

        warnings: list[str] = []
        if intent.source == "fallback":
            warnings.append("intent extracted from query tokens; generator unavailable or unparsable")

        if not candidates:
            warnings.append(
                "no candidate segments matched the filters" if catalog else "segment catalog is empty or unavailable"
            )
            result = CategorizedResultSet(
                query=request.query,
                total_found=0,
                scoring_method="none",
                confidence=0.0,
                degraded=True,
                warnings=warnings,
            )
            self._logger.info("search_degraded", extra={"trace_id": trace_id, "catalog_size": len(catalog)})
            return result

        scored = self._scorer.score(candidates, intent)
        method, confidence = scoring_summary(scored)
        if method in ("fallback", "mixed"):
            warnings.append(f"{method} scoring used; generator scores unavailable for some candidates")

        tiers = categorize(scored, self._config.windows)
        cards = self._enricher.enrich_many(
            [EnrichmentItem(segment=c.segment, score=c.score, reason=c.reason) for c in tiers.flatten()]
        )
        n_best, n_high = len(tiers.best_fit), len(tiers.high_value)

        result = CategorizedResultSet(
            best_fit=cards[:n_best],
            high_value=cards[n_best : n_best + n_high],
            related=cards[n_best + n_high :],
            query=request.query,
            total_found=len(scored),
            scoring_method=method,
            confidence=confidence,
            degraded=False,
            warnings=warnings,
        )
        self._cache.put(request.query, request.filters, result)
        self._logger.info(
            "search_done",
            extra={
                "trace_id": trace_id,
                "candidates": len(candidates),
                "scoring_method": method,
                "returned": len(cards),
            },
        )
        return result

    def get_segment_details(self, segment_id: str) -> EnrichedCard | None:
        """Enriched card for one segment, or None when the id is unknown."""
        if not isinstance(segment_id, str) or not segment_id.strip():
            raise SearchValidationError("segment_id must be a non-empty string")
        try:
            segment = self._catalog.get_segment_by_id(segment_id.strip())
        except Exception as exc:
            self._logger.warning(
                "catalog_lookup_failed", extra={"segment_id": segment_id, "error": str(exc)}, exc_info=True
            )
            return None
        if segment is None:
            return None
        return self._enricher.enrich_isolated(EnrichmentItem(segment=segment, score=None, reason=DETAIL_REASON))

    def extract_intent(self, query: str) -> IntentRecord:
        request = self.validate_request(query, None, None)
        return self._intent.extract(request.query)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def validate_request(
        self,
        query: Any,
        filters: Any,
        conversation_history: Any,
    ) -> SearchRequest:
        if not isinstance(query, str) or not query.strip():
            raise SearchValidationError("query must be a non-empty string")
        if len(query) > self._config.max_query_length:
            raise SearchValidationError(
                f"query exceeds {self._config.max_query_length} characters"
            )
        try:
            return SearchRequest(
                query=query.strip(),
                filters=filters if filters is not None else FilterSet(),
                conversation_history=list(conversation_history or []),
            )
        except ValidationError as exc:
            errors = [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
            raise SearchValidationError("invalid search request", errors=errors) from exc

    def _load_catalog(self, trace_id: str) -> list[Segment]:
        try:
            return self._catalog.list_segments()
        except Exception as exc:
            self._logger.warning(
                "catalog_unavailable", extra={"trace_id": trace_id, "error": str(exc)}, exc_info=True
            )
            return []

"""Tool registry for the MCP server.

Request shaping (flat arguments folded into a filter set), response
allowlists (field-level), one structured log line per call.
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Any

from ...config.runtime import get_settings
from ...services.errors import SearchValidationError
from ..validation import validate_and_estimate
from .observability import log_tool_invocation, metrics_snapshot

# ---------------------------------------------------------------------------
# Response allowlists (field-level)
# ---------------------------------------------------------------------------
ALLOWED_SEGMENT_KEYS = frozenset({
    "segment_id",
    "parent_segment_id",
    "name",
    "description",
    "segment_type",
    "cpm",
    "actively_generated",
    "scale_7day_us",
    "scale_1day_ip",
    "tier_number",
    "full_path",
})
ALLOWED_CARD_KEYS = frozenset({
    "segment",
    "score",
    "relevance_reason",
    "behavioral_insights",
    "geographic_insights",
    "data_sources",
})
ALLOWED_RESULT_KEYS = frozenset({
    "best_fit",
    "high_value",
    "related",
    "query",
    "total_found",
    "scoring_method",
    "confidence",
    "degraded",
    "warnings",
})
TIER_KEYS = ("best_fit", "high_value", "related")

SEARCH_TOOL_NAMES = frozenset({
    "audiences_search",
    "audiences_segment",
    "audiences_stats",
    "audiences_browse",
    "audiences_validate",
    "audiences_metrics",
})
ADMIN_TOOL_NAMES = frozenset({"audiences_reload", "audiences_cache_purge"})


def _shape_card(card: dict) -> dict:
    out = {k: card[k] for k in ALLOWED_CARD_KEYS if k in card}
    if isinstance(out.get("segment"), dict):
        out["segment"] = {k: out["segment"][k] for k in ALLOWED_SEGMENT_KEYS if k in out["segment"]}
    return out


def _shape_result(result: Any) -> dict:
    d = result.model_dump(mode="json") if hasattr(result, "model_dump") else result
    out = {k: d[k] for k in ALLOWED_RESULT_KEYS if k in d}
    for tier in TIER_KEYS:
        if tier in out:
            out[tier] = [_shape_card(c) for c in out[tier]]
    return out


def _get_search_service():
    from ...wiring import build_search_service
    return build_search_service()


def _get_catalog_service():
    from ...wiring import build_catalog_service
    return build_catalog_service()


def _build_filters(
    segment_type: str | None,
    max_cpm: float | None,
    actively_generated: bool | None,
    min_scale: float | None,
) -> dict:
    raw = {
        "segment_type": segment_type,
        "max_cpm": max_cpm,
        "actively_generated": actively_generated,
        "min_scale": min_scale,
    }
    return {k: v for k, v in raw.items() if v is not None}


def _error_payload(exc: SearchValidationError) -> str:
    return json.dumps({"error": str(exc), "errors": exc.errors}, indent=2)


def register_search_tools(mcp):
    """Register read-only search and catalog tools."""

    @mcp.tool()
    def audiences_search(
        query: str,
        segment_type: str | None = None,
        max_cpm: float | None = None,
        actively_generated: bool | None = None,
        min_scale: float | None = None,
        conversation_history: list[dict] | None = None,
    ) -> str:
        """Find audience segments for a campaign description, tiered by relevance.

        Args:
            query: Natural-language campaign brief (e.g. 'organic baby food for new parents')
            segment_type: 'commerce_audience' or 'interest'
            max_cpm: Price ceiling in USD CPM
            actively_generated: Keep only segments whose refresh flag equals this value
            min_scale: Minimum reach met by any scale estimate
            conversation_history: Prior turns as [{'role': 'user'|'assistant', 'content': '...'}]

        Returns:
            JSON with best_fit, high_value, related cards, scoring_method, confidence, warnings
        """
        t0 = time.monotonic()
        trace_id = str(uuid.uuid4())
        filters = _build_filters(segment_type, max_cpm, actively_generated, min_scale)
        try:
            result = _get_search_service().search(query, filters, conversation_history)
        except SearchValidationError as exc:
            log_tool_invocation("audiences_search", trace_id, (time.monotonic() - t0) * 1000, error=str(exc))
            return _error_payload(exc)
        latency_ms = (time.monotonic() - t0) * 1000
        log_tool_invocation(
            "audiences_search",
            trace_id,
            latency_ms,
            extra={"total_found": result.total_found, "scoring_method": result.scoring_method},
        )
        return json.dumps(_shape_result(result), indent=2)

    @mcp.tool()
    def audiences_segment(segment_id: str) -> str:
        """Return one segment with behavioral and geographic insights.

        Args:
            segment_id: Identifier from a search result card

        Returns:
            JSON card, or an error object when the id is unknown
        """
        t0 = time.monotonic()
        try:
            card = _get_search_service().get_segment_details(segment_id)
        except SearchValidationError as exc:
            log_tool_invocation("audiences_segment", None, (time.monotonic() - t0) * 1000, error=str(exc))
            return _error_payload(exc)
        log_tool_invocation("audiences_segment", None, (time.monotonic() - t0) * 1000, extra={"found": card is not None})
        if card is None:
            return json.dumps({"error": "segment_id not found", "segment_id": segment_id})
        return json.dumps(_shape_card(card.model_dump(mode="json")), indent=2)

    @mcp.tool()
    def audiences_stats() -> str:
        """Catalog statistics plus response-cache counters."""
        t0 = time.monotonic()
        stats = _get_catalog_service().stats()
        stats["cache"] = _get_search_service().cache.stats()
        log_tool_invocation("audiences_stats", None, (time.monotonic() - t0) * 1000)
        return json.dumps(stats, indent=2)

    @mcp.tool()
    def audiences_browse(
        keyword: str | None = None,
        name: str | None = None,
        parent_id: str | None = None,
        tier: int | None = None,
        tier_value: str | None = None,
    ) -> str:
        """Browse the catalog without scoring. Set exactly one of keyword, name, parent_id or tier.

        Args:
            keyword: Substring of a segment's name, description or path
            name: Exact segment name (case-insensitive)
            parent_id: List the direct children of this segment
            tier: Taxonomy depth 1-6; narrow with tier_value (e.g. 'Automotive')

        Returns:
            JSON with count and segments
        """
        t0 = time.monotonic()
        try:
            segments = _get_catalog_service().browse(keyword, name, parent_id, tier, tier_value)
        except SearchValidationError as exc:
            log_tool_invocation("audiences_browse", None, (time.monotonic() - t0) * 1000, error=str(exc))
            return _error_payload(exc)
        log_tool_invocation("audiences_browse", None, (time.monotonic() - t0) * 1000, extra={"count": len(segments)})
        shaped = [
            {k: v for k, v in s.model_dump(mode="json").items() if k in ALLOWED_SEGMENT_KEYS} for s in segments
        ]
        return json.dumps({"count": len(shaped), "segments": shaped}, indent=2)

    @mcp.tool()
    def audiences_validate(
        query: str,
        segment_type: str | None = None,
        max_cpm: float | None = None,
        actively_generated: bool | None = None,
        min_scale: float | None = None,
    ) -> str:
        """Validate a search request and estimate difficulty without running it.

        Returns:
            JSON with validation (errors, warnings), difficulty and a summary
        """
        t0 = time.monotonic()
        filters = _build_filters(segment_type, max_cpm, actively_generated, min_scale)
        result = validate_and_estimate(query, filters, get_settings().max_query_length)
        log_tool_invocation(
            "audiences_validate",
            None,
            (time.monotonic() - t0) * 1000,
            extra={"valid": result["summary"]["valid"]},
        )
        return json.dumps(result, indent=2)

    @mcp.tool()
    def audiences_metrics() -> str:
        """Per-tool call and error counters for this process."""
        return json.dumps(metrics_snapshot(), indent=2)


def register_admin_tools(mcp):
    """Register catalog reload and cache maintenance tools."""

    @mcp.tool()
    def audiences_reload() -> str:
        """Reload the segment catalog and drop cached search responses."""
        t0 = time.monotonic()
        result = _get_catalog_service().reload()
        log_tool_invocation("audiences_reload", None, (time.monotonic() - t0) * 1000, extra=result)
        return json.dumps(result, indent=2)

    @mcp.tool()
    def audiences_cache_purge(all_entries: bool = False) -> str:
        """Delete expired cache entries, or every entry with all_entries=true."""
        t0 = time.monotonic()
        cache = _get_search_service().cache
        removed = cache.invalidate_all() if all_entries else cache.purge_expired()
        log_tool_invocation("audiences_cache_purge", None, (time.monotonic() - t0) * 1000, extra={"removed": removed})
        return json.dumps({"removed": removed, "all_entries": all_entries})



"""Request validation and feedback for search entry points.

Hard errors mirror what ``AudienceSearchService`` rejects; warnings and the
difficulty estimate are advisory only.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from ..models.search_requests import FilterSet

SHORT_QUERY_CHARS = 10
LOW_CPM_CEILING = 1.0
HIGH_SCALE_FLOOR = 10_000_000


class ValidationResult:
    """Result of request validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None, warnings: list[str] | None = None):
        self.is_valid = is_valid
        self.errors = errors or []
        self.warnings = warnings or []

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
        }

    def add_error(self, error: str) -> ValidationResult:
        self.errors.append(error)
        self.is_valid = False
        return self

    def add_warning(self, warning: str) -> ValidationResult:
        self.warnings.append(warning)
        return self


def parse_filters(filters: FilterSet | dict | None, result: ValidationResult) -> FilterSet | None:
    """Coerce raw filters into a FilterSet, recording errors on ``result``."""
    if filters is None:
        return FilterSet()
    if isinstance(filters, FilterSet):
        return filters
    if not isinstance(filters, dict):
        result.add_error(f"filters must be an object, got {type(filters).__name__}")
        return None
    try:
        return FilterSet.model_validate(filters)
    except ValidationError as exc:
        for err in exc.errors():
            loc = ".".join(str(p) for p in err["loc"]) or "filters"
            result.add_error(f"filters.{loc}: {err['msg']}")
        return None


def validate_search_request(
    query: Any,
    filters: FilterSet | dict | None = None,
    max_query_length: int = 2_000,
) -> ValidationResult:
    """Validate a search request without running it."""
    result = ValidationResult(is_valid=True)

    if not isinstance(query, str) or not query.strip():
        result.add_error("query cannot be empty")
    elif len(query) > max_query_length:
        result.add_error(f"query too long ({len(query)} chars; max {max_query_length})")
    elif len(query.strip()) < SHORT_QUERY_CHARS:
        result.add_warning("query is very short; intent extraction may fall back to raw tokens")

    parsed = parse_filters(filters, result)
    if parsed is not None:
        if parsed.max_cpm is not None and parsed.max_cpm < LOW_CPM_CEILING:
            result.add_warning(f"max_cpm {parsed.max_cpm} is very low; few segments may qualify")
        if parsed.min_scale is not None and parsed.min_scale > HIGH_SCALE_FLOOR:
            result.add_warning(f"min_scale {parsed.min_scale:g} is very high; few segments may qualify")
        if parsed.actively_generated is False:
            result.add_warning("actively_generated=false keeps only segments that are not refreshed")

    return result


def estimate_search_difficulty(query: str, filters: FilterSet | None = None) -> dict[str, Any]:
    """Heuristic 0-10 estimate of how hard a search will be to satisfy."""
    filters = filters or FilterSet()
    score = 0.0
    factors: list[str] = []
    recommendations: list[str] = []

    words = len((query or "").split())
    if words < 3:
        score += 2.5
        factors.append("Very short query (< 3 words) gives the scorer little to work with")
        recommendations.append("Describe the product, audience and goal in a sentence or two")
    elif words < 8:
        score += 1.0
        factors.append("Moderate query length")
    else:
        factors.append("Descriptive query")

    constraint_count = sum(1 for v in filters.canonical().values() if v is not None)
    if constraint_count == 0:
        factors.append("No filters (whole catalog is scored)")
    elif constraint_count >= 3:
        score += 2.0
        factors.append("Several filters combined with AND")
        recommendations.append("Relax one filter if too few segments are returned")
    else:
        score += 0.5 * constraint_count
        factors.append(f"{constraint_count} filter(s) applied")

    if filters.max_cpm is not None and filters.max_cpm < LOW_CPM_CEILING:
        score += 2.0
        factors.append("Tight price ceiling")
    if filters.min_scale is not None and filters.min_scale > HIGH_SCALE_FLOOR:
        score += 2.0
        factors.append("High scale floor")

    difficulty = min(10.0, score)
    label = "easy" if difficulty < 3 else "moderate" if difficulty < 6 else "hard"
    if not recommendations:
        recommendations.append("Request looks reasonable; no specific recommendations")

    return {
        "difficulty_score": round(difficulty, 1),
        "difficulty_label": label,
        "factors": factors,
        "recommendations": recommendations,
    }


def validate_and_estimate(
    query: Any,
    filters: FilterSet | dict | None = None,
    max_query_length: int = 2_000,
) -> dict[str, Any]:
    """Run validation and, when the filters parse, the difficulty estimate."""
    validation = validate_search_request(query, filters, max_query_length)
    scratch = ValidationResult(is_valid=True)
    parsed = parse_filters(filters, scratch)
    difficulty = (
        estimate_search_difficulty(query if isinstance(query, str) else "", parsed)
        if scratch.is_valid
        else None
    )
    return {
        "validation": validation.to_dict(),
        "difficulty": difficulty,
        "summary": {
            "valid": validation.is_valid,
            "error_count": len(validation.errors),
            "warning_count": len(validation.warnings),
            "difficulty_score": difficulty["difficulty_score"] if difficulty else None,
        },
    }

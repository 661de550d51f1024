"""Tests for request validation and difficulty estimation."""

import pytest

from audiencescout.interface.validation import (
    estimate_search_difficulty,
    validate_and_estimate,
    validate_search_request,
)
from audiencescout.models.search_requests import FilterSet


class TestValidateSearchRequest:
    def test_valid_request(self):
        result = validate_search_request("organic baby food for new parents", {"max_cpm": 2.5})
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query(self, query):
        result = validate_search_request(query)
        assert not result.is_valid
        assert result.errors == ["query cannot be empty"]

    def test_query_too_long(self):
        result = validate_search_request("x" * 21, max_query_length=20)
        assert not result.is_valid
        assert "too long" in result.errors[0]

    def test_short_query_warns(self):
        result = validate_search_request("shoes")
        assert result.is_valid
        assert any("very short" in w for w in result.warnings)

    def test_invalid_filters_reported_with_field(self):
        result = validate_search_request("running shoes for marathons", {"max_cpm": -2, "color": "red"})
        assert not result.is_valid
        assert any(e.startswith("filters.max_cpm") for e in result.errors)
        assert any(e.startswith("filters.color") for e in result.errors)

    def test_non_object_filters(self):
        result = validate_search_request("running shoes for marathons", ["max_cpm"])
        assert result.errors == ["filters must be an object, got list"]

    def test_advisory_warnings(self):
        result = validate_search_request(
            "running shoes for marathons",
            FilterSet(max_cpm=0.5, min_scale=50_000_000, actively_generated=False),
        )
        assert result.is_valid
        assert len(result.warnings) == 3


class TestDifficulty:
    def test_short_unfiltered_query_is_easy(self):
        est = estimate_search_difficulty("shoes")
        assert est["difficulty_score"] == 2.5
        assert est["difficulty_label"] == "easy"
        assert "No filters (whole catalog is scored)" in est["factors"]

    def test_tight_constraints_are_hard(self):
        est = estimate_search_difficulty(
            "shoes",
            FilterSet(segment_type="interest", max_cpm=0.5, min_scale=20_000_000),
        )
        assert est["difficulty_score"] == 8.5
        assert est["difficulty_label"] == "hard"
        assert len(est["recommendations"]) == 2

    def test_descriptive_query_with_one_filter(self):
        est = estimate_search_difficulty(
            "premium electric vehicles for eco conscious commuters in large cities",
            FilterSet(max_cpm=3.0),
        )
        assert est["difficulty_score"] == 0.5
        assert est["recommendations"] == ["Request looks reasonable; no specific recommendations"]


class TestValidateAndEstimate:
    def test_valid(self):
        out = validate_and_estimate("organic baby food for new parents", {"segment_type": "commerce_audience"})
        assert out["summary"]["valid"] is True
        assert out["summary"]["error_count"] == 0
        assert out["difficulty"]["difficulty_label"] == "easy"
        assert out["summary"]["difficulty_score"] == out["difficulty"]["difficulty_score"]

    def test_bad_filters_skip_difficulty(self):
        out = validate_and_estimate("organic baby food for new parents", {"max_cpm": "cheap"})
        assert out["summary"]["valid"] is False
        assert out["difficulty"] is None
        assert out["summary"]["difficulty_score"] is None

    def test_empty_query_still_estimates(self):
        out = validate_and_estimate("", None)
        assert out["validation"]["errors"] == ["query cannot be empty"]
        assert out["difficulty"]["difficulty_score"] == 2.5

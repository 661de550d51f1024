"""Unit tests for TargetingEngine and the SegmentFilter it builds."""

import pytest
from pydantic import ValidationError

from audiencescout.domain.filters import FieldFilter, FilterOp, SegmentFilter
from audiencescout.domain.segment import SegmentType
from audiencescout.domain.targeting_engine import TargetingEngine
from audiencescout.models.search_requests import FilterSet

from fakes import make_segment

CATALOG = [
    make_segment("1", "Luxury Shoppers", segment_type="commerce_audience", cpm=3.5,
                 actively_generated=True, scale_7day_us=2_000_000),
    make_segment("2", "Yoga Fans", cpm=0.8, scale_1day_ip=50_000),
    make_segment("3", "Pet Owners", segment_type="commerce_audience", cpm=1.2,
                 actively_generated=False, scale_hem_us=900_000),
    make_segment("4", "Gamers", cpm=0.5, actively_generated=True),
    make_segment("5", "New Parents", segment_type="commerce_audience", cpm=2.0,
                 actively_generated=True, scale_7day_global=10_000_000, scale_7day_us=100),
]


def _ids(segments):
    return [s.segment_id for s in segments]


class TestBuildFilter:
    def test_none_filters_builds_empty(self):
        assert TargetingEngine().build_filter(None).is_empty

    def test_empty_filter_set_builds_empty(self):
        assert TargetingEngine().build_filter(FilterSet()).is_empty

    def test_one_condition_per_field(self):
        f = TargetingEngine().build_filter(
            FilterSet(segment_type="interest", max_cpm=2, actively_generated=False, min_scale=10)
        )
        assert len(f.must) == 4
        assert f.must[0].op == FilterOp.equals
        assert f.must[1].op == FilterOp.lte
        assert f.must[3].fields == ("scale_7day_global", "scale_7day_us", "scale_hem_us", "scale_1day_ip")


class TestFilterCandidates:
    def test_empty_filter_is_identity(self):
        engine = TargetingEngine()
        assert engine.filter_candidates(CATALOG, FilterSet()) == CATALOG
        assert engine.filter_candidates(CATALOG, None) == CATALOG

    def test_segment_type(self):
        out = TargetingEngine().filter_candidates(CATALOG, FilterSet(segment_type="commerce_audience"))
        assert _ids(out) == ["1", "3", "5"]

    def test_segment_type_display_label_accepted(self):
        fs = FilterSet(segment_type="Commerce Audience")
        assert fs.segment_type == SegmentType.commerce_audience
        assert _ids(TargetingEngine().filter_candidates(CATALOG, fs)) == ["1", "3", "5"]

    def test_max_cpm_is_inclusive(self):
        out = TargetingEngine().filter_candidates(CATALOG, FilterSet(max_cpm=1.2))
        assert _ids(out) == ["2", "3", "4"]

    def test_actively_generated_false_keeps_only_inactive(self):
        out = TargetingEngine().filter_candidates(CATALOG, FilterSet(actively_generated=False))
        assert _ids(out) == ["2", "3"]

    def test_min_scale_satisfied_by_any_scale_field(self):
        out = TargetingEngine().filter_candidates(CATALOG, FilterSet(min_scale=500_000))
        assert _ids(out) == ["1", "3", "5"]

    def test_min_scale_excludes_segments_without_scale(self):
        out = TargetingEngine().filter_candidates(CATALOG, FilterSet(min_scale=0))
        assert "4" not in _ids(out)

    def test_preserves_catalog_order(self):
        reversed_catalog = list(reversed(CATALOG))
        out = TargetingEngine().filter_candidates(reversed_catalog, FilterSet(max_cpm=2.0))
        assert _ids(out) == ["5", "4", "3", "2"]

    def test_sequential_filters_equal_conjunction(self):
        engine = TargetingEngine()
        first = FilterSet(segment_type="commerce_audience")
        second = FilterSet(actively_generated=True, max_cpm=3.0)
        both = FilterSet(segment_type="commerce_audience", actively_generated=True, max_cpm=3.0)
        sequential = engine.filter_candidates(engine.filter_candidates(CATALOG, first), second)
        assert sequential == engine.filter_candidates(CATALOG, both)
        assert _ids(sequential) == ["5"]

    def test_combine_is_logical_and(self):
        engine = TargetingEngine()
        a = engine.build_filter(FilterSet(max_cpm=2.0))
        b = engine.build_filter(FilterSet(actively_generated=True))
        assert a.combine(b).apply(CATALOG) == b.apply(a.apply(CATALOG))

    def test_no_match_returns_empty(self):
        out = TargetingEngine().filter_candidates(CATALOG, FilterSet(max_cpm=0.1))
        assert out == []


class TestFilterSetValidation:
    def test_unknown_segment_type_rejected(self):
        with pytest.raises(ValidationError):
            FilterSet(segment_type="podcast")

    def test_negative_cpm_rejected(self):
        with pytest.raises(ValidationError):
            FilterSet(max_cpm=-1)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            FilterSet(region="US")

    def test_canonical_json_ignores_unset_fields(self):
        assert FilterSet().canonical_json() == "{}"
        a = FilterSet(max_cpm=2.0, segment_type="interest")
        b = FilterSet(segment_type="interest", max_cpm=2.0)
        assert a.canonical_json() == b.canonical_json()


def test_field_filter_lte_skips_missing_values():
    condition = FieldFilter(fields=("scale_7day_us",), op=FilterOp.lte, value=10)
    assert not condition.matches(make_segment("x"))
    assert SegmentFilter(must=(condition,)).apply([make_segment("x")]) == []

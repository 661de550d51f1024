"""Tests for the CSV adapters and SegmentCatalogService."""

from pathlib import Path

import pytest

from audiencescout.adapters.csv_catalog import CsvSegmentCatalog, row_to_segment
from audiencescout.adapters.csv_commerce_dataset import CsvCommerceDataset
from audiencescout.adapters.csv_geography import CsvGeographyResolver
from audiencescout.adapters.memory_cache_store import InMemoryCacheStore
from audiencescout.domain.segment import SegmentType
from audiencescout.ports.catalog import SegmentCatalog
from audiencescout.ports.datasets import AudienceDataset, GeographyResolver
from audiencescout.services.catalog_service import SegmentCatalogService
from audiencescout.services.errors import SearchValidationError
from audiencescout.services.response_cache import ResponseCache

from fakes import FakeCatalog, make_segment

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
TAXONOMY = DATA_DIR / "audience_taxonomy.csv"
COMMERCE = DATA_DIR / "commerce_audience_segments.csv"
GEOGRAPHY = DATA_DIR / "zip_metro_areas.csv"

HEADER = (
    "segment_type,segment_id,parent_segment_id,segment_name,segment_description,tier_number,"
    "tier_1,tier_2,tier_3,tier_4,tier_5,tier_6,full_path,cpm,media_cost_percent,actively_generated,"
    "scale_7day_global,scale_7day_us,scale_hem_us,scale_1day_ip\n"
)


def _write_taxonomy(path: Path, rows: list[str]) -> Path:
    path.write_text(HEADER + "".join(r + "\n" for r in rows), encoding="utf-8")
    return path


class TestCsvCatalog:
    def test_loads_sample_taxonomy(self):
        catalog = CsvSegmentCatalog(TAXONOMY)
        segments = catalog.list_segments()
        assert len(segments) == 12
        assert isinstance(catalog, SegmentCatalog)
        luxury = catalog.get_segment_by_id("1002")
        assert luxury.name == "Luxury Vehicle Shoppers"
        assert luxury.segment_type == SegmentType.commerce_audience
        assert luxury.parent_segment_id == "1001"
        assert luxury.tiers == ("Automotive", "Luxury Vehicle Shoppers")
        assert luxury.full_path == "Automotive > Luxury Vehicle Shoppers"
        assert luxury.cpm == 2.25
        assert luxury.actively_generated is True

    def test_ids_unique_and_order_kept(self):
        ids = [s.segment_id for s in CsvSegmentCatalog(TAXONOMY).list_segments()]
        assert len(ids) == len(set(ids))
        assert ids[:3] == ["1001", "1002", "1003"]

    def test_bad_and_duplicate_rows_skipped(self, tmp_path):
        path = _write_taxonomy(tmp_path / "taxonomy.csv", [
            "Interest,1,,Good,desc,1,Good,,,,,,,1.0,,true,,,,",
            "Interest,2,,Bad Cpm,desc,1,Bad,,,,,,,abc,,true,,,,",
            "Podcast,3,,Bad Type,desc,1,Bad,,,,,,,1.0,,true,,,,",
            "Interest,,,No Id,desc,1,Bad,,,,,,,1.0,,true,,,,",
            "Interest,1,,Duplicate,desc,1,Dup,,,,,,,1.0,,true,,,,",
        ])
        segments = CsvSegmentCatalog(path).list_segments()
        assert [(s.segment_id, s.name) for s in segments] == [("1", "Good")]
        assert segments[0].full_path == "Good"

    def test_scale_values_with_thousands_separators(self):
        row = {
            "segment_type": "Interest",
            "segment_id": "9",
            "segment_name": "Readers",
            "tier_number": "1",
            "tier_1": "Readers",
            "cpm": "0.5",
            "scale_7day_us": "1,200,000",
        }
        assert row_to_segment(row).scale_7day_us == 1_200_000

    def test_reload_picks_up_changes(self, tmp_path):
        path = _write_taxonomy(tmp_path / "taxonomy.csv", ["Interest,1,,One,,1,One,,,,,,,1.0,,true,,,,"])
        catalog = CsvSegmentCatalog(path)
        assert len(catalog.list_segments()) == 1
        _write_taxonomy(path, [
            "Interest,1,,One,,1,One,,,,,,,1.0,,true,,,,",
            "Interest,2,,Two,,1,Two,,,,,,,1.0,,true,,,,",
        ])
        assert len(catalog.list_segments()) == 1
        assert catalog.reload() == 2
        assert catalog.get_segment_by_id("2").name == "Two"


class TestCsvCommerceDataset:
    def test_lookup_dedups_locations_keeping_heaviest(self):
        dataset = CsvCommerceDataset(COMMERCE)
        assert isinstance(dataset, AudienceDataset)
        records = dataset.lookup_by_audience_name("Luxury Vehicle Shoppers", limit=10)
        assert [(r.location_key, r.weight) for r in records] == [
            ("90210", 990), ("10021", 910), ("94027", 880), ("33109", 640),
        ]

    def test_non_us_rows_ignored(self):
        records = CsvCommerceDataset(COMMERCE).lookup_by_audience_name("luxury", limit=100)
        assert "10115" not in {r.location_key for r in records}

    def test_limit(self):
        assert len(CsvCommerceDataset(COMMERCE).lookup_by_audience_name("Luxury", limit=2)) == 2

    def test_lookup_by_location_keys(self):
        records = CsvCommerceDataset(COMMERCE).lookup_by_location_keys(["94027", "94027"])
        assert sorted(r.audience_name for r in records) == ["Luxury Vehicle Shoppers", "Smart Home Buyers"]

    def test_blank_name_returns_nothing(self):
        assert CsvCommerceDataset(COMMERCE).lookup_by_audience_name("  ", limit=5) == []


class TestCsvGeography:
    def test_resolve(self):
        resolver = CsvGeographyResolver(GEOGRAPHY)
        assert isinstance(resolver, GeographyResolver)
        areas = resolver.resolve(["94110", "00000"])
        assert list(areas) == ["94110"]
        area = areas["94110"]
        assert area.area_name == "San Francisco-Oakland-Berkeley, CA"
        assert area.state == "CA"
        assert area.population == 69333


class TestCatalogService:
    @pytest.fixture
    def service(self):
        return SegmentCatalogService(CsvSegmentCatalog(TAXONOMY))

    def test_stats(self, service):
        stats = service.stats()
        assert stats["total_segments"] == 12
        assert stats["commerce_audiences"] == 7
        assert stats["interests"] == 5
        assert stats["actively_generated"] == 9
        assert stats["average_cpm"] == pytest.approx(1.3625)
        assert stats["tier_distribution"] == {
            "tier1": 5, "tier2": 7, "tier3": 0, "tier4": 0, "tier5": 0, "tier6": 0,
        }

    def test_stats_empty_catalog(self):
        stats = SegmentCatalogService(FakeCatalog([])).stats()
        assert stats["total_segments"] == 0
        assert stats["average_cpm"] == 0.0

    def test_get_segment_by_name_is_case_insensitive(self, service):
        assert service.get_segment_by_name("  luxury travel ").segment_id == "4002"
        assert service.get_segment_by_name("Nope") is None

    def test_search_segments(self, service):
        ids = [s.segment_id for s in service.search_segments("Luxury")]
        assert ids == ["1002", "4002"]

    def test_search_segments_blank_keyword(self, service):
        with pytest.raises(SearchValidationError):
            service.search_segments("   ")

    def test_child_segments(self, service):
        assert [s.segment_id for s in service.get_child_segments("3001")] == ["3002", "3003"]

    def test_segments_by_tier(self, service):
        assert [s.segment_id for s in service.get_segments_by_tier(1)] == ["1001", "2001", "3001", "4001", "5001"]
        assert [s.segment_id for s in service.get_segments_by_tier(2, "Fitness")] == []
        assert [s.segment_id for s in service.get_segments_by_tier(2, "Yoga & Pilates")] == ["3003"]

    @pytest.mark.parametrize("tier", [0, 7])
    def test_segments_by_tier_range(self, service, tier):
        with pytest.raises(SearchValidationError):
            service.get_segments_by_tier(tier)

    def test_browse_dispatches_on_selector(self, service):
        assert [s.segment_id for s in service.browse(keyword="Luxury")] == ["1002", "4002"]
        assert [s.segment_id for s in service.browse(name="luxury travel")] == ["4002"]
        assert service.browse(name="Nope") == []
        assert [s.segment_id for s in service.browse(parent_id="3001")] == ["3002", "3003"]
        assert [s.segment_id for s in service.browse(tier=2, tier_value="Yoga & Pilates")] == ["3003"]

    @pytest.mark.parametrize(
        "kwargs",
        [{}, {"keyword": "x", "tier": 1}, {"tier_value": "Fitness"}, {"name": "x", "tier_value": "Fitness"}],
    )
    def test_browse_rejects_ambiguous_selectors(self, service, kwargs):
        with pytest.raises(SearchValidationError):
            service.browse(**kwargs)

    def test_reload_purges_cache(self):
        from audiencescout.models.search_responses import CategorizedResultSet

        cache = ResponseCache(InMemoryCacheStore())
        cache.put("q", None, CategorizedResultSet(query="q"))
        catalog = FakeCatalog([make_segment("1"), make_segment("2")])
        result = SegmentCatalogService(catalog, cache=cache).reload()
        assert result == {"segments": 2, "cache_purged": 1}
        assert catalog.reloads == 1
        assert cache.get("q") is None

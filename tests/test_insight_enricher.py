"""Unit tests for InsightEnricher with fake datasets."""

import pytest

from audiencescout.config.runtime import PipelineConfig
from audiencescout.ports.datasets import GeoArea
from audiencescout.services.insight_enricher import EnrichmentItem, InsightEnricher, state_from_area_name

from fakes import FakeDataset, FakeGeography, make_segment, record

CATALOG_LABEL = "Audience Taxonomy"
BEHAVIORAL_LABEL = "Commerce Signals"
GEOGRAPHIC_LABEL = "Census Geography"

LUXURY = make_segment(
    "1002",
    "Luxury Vehicle Shoppers",
    segment_type="commerce_audience",
    tier_number=2,
    tiers=("Automotive", "Luxury Vehicle Shoppers"),
)
PETS = make_segment("3001", "Pet Owners", segment_type="commerce_audience")
GAMERS = make_segment("5001", "Gamers")

RECORDS = [
    record("Luxury Vehicle Shoppers", "90210", 100),
    record("Luxury Vehicle Shoppers", "90211", 50),
    record("Luxury Vehicle Shoppers", "78701", 30),
    record("EV Shoppers", "90210", 40),
    record("EV Shoppers", "90211", 20),
    record("Golf Gear", "90210", 70),
    record("Golf Gear", "10001", 500),
]

AREAS = {
    "90210": GeoArea(location_key="90210", area_name="Los Angeles, CA", state="CA", population=1000),
    "90211": GeoArea(location_key="90211", area_name="Los Angeles, CA", state="CA", population=2000),
    "78701": GeoArea(location_key="78701", area_name="Austin-Round Rock, TX"),
}


def enricher(dataset=None, geography=None, **config) -> InsightEnricher:
    return InsightEnricher(dataset, geography, PipelineConfig(**config))


class TestBehavioral:
    def test_cross_purchases_ranked_by_weight(self):
        card = enricher(FakeDataset(RECORDS)).enrich(EnrichmentItem(segment=LUXURY, score=88, reason="fit"))
        [insight] = card.behavioral_insights
        assert insight.primary_category == "Luxury Vehicle Shoppers"
        assert insight.cross_purchases == ["Golf Gear", "EV Shoppers"]
        assert insight.location_count == 3
        assert insight.overlap_percentage == 33.3
        assert insight.insight == (
            "This audience shows strong purchase intent in the Luxury Vehicle Shoppers category"
        )

    def test_cross_purchases_exclude_own_audience_case_insensitively(self):
        records = RECORDS + [record("LUXURY VEHICLE SHOPPERS", "90210", 1000)]
        card = enricher(FakeDataset(records)).enrich(EnrichmentItem(segment=LUXURY))
        assert "LUXURY VEHICLE SHOPPERS" not in card.behavioral_insights[0].cross_purchases

    def test_cross_purchases_exclude_name_variants_of_own_audience(self):
        records = RECORDS + [record("Luxury Vehicle Shoppers - Premium", "90210", 900)]
        card = enricher(FakeDataset(records)).enrich(EnrichmentItem(segment=LUXURY))
        assert card.behavioral_insights[0].cross_purchases == ["Golf Gear", "EV Shoppers"]

    def test_cross_purchase_limit(self):
        card = enricher(FakeDataset(RECORDS), cross_purchase_limit=1).enrich(EnrichmentItem(segment=LUXURY))
        assert card.behavioral_insights[0].cross_purchases == ["Golf Gear"]

    def test_behavioral_lookup_limit_bounds_locations(self):
        card = enricher(FakeDataset(RECORDS), behavioral_lookup_limit=2).enrich(EnrichmentItem(segment=LUXURY))
        insight = card.behavioral_insights[0]
        assert insight.location_count == 2
        assert insight.overlap_percentage == 50.0

    def test_category_falls_back_to_tier_one(self):
        seg = make_segment("1001", "Automotive", segment_type="commerce_audience", tiers=("Vehicles",))
        card = enricher(FakeDataset([record("Automotive", "90210", 10)])).enrich(EnrichmentItem(segment=seg))
        assert card.behavioral_insights[0].insight.endswith("in the Vehicles category")
        assert card.behavioral_insights[0].cross_purchases == []
        assert card.behavioral_insights[0].overlap_percentage is None


class TestGeographic:
    def test_grouped_by_location_key_without_resolver(self):
        card = enricher(FakeDataset(RECORDS)).enrich(EnrichmentItem(segment=LUXURY))
        geo = card.geographic_insights
        assert [g.area_name for g in geo] == ["90210", "90211", "78701"]
        assert [g.over_index for g in geo] == [167, 83, 50]
        assert all(g.state == "US" for g in geo)
        assert all(g.population is None for g in geo)

    def test_grouped_by_resolved_area(self):
        card = enricher(FakeDataset(RECORDS), FakeGeography(AREAS)).enrich(EnrichmentItem(segment=LUXURY))
        geo = card.geographic_insights
        assert [g.area_name for g in geo] == ["Los Angeles, CA", "Austin-Round Rock, TX"]
        la, austin = geo
        assert (la.over_index, la.total_weight, la.location_count, la.state, la.population) == (
            125, 150, 2, "CA", 3000,
        )
        assert austin.state == "TX"
        assert austin.population is None
        assert austin.over_index == 50

    def test_unresolved_keys_skipped(self):
        areas = {k: v for k, v in AREAS.items() if k != "78701"}
        card = enricher(FakeDataset(RECORDS), FakeGeography(areas)).enrich(EnrichmentItem(segment=LUXURY))
        assert [g.area_name for g in card.geographic_insights] == ["Los Angeles, CA"]

    def test_top_three_areas(self):
        records = [record("Luxury Vehicle Shoppers", f"0000{i}", 10 * i) for i in range(1, 6)]
        card = enricher(FakeDataset(records)).enrich(EnrichmentItem(segment=LUXURY))
        assert [g.area_name for g in card.geographic_insights] == ["00005", "00004", "00003"]

    def test_zero_weights_yield_no_geography(self):
        records = [record("Luxury Vehicle Shoppers", "90210", 0)]
        card = enricher(FakeDataset(records)).enrich(EnrichmentItem(segment=LUXURY))
        assert card.geographic_insights == []
        assert card.data_sources == [CATALOG_LABEL, BEHAVIORAL_LABEL]

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Austin-Round Rock, TX", "TX"),
            ("New York-Newark-Jersey City, NY-NJ-PA", "NY"),
            ("Springfield", None),
        ],
    )
    def test_state_from_area_name(self, name, expected):
        assert state_from_area_name(name) == expected


class TestDataSources:
    def test_full_enrichment_lists_all_labels(self):
        card = enricher(FakeDataset(RECORDS), FakeGeography(AREAS)).enrich(
            EnrichmentItem(segment=LUXURY, score=91.5, reason="strong fit")
        )
        assert card.data_sources == [CATALOG_LABEL, BEHAVIORAL_LABEL, GEOGRAPHIC_LABEL]
        assert card.score == 91.5
        assert card.relevance_reason == "strong fit"

    def test_commerce_segment_without_records_gets_catalog_label_only(self):
        card = enricher(FakeDataset(RECORDS)).enrich(EnrichmentItem(segment=PETS))
        assert card.behavioral_insights == []
        assert card.geographic_insights == []
        assert card.data_sources == [CATALOG_LABEL]

    def test_interest_segment_is_not_looked_up(self):
        dataset = FakeDataset(RECORDS, fail_for={"Gamers"})
        card = enricher(dataset).enrich(EnrichmentItem(segment=GAMERS))
        assert card.data_sources == [CATALOG_LABEL]

    def test_no_dataset_configured(self):
        card = enricher().enrich(EnrichmentItem(segment=LUXURY))
        assert card.data_sources == [CATALOG_LABEL]

    def test_custom_labels(self):
        card = enricher(FakeDataset(RECORDS), catalog_label="Taxonomy v2").enrich(EnrichmentItem(segment=PETS))
        assert card.data_sources == ["Taxonomy v2"]


class TestIsolation:
    def test_failing_segment_yields_bare_card(self):
        dataset = FakeDataset(RECORDS, fail_for={"Luxury Vehicle Shoppers"})
        card = enricher(dataset).enrich_isolated(EnrichmentItem(segment=LUXURY, score=70, reason="r"))
        assert card.segment == LUXURY
        assert card.score == 70
        assert card.relevance_reason == "r"
        assert card.behavioral_insights == []
        assert card.data_sources == [CATALOG_LABEL]

    def test_enrich_many_preserves_order_and_isolates_failures(self):
        dataset = FakeDataset(RECORDS, fail_for={"Pet Owners"})
        items = [EnrichmentItem(segment=s) for s in (PETS, LUXURY, GAMERS)]
        cards = enricher(dataset, enrich_max_workers=3).enrich_many(items)
        assert [c.segment.segment_id for c in cards] == ["3001", "1002", "5001"]
        assert cards[0].data_sources == [CATALOG_LABEL]
        assert BEHAVIORAL_LABEL in cards[1].data_sources

    def test_enrich_many_empty(self):
        assert enricher().enrich_many([]) == []

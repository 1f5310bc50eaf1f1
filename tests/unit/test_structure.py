"""
Unit tests for the account-structure report.

Covers:
- compute_ad_group_stats: purity, dominant category, status thresholds
- generate_move_recommendations: MOVE / ISOLATE targets and the cost floor
- propose_new_ad_groups: theme grouping, floors, safeguarded exclusion
"""
import pytest

from keyword_intel.insights.actions import InsightsConfig, decide
from keyword_intel.insights.structure import (
    NEW_CAMPAIGN,
    UNMAPPED,
    compute_ad_group_stats,
    generate_move_recommendations,
    propose_new_ad_groups,
)
from keyword_intel.models.engine_io import KeywordMetrics
from keyword_intel.models.taxonomy import ActionType, AdGroupStatus, Category


def _m(cost, clicks=10, impressions=100, conversions=0):
    return KeywordMetrics(impressions=impressions, clicks=clicks, cost=cost, conversions=conversions)


# ---------------------------------------------------------------------------
# Ad-group stats
# ---------------------------------------------------------------------------

@pytest.fixture
def placed(make_pk):
    keywords = [
        make_pk("forex trading", keyword_id="a1", campaign="C1", ad_group="AG1"),
        make_pk("open account", keyword_id="a2", campaign="C1", ad_group="AG1"),
        make_pk("cfi", keyword_id="b1", campaign="C1", ad_group="AG2"),
        make_pk("dubai", keyword_id="c1", campaign="C1", ad_group="AG3"),
        make_pk("free forex", keyword_id="c2", campaign="C1", ad_group="AG3"),
        make_pk("etoro", keyword_id="u1"),
    ]
    metrics = {
        "a1": _m(160.0, clicks=40, impressions=1000),
        "a2": _m(40.0, clicks=10, impressions=1000, conversions=2),
        "b1": _m(100.0),
        "c1": _m(90.0),
        "c2": _m(60.0),
    }
    return keywords, metrics


class TestAdGroupStats:
    def test_sorted_by_spend(self, placed):
        stats = compute_ad_group_stats(*placed)
        assert [s.ad_group for s in stats] == ["AG1", "AG3", "AG2", UNMAPPED]

    def test_purity_and_status(self, placed):
        by_group = {s.ad_group: s for s in compute_ad_group_stats(*placed)}

        assert by_group["AG1"].dominant_category is Category.GENERIC
        assert by_group["AG1"].purity == 0.8
        assert by_group["AG1"].status is AdGroupStatus.IMPROVE_WITH_NEGATIVES

        assert by_group["AG3"].dominant_category is Category.GEO
        assert by_group["AG3"].purity == 0.6
        assert by_group["AG3"].status is AdGroupStatus.NEEDS_RESTRUCTURE

        assert by_group["AG2"].purity == 1.0
        assert by_group["AG2"].status is AdGroupStatus.OK

    def test_totals(self, placed):
        ag1 = compute_ad_group_stats(*placed)[0]
        assert ag1.campaign == "C1"
        assert ag1.keywords == 2
        assert ag1.spend == 200.0
        assert ag1.clicks == 50
        assert ag1.conversions == 2.0
        assert ag1.cpa == 100.0
        assert ag1.ctr == 0.025

    def test_unmapped_without_spend(self, placed):
        unmapped = compute_ad_group_stats(*placed)[-1]
        assert unmapped.campaign is None
        assert unmapped.spend == 0.0
        assert unmapped.cpa is None
        assert unmapped.purity == 1.0
        assert unmapped.dominant_category is Category.COMPETITOR

    def test_dominant_tie_uses_precedence(self, make_pk):
        keywords = [
            make_pk("forex", keyword_id="g", ad_group="AG"),
            make_pk("open account", keyword_id="m", ad_group="AG"),
        ]
        (stats,) = compute_ad_group_stats(keywords, {})
        assert stats.dominant_category is Category.MONEY_INTENT

    def test_thresholds_from_config(self, placed):
        config = InsightsConfig(purity_ok=0.75, purity_restructure=0.5)
        by_group = {s.ad_group: s for s in compute_ad_group_stats(*placed, config=config)}
        assert by_group["AG1"].status is AdGroupStatus.OK
        assert by_group["AG3"].status is AdGroupStatus.IMPROVE_WITH_NEGATIVES

    def test_to_dict(self, placed):
        out = compute_ad_group_stats(*placed)[0].to_dict()
        assert out["dominant_category"] == "generic"
        assert out["status"] == "improve_with_negatives"

    def test_empty(self):
        assert compute_ad_group_stats([], {}) == []


class TestStructureConfig:
    def test_purity_order_enforced(self):
        with pytest.raises(ValueError):
            InsightsConfig(purity_ok=0.6, purity_restructure=0.7)

    def test_purity_above_one(self):
        with pytest.raises(ValueError):
            InsightsConfig(purity_ok=1.5)

    @pytest.mark.parametrize("name", [
        "move_min_cost", "new_ad_group_min_cost", "new_ad_group_min_clicks", "worst_cpa_min_spend",
    ])
    def test_negative_floor(self, name):
        with pytest.raises(ValueError):
            InsightsConfig(**{name: -1})


# ---------------------------------------------------------------------------
# Move recommendations
# ---------------------------------------------------------------------------

class TestMoveRecommendations:
    @pytest.fixture
    def batch(self, make_pk):
        keywords = [
            make_pk("cfi", keyword_id="brand", campaign="C1", ad_group="AG2"),
            make_pk("dubai forex", keyword_id="geo"),
            make_pk("cfi financial", keyword_id="cheap", campaign="C1", ad_group="AG2"),
            make_pk("dubai", keyword_id="done", campaign="C1", ad_group="Dubai", is_isolated=True),
            make_pk("forex", keyword_id="generic", campaign="C1", ad_group="AG1"),
        ]
        metrics = {
            "brand": _m(100.0),
            "geo": _m(200.0),
            "cheap": _m(10.0),
            "done": _m(500.0),
            "generic": _m(900.0),
        }
        decisions = [decide(pk, metrics.get(pk.keyword_id)) for pk in keywords]
        return keywords, metrics, decisions

    def test_only_moves_above_floor(self, batch):
        moves = generate_move_recommendations(*batch)
        assert [mv.keyword_id for mv in moves] == ["geo", "brand"]

    def test_isolate_without_campaign(self, batch):
        geo = generate_move_recommendations(*batch)[0]
        assert geo.action is ActionType.ISOLATE
        assert geo.category is Category.GEO
        assert geo.current_campaign is None
        assert geo.proposed_campaign == NEW_CAMPAIGN
        assert geo.proposed_ad_group == "AG | geo | dubai"
        assert geo.cost == 200.0

    def test_move_keeps_campaign(self, batch):
        keywords, metrics, decisions = batch
        brand = generate_move_recommendations(*batch)[1]
        assert brand.action is ActionType.MOVE
        assert brand.current_ad_group == "AG2"
        assert brand.proposed_campaign == "C1"
        assert brand.proposed_ad_group == "AG | brand | cfi"
        assert brand.rationale == decisions[0].rationale

    def test_floor_from_config(self, batch):
        moves = generate_move_recommendations(*batch, config=InsightsConfig(move_min_cost=0))
        assert {mv.keyword_id for mv in moves} == {"geo", "brand", "cheap"}

    def test_to_dict(self, batch):
        out = generate_move_recommendations(*batch)[0].to_dict()
        assert out["action"] == "isolate"
        assert out["category"] == "geo"


# ---------------------------------------------------------------------------
# Proposed ad groups
# ---------------------------------------------------------------------------

class TestProposedAdGroups:
    @pytest.fixture
    def batch(self, make_pk):
        keywords = [
            make_pk("open account dubai", keyword_id="m1", campaign="C1", ad_group="AG1"),
            make_pk("open account", keyword_id="m2", campaign="C1", ad_group="AG2"),
            make_pk("trading", keyword_id="t1", campaign="C1", ad_group="AG1"),
            make_pk("trading", keyword_id="t2", campaign="C1", ad_group="AG3"),
            make_pk("bitcoin", keyword_id="b1", campaign="C1", ad_group="AG1"),
            make_pk("bitcoin price", keyword_id="b2", campaign="C1", ad_group="AG2"),
            make_pk("gold", keyword_id="g1", campaign="C1", ad_group="AG1"),
            make_pk("gold chart", keyword_id="g2", campaign="C1", ad_group="AG1"),
            make_pk("etoro", keyword_id="c1", campaign="C1", ad_group="AG1"),
            make_pk("etoro", keyword_id="c2", campaign="C1", ad_group="AG2"),
            make_pk("free forex signals", keyword_id="n1", campaign="C1", ad_group="AG1"),
            make_pk("free forex signals", keyword_id="n2", campaign="C1", ad_group="AG2"),
        ]
        metrics = {
            "m1": _m(200.0, clicks=50),
            "m2": _m(150.0, clicks=30),
            "t1": _m(20.0, clicks=150),
            "t2": _m(20.0, clicks=100),
            "b1": _m(10.0, clicks=5),
            "b2": _m(10.0, clicks=5),
            "g1": _m(400.0, clicks=250),
            "g2": _m(50.0, clicks=20),
            "c1": _m(800.0, clicks=400),
            "c2": _m(800.0, clicks=400),
            "n1": _m(800.0, clicks=400),
            "n2": _m(800.0, clicks=400),
        }
        return keywords, metrics

    def test_themes_kept(self, batch):
        proposals = propose_new_ad_groups(*batch)
        assert [p.name for p in proposals] == [
            "AG | money_intent | open account",
            "AG | generic | trading",
        ]

    def test_proposal_details(self, batch):
        money = propose_new_ad_groups(*batch)[0]
        assert money.category is Category.MONEY_INTENT
        assert money.anchor == "open account"
        assert money.keyword_ids == ("m1", "m2")
        assert money.source_ad_groups == ("C1 / AG1", "C1 / AG2")
        assert money.spend == 350.0
        assert money.clicks == 80
        assert money.notes == "2 keywords from 2 ad groups"

    def test_click_floor_alone_is_enough(self, batch):
        trading = propose_new_ad_groups(*batch)[1]
        assert trading.spend == 40.0
        assert trading.clicks == 250

    def test_floors_from_config(self, batch):
        config = InsightsConfig(new_ad_group_min_cost=0, new_ad_group_min_clicks=0)
        names = {p.name for p in propose_new_ad_groups(*batch, config=config)}
        assert "AG | generic | bitcoin" in names
        # single source ad group is never enough
        assert "AG | generic | gold" not in names

    def test_safeguarded_and_no_money_excluded(self, batch):
        categories = {p.category for p in propose_new_ad_groups(*batch)}
        assert Category.COMPETITOR not in categories
        assert Category.NO_MONEY_INTENT not in categories

    def test_to_dict(self, batch):
        out = propose_new_ad_groups(*batch)[0].to_dict()
        assert out["category"] == "money_intent"
        assert out["keyword_ids"] == ["m1", "m2"]

"""
Unit tests for the leakage suggester.
"""
import pytest

from keyword_intel.insights.leakage import candidate_text, suggest_leakage, suggested_scope
from keyword_intel.models.engine_io import KeywordMetrics, LeakageSuggestion
from keyword_intel.models.taxonomy import Category, SuggestionScope, SuggestionStatus


class TestCandidateText:
    def test_shortest_match_of_final_category(self, make_pk):
        assert candidate_text(make_pk("free forex signals no deposit")) == "free"

    def test_leftmost_on_ties(self, make_pk):
        # both single-token no-money matches
        assert candidate_text(make_pk("فلوس مجانا")) == "فلوس"

    @pytest.mark.parametrize("text, expected", [
        ("forex trading", "forex trading"),
        ("forex gold", "forex gold"),
        ("forex news trading", "forex news trading"),
    ])
    def test_generic_span_covers_every_generic_match(self, make_pk, text, expected):
        assert candidate_text(make_pk(text)) == expected

    def test_arabic(self, make_pk):
        assert candidate_text(make_pk("تداول الفوركس مجانا")) == "مجانا"

    def test_unmatched_generic_drops_stopwords(self, make_pk):
        assert candidate_text(make_pk("weather for the weekend")) == "weather weekend"

    def test_only_stopwords_falls_back_to_term(self, make_pk):
        assert candidate_text(make_pk("and the or")) == "and the or"

    def test_empty(self, make_pk):
        assert candidate_text(make_pk("")) is None


class TestScope:
    def test_no_money_campaign(self, make_pk):
        pk = make_pk("free signals", campaign="C1", ad_group="AG1")
        assert suggested_scope(pk) == (SuggestionScope.CAMPAIGN, "C1")

    def test_generic_ad_group(self, make_pk):
        pk = make_pk("forex", campaign="C1", ad_group="AG1")
        assert suggested_scope(pk) == (SuggestionScope.AD_GROUP, "AG1")

    def test_generic_widens_to_campaign(self, make_pk):
        assert suggested_scope(make_pk("forex", campaign="C1")) == (SuggestionScope.CAMPAIGN, "C1")

    def test_widens_to_account(self, make_pk):
        assert suggested_scope(make_pk("free")) == (SuggestionScope.ACCOUNT, None)


class TestSuggestLeakage:
    @pytest.fixture
    def no_money_pk(self, make_pk):
        return make_pk("free forex signals", keyword_id="k1", campaign="C1", ad_group="AG1")

    def test_creates_one_pending(self, no_money_pk, wasted_metrics):
        queue = suggest_leakage([no_money_pk], {"k1": wasted_metrics}, min_clicks=25)
        assert len(queue) == 1
        s = queue[0]
        assert s.status is SuggestionStatus.PENDING
        assert s.candidate_text == "free"
        assert s.category is Category.NO_MONEY_INTENT
        assert s.suggested_scope is SuggestionScope.CAMPAIGN
        assert s.scope_target == "C1"
        assert s.evidence_keyword_ids == ("k1",)
        assert s.evidence_cost == 120.0
        assert s.evidence_clicks == 40

    def test_rerun_does_not_duplicate(self, no_money_pk, wasted_metrics):
        first = suggest_leakage([no_money_pk], {"k1": wasted_metrics}, min_clicks=25)
        second = suggest_leakage([no_money_pk], {"k1": wasted_metrics}, first, min_clicks=25)
        assert second == first

    def test_new_evidence_merged_into_pending(self, make_pk, no_money_pk, wasted_metrics):
        first = suggest_leakage([no_money_pk], {"k1": wasted_metrics}, min_clicks=25)
        other = make_pk("free gold", keyword_id="k2", campaign="C1")
        second = suggest_leakage([other], {"k2": wasted_metrics}, first, min_clicks=25)
        assert len(second) == 1
        assert second[0].evidence_keyword_ids == ("k1", "k2")
        assert second[0].evidence_clicks == 80
        # inputs untouched
        assert first[0].evidence_keyword_ids == ("k1",)

    @pytest.mark.parametrize("status", [SuggestionStatus.DISMISSED, SuggestionStatus.ACCEPTED])
    def test_reviewed_never_reopened(self, make_pk, no_money_pk, wasted_metrics, status):
        first = suggest_leakage([no_money_pk], {"k1": wasted_metrics}, min_clicks=25)
        reviewed = [first[0].mark(status)]
        other = make_pk("free gold", keyword_id="k2", campaign="C1")
        queue = suggest_leakage([other], {"k2": wasted_metrics}, reviewed, min_clicks=25)
        assert queue == reviewed

    def test_same_text_different_campaign_is_separate(self, make_pk, wasted_metrics):
        a = make_pk("free gold", keyword_id="a", campaign="C1")
        b = make_pk("free gold", keyword_id="b", campaign="C2")
        queue = suggest_leakage([a, b], {"a": wasted_metrics, "b": wasted_metrics}, min_clicks=25)
        assert [s.scope_target for s in queue] == ["C1", "C2"]

    @pytest.mark.parametrize("metrics", [
        None,
        KeywordMetrics(clicks=10, cost=120.0, conversions=0),
        KeywordMetrics(clicks=40, cost=120.0, conversions=1),
        KeywordMetrics(clicks=40, cost=0.0, conversions=0),
    ])
    def test_non_qualifying_metrics(self, no_money_pk, metrics):
        lookup = {} if metrics is None else {"k1": metrics}
        assert suggest_leakage([no_money_pk], lookup, min_clicks=25) == []

    @pytest.mark.parametrize("text", ["open account", "etoro", "cfi", "dubai", "forex course"])
    def test_other_categories_ignored(self, make_pk, wasted_metrics, text):
        pk = make_pk(text, keyword_id="k1", campaign="C1")
        assert suggest_leakage([pk], {"k1": wasted_metrics}, min_clicks=25) == []

    def test_generic_keyword(self, make_pk, wasted_metrics):
        pk = make_pk("forex trading", keyword_id="g1", campaign="C1", ad_group="AG1")
        queue = suggest_leakage([pk], {"g1": wasted_metrics}, min_clicks=25)
        assert len(queue) == 1
        assert queue[0].candidate_text == "forex trading"
        assert queue[0].suggested_scope is SuggestionScope.AD_GROUP

    def test_existing_first_then_new(self, make_pk, wasted_metrics):
        existing = [LeakageSuggestion(
            candidate_text="bitcoin",
            suggested_scope=SuggestionScope.ACCOUNT,
            category=Category.GENERIC,
            evidence_keyword_ids=("old",),
        )]
        pk = make_pk("free", keyword_id="k1", campaign="C1")
        queue = suggest_leakage([pk], {"k1": wasted_metrics}, existing, min_clicks=25)
        assert [s.candidate_text for s in queue] == ["bitcoin", "free"]

    def test_existing_text_matched_after_normalization(self, make_pk, wasted_metrics):
        existing = [LeakageSuggestion(
            candidate_text="Free",
            suggested_scope=SuggestionScope.CAMPAIGN,
            scope_target="C1",
            category=Category.NO_MONEY_INTENT,
            evidence_keyword_ids=("old",),
        )]
        pk = make_pk("free gold", keyword_id="k1", campaign="C1")
        queue = suggest_leakage([pk], {"k1": wasted_metrics}, existing, min_clicks=25)
        assert len(queue) == 1
        assert queue[0].candidate_text == "free"
        assert queue[0].evidence_keyword_ids == ("old", "k1")

    def test_default_min_clicks_from_settings(self, no_money_pk, monkeypatch):
        from keyword_intel.config import settings
        monkeypatch.setattr(settings, "LEAKAGE_MIN_CLICKS", 100)
        metrics = {"k1": KeywordMetrics(clicks=40, cost=120.0, conversions=0)}
        assert suggest_leakage([no_money_pk], metrics) == []


class TestSuggestionModel:
    def test_mark_returns_copy(self):
        s = LeakageSuggestion(
            candidate_text="free",
            suggested_scope=SuggestionScope.CAMPAIGN,
            scope_target="C1",
            category=Category.NO_MONEY_INTENT,
        )
        accepted = s.mark(SuggestionStatus.ACCEPTED)
        assert accepted.status is SuggestionStatus.ACCEPTED
        assert s.status is SuggestionStatus.PENDING

    def test_duplicate_evidence_ids_rejected(self):
        with pytest.raises(ValueError):
            LeakageSuggestion(
                candidate_text="free",
                suggested_scope=SuggestionScope.ACCOUNT,
                category=Category.NO_MONEY_INTENT,
                evidence_keyword_ids=("k1", "k1"),
            )

    @pytest.mark.parametrize("raw, expected", [
        ("  Free!! ", "free"),
        ("No   Deposit", "no deposit"),
        ("مجاناً", "مجانا"),
    ])
    def test_candidate_text_stored_normalized(self, raw, expected):
        s = LeakageSuggestion(
            candidate_text=raw,
            suggested_scope=SuggestionScope.ACCOUNT,
            category=Category.NO_MONEY_INTENT,
        )
        assert s.candidate_text == expected

    def test_candidate_text_without_content_rejected(self):
        with pytest.raises(ValueError):
            LeakageSuggestion(
                candidate_text="!!!",
                suggested_scope=SuggestionScope.ACCOUNT,
                category=Category.NO_MONEY_INTENT,
            )

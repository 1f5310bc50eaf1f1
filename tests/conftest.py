"""
Shared test fixtures for the keyword intelligence test suite.
"""
import pytest

from keyword_intel.classification.classifier import classify
from keyword_intel.dictionary.repository import InMemorySnapshotRepository
from keyword_intel.dictionary.system_dictionary import build_seed_snapshot
from keyword_intel.models.dictionary import CustomRule, LiteralPattern, PhrasePattern
from keyword_intel.models.engine_io import KeywordMetrics
from keyword_intel.models.taxonomy import ActionType, Category, RuleScope
from keyword_intel.normalization.normalizer import normalize


# ==========================================================================
# Snapshots & repositories
# ==========================================================================

@pytest.fixture
def seed_snapshot():
    return build_seed_snapshot()


@pytest.fixture
def repository(seed_snapshot):
    return InMemorySnapshotRepository([seed_snapshot])


@pytest.fixture
def demo_account_rule():
    """Account rule: 'demo account' is money intent for the whole account."""
    return CustomRule(
        rule_id="R-DEMO",
        pattern=PhrasePattern(("demo", "account")),
        version_id=2,
        category_override=Category.MONEY_INTENT,
        priority=1,
    )


@pytest.fixture
def gold_isolate_rule():
    """Entity rule for ENT-GCC: isolate anything mentioning 'gold'."""
    return CustomRule(
        rule_id="R-GOLD",
        pattern=LiteralPattern("gold"),
        version_id=2,
        action_override=ActionType.ISOLATE,
        scope=RuleScope.ENTITY,
        entity_id="ENT-GCC",
    )


@pytest.fixture
def ruled_snapshot(seed_snapshot, demo_account_rule, gold_isolate_rule):
    return seed_snapshot.extend(2, rules=(demo_account_rule, gold_isolate_rule))


# ==========================================================================
# Processed keywords
# ==========================================================================

@pytest.fixture
def make_pk(seed_snapshot):
    """Factory: classify raw text against the seed snapshot."""

    def _make(text, keyword_id="kw-1", snapshot=None, **context):
        return classify(
            normalize(text),
            snapshot or seed_snapshot,
            keyword_id=keyword_id,
            **context,
        )

    return _make


# ==========================================================================
# Metrics
# ==========================================================================

@pytest.fixture
def wasted_metrics():
    """Clicks and spend, no conversions (leakage-qualifying)."""
    return KeywordMetrics(impressions=900, clicks=40, cost=120.0, conversions=0)


@pytest.fixture
def expensive_metrics():
    """Spend above the default threshold, no conversions."""
    return KeywordMetrics(impressions=5000, clicks=200, cost=500.0, conversions=0)


@pytest.fixture
def converting_metrics():
    return KeywordMetrics(impressions=1000, clicks=50, cost=300.0, conversions=6, conversion_value=1800.0)


# ==========================================================================
# Redis stub
# ==========================================================================

class InMemoryRedis:
    """Minimal in-memory Redis stub (no server required)."""

    def __init__(self):
        self._store: dict = {}
        self._lists: dict = {}

    def set(self, key, value, nx=False, **kwargs):  # noqa: ARG002
        if nx and key in self._store:
            return None
        self._store[key] = value
        return True

    def get(self, key):
        return self._store.get(key)

    def rpush(self, key, *values):
        self._lists.setdefault(key, []).extend(str(v) for v in values)
        return len(self._lists[key])

    def lrange(self, key, start, end):
        items = self._lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]


@pytest.fixture
def redis_stub():
    return InMemoryRedis()

"""
Prometheus Metrics — engine observability.

Exposes counters and histograms for:
- Keywords classified, by final category
- Decisions emitted, by action (safeguard triggers counted separately)
- Leakage suggestions created, by scope
- Snapshot load failures, by reason
- Batch stage latency

Usage
-----
    from keyword_intel.insights.metrics import record_decision, timed_stage

    with timed_stage("classify"):
        processed = [classify_keyword(k, snapshot) for k in keywords]

    record_decision(decision.action)
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

KEYWORDS_CLASSIFIED: Counter = Counter(
    "kwintel_keywords_classified_total",
    "Keywords classified, by final category",
    ["category"],
)

DECISIONS: Counter = Counter(
    "kwintel_decisions_total",
    "Action decisions emitted, by action",
    ["action"],
)

SAFEGUARD_TRIGGERS: Counter = Counter(
    "kwintel_safeguard_triggers_total",
    "Decisions forced to manual review by the competitor/education safeguard",
    ["category"],
)

LEAKAGE_SUGGESTIONS: Counter = Counter(
    "kwintel_leakage_suggestions_total",
    "New negative-keyword suggestions created, by scope",
    ["scope"],
)

SNAPSHOT_FAILURES: Counter = Counter(
    "kwintel_snapshot_failures_total",
    "Snapshot loads that raised SnapshotUnavailable, by reason",
    ["reason"],
)

STAGE_LATENCY: Histogram = Histogram(
    "kwintel_stage_processing_seconds",
    "Processing time per batch stage in seconds",
    ["stage"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------

def record_classification(category: str) -> None:
    """Increment the classified-keyword counter for *category*."""
    KEYWORDS_CLASSIFIED.labels(category=getattr(category, "value", category)).inc()


def record_decision(action: str) -> None:
    """Increment the decision counter for *action*."""
    DECISIONS.labels(action=getattr(action, "value", action)).inc()


def record_safeguard(category: str) -> None:
    SAFEGUARD_TRIGGERS.labels(category=getattr(category, "value", category)).inc()


def record_suggestion(scope: str) -> None:
    LEAKAGE_SUGGESTIONS.labels(scope=getattr(scope, "value", scope)).inc()


def record_snapshot_failure(reason: str) -> None:
    """Increment the snapshot failure counter for *reason*."""
    SNAPSHOT_FAILURES.labels(reason=reason).inc()


@contextmanager
def timed_stage(stage: str) -> Generator[None, None, None]:
    """
    Context manager that records batch stage latency.

    Usage::

        with timed_stage("decide"):
            decisions = [decide(pk, m, rules) for pk, m in pairs]
    """
    with STAGE_LATENCY.labels(stage=stage).time():
        yield

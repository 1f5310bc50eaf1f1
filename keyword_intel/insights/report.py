"""
Reporting aggregates — category KPIs, opportunity scores and the executive brief.

Opportunity score (per keyword, min-max normalized within its category):
    category has conversions: 0.4·CTR + 0.4·CVR + 0.2·(1/CPA)
    otherwise:                0.8·CTR + 0.1

A dimension with no spread normalizes to 0.5; a keyword without conversions
gets 0.5 on the inverse-CPA dimension. Scores are rounded to 2 decimals.
Keywords without metrics count as zero in KPIs and get no score.
"""
import logging
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from keyword_intel.config import settings
from keyword_intel.config.constants import CATEGORY_PRECEDENCE
from keyword_intel.models.engine_io import (
    ActionDecision,
    KeywordMetrics,
    LeakageSuggestion,
)
from keyword_intel.models.keyword import ProcessedKeyword
from keyword_intel.models.taxonomy import ActionType, Category, SuggestionStatus

logger = logging.getLogger(__name__)

_ZERO = KeywordMetrics()
_RANK = {c: i for i, c in enumerate(CATEGORY_PRECEDENCE)}

# Weights
W_CTR: float = 0.4
W_CVR: float = 0.4
W_INV_CPA: float = 0.2
W_CTR_ONLY: float = 0.8
NEUTRAL: float = 0.5


def metrics_matrix(
    keywords: Sequence[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
) -> np.ndarray:
    """Rows: keywords. Columns: impressions, clicks, cost, conversions."""
    rows = []
    for pk in keywords:
        m = metrics.get(pk.keyword_id, _ZERO)
        rows.append((m.impressions, m.clicks, m.cost, m.conversions))
    return np.array(rows, dtype=float).reshape(-1, 4)


def _by_category(keywords: Sequence[ProcessedKeyword]) -> Dict[Category, List[ProcessedKeyword]]:
    groups: Dict[Category, List[ProcessedKeyword]] = {}
    for pk in keywords:
        groups.setdefault(pk.final_category, []).append(pk)
    return groups


def _safe_ratio(num: np.ndarray, den: np.ndarray, default: float) -> np.ndarray:
    out = np.full(num.shape, default, dtype=float)
    np.divide(num, den, out=out, where=den > 0)
    return out


def _minmax(values: np.ndarray) -> np.ndarray:
    lo, hi = float(values.min()), float(values.max())
    if hi <= lo:
        return np.full(values.shape, NEUTRAL)
    return (values - lo) / (hi - lo)


# ======================================================================
# Category KPIs
# ======================================================================

def compute_category_kpis(
    keywords: Sequence[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
) -> List[dict]:
    """
    Spend, clicks, conversions, impressions, CPA, CTR and share of spend per
    final category, sorted by spend descending (precedence order on ties).
    """
    if not keywords:
        return []

    total_spend = float(metrics_matrix(keywords, metrics)[:, 2].sum())
    results = []
    for category, group in _by_category(keywords).items():
        impressions, clicks, spend, conversions = metrics_matrix(group, metrics).sum(axis=0)
        results.append({
            "category": category.value,
            "keywords": len(group),
            "spend": round(float(spend), 2),
            "clicks": int(clicks),
            "conversions": float(conversions),
            "impressions": int(impressions),
            "cpa": round(float(spend / conversions), 2) if conversions > 0 else None,
            "ctr": round(float(clicks / impressions), 4) if impressions > 0 else 0.0,
            "percent_of_spend": round(float(spend / total_spend * 100), 2) if total_spend > 0 else 0.0,
        })

    rank = {c.value: i for i, c in enumerate(CATEGORY_PRECEDENCE)}
    return sorted(results, key=lambda r: (-r["spend"], rank[r["category"]]))


# ======================================================================
# Opportunity scores
# ======================================================================

def compute_opportunity_scores(
    keywords: Sequence[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
) -> Dict[str, Optional[float]]:
    """
    keyword_id → opportunity score in [0, 1], or None when metrics are missing.
    """
    scores: Dict[str, Optional[float]] = {pk.keyword_id: None for pk in keywords}

    for category, group in _by_category(keywords).items():
        scored = [pk for pk in group if pk.keyword_id in metrics]
        if not scored:
            continue
        impressions, clicks, cost, conversions = metrics_matrix(scored, metrics).T

        ctr = _safe_ratio(clicks, impressions, 0.0)
        cvr = _safe_ratio(conversions, clicks, 0.0)
        norm_ctr = _minmax(ctr)

        if conversions.sum() > 0:
            norm_cvr = _minmax(cvr)
            has_cpa = conversions > 0
            cpa = _safe_ratio(cost, conversions, 0.0)
            norm_inv_cpa = np.full(cpa.shape, NEUTRAL)
            if has_cpa.any():
                lo, hi = float(cpa[has_cpa].min()), float(cpa[has_cpa].max())
                if hi > lo:
                    norm_inv_cpa[has_cpa] = 1.0 - (cpa[has_cpa] - lo) / (hi - lo)
            raw = W_CTR * norm_ctr + W_CVR * norm_cvr + W_INV_CPA * norm_inv_cpa
        else:
            raw = W_CTR_ONLY * norm_ctr + (1.0 - W_CTR_ONLY) * NEUTRAL

        for pk, score in zip(scored, np.round(raw, 2)):
            scores[pk.keyword_id] = float(score)

        logger.debug("Scored %d %s keywords", len(scored), category.value)

    return scores


# ======================================================================
# Executive brief
# ======================================================================

def _worst_cpa_category(kpis: Sequence[dict], min_spend: float) -> Optional[dict]:
    """
    Category with the worst CPA among those spending at least *min_spend*.

    Spend without conversions is the worst case (cpa None); among several such
    categories the biggest spender wins.
    """
    eligible = [k for k in kpis if k["spend"] >= min_spend and k["spend"] > 0]
    if not eligible:
        return None
    worst = max(
        eligible,
        key=lambda k: (k["cpa"] is None, k["cpa"] or 0.0, k["spend"]),
    )
    return {"category": worst["category"], "spend": worst["spend"], "cpa": worst["cpa"]}


def _largest_leakage_source(suggestions: Sequence[LeakageSuggestion]) -> Optional[dict]:
    """Category with the most evidence cost across suggestions that are not dismissed."""
    totals: Dict[Category, List[float]] = {}
    for s in suggestions:
        if s.status is SuggestionStatus.DISMISSED:
            continue
        count_cost = totals.setdefault(s.category, [0, 0.0])
        count_cost[0] += 1
        count_cost[1] += s.evidence_cost
    if not totals:
        return None
    category, (count, cost) = max(totals.items(), key=lambda kv: (kv[1][1], -_RANK[kv[0]]))
    return {"category": category.value, "count": int(count), "cost": round(float(cost), 2)}


def build_brief(
    keywords: Sequence[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
    decisions: Sequence[ActionDecision],
    suggestions: Sequence[LeakageSuggestion] = (),
    *,
    moves: Sequence = (),
    proposals: Sequence = (),
    worst_cpa_min_spend: Optional[float] = None,
) -> dict:
    """
    Batch-level summary for account managers.

    Wasted spend is the cost behind ADD_NEGATIVE decisions. ``moves`` and
    ``proposals`` come from the structure report and are only counted here.
    """
    if worst_cpa_min_spend is None:
        worst_cpa_min_spend = settings.WORST_CPA_MIN_SPEND

    kpis = compute_category_kpis(keywords, metrics)
    cost_by_id = {pk.keyword_id: metrics.get(pk.keyword_id, _ZERO).cost for pk in keywords}

    action_counts = Counter(d.action.value for d in decisions)
    wasted = sum(
        cost_by_id.get(d.keyword_id, 0.0)
        for d in decisions
        if d.action is ActionType.ADD_NEGATIVE
    )

    return {
        "total_keywords": len(keywords),
        "total_spend": round(sum(k["spend"] for k in kpis), 2),
        "total_conversions": float(sum(k["conversions"] for k in kpis)),
        "top_categories_by_spend": [
            {"category": k["category"], "spend": k["spend"]} for k in kpis[:3]
        ],
        "top_categories_by_conversions": [
            {"category": k["category"], "conversions": k["conversions"]}
            for k in sorted(kpis, key=lambda k: -k["conversions"])[:3]
        ],
        "action_counts": {a.value: action_counts.get(a.value, 0) for a in ActionType},
        "safeguard_count": sum(1 for d in decisions if d.safeguard_triggered),
        "estimated_wasted_spend": round(float(wasted), 2),
        "pending_suggestions": sum(1 for s in suggestions if s.status is SuggestionStatus.PENDING),
        "worst_cpa_category": _worst_cpa_category(kpis, worst_cpa_min_spend),
        "largest_leakage_source": _largest_leakage_source(suggestions),
        "move_recommendations": len(moves),
        "proposed_ad_groups": len(proposals),
    }

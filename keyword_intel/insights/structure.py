"""
Account structure — ad-group purity, move recommendations and proposed ad groups.

Ad-group stats (grouped by campaign and ad group, "Unmapped" when absent):
    dominant category = highest spend (keyword count, then precedence on ties)
    purity            = dominant spend / total spend (1.0 without spend)
    status            = purity < restructure ⇒ NEEDS_RESTRUCTURE
                        purity < ok          ⇒ IMPROVE_WITH_NEGATIVES
                        otherwise            ⇒ OK

Move recommendations cover MOVE / ISOLATE decisions with spend at or above
``move_min_cost``. Proposed ad groups gather non-safeguarded, money-bearing
keywords sharing a category and anchor phrase across at least two ad groups.

Everything here is read-only reporting: nothing is moved or created.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from keyword_intel.config.constants import CATEGORY_PRECEDENCE, SAFEGUARDED_CATEGORIES
from keyword_intel.insights.actions import InsightsConfig
from keyword_intel.insights.report import metrics_matrix
from keyword_intel.models.engine_io import ActionDecision, KeywordMetrics
from keyword_intel.models.keyword import ProcessedKeyword
from keyword_intel.models.taxonomy import ActionType, AdGroupStatus, Category

logger = logging.getLogger(__name__)

UNMAPPED = "Unmapped"
NEW_CAMPAIGN = "New Campaign"

_RANK = {c: i for i, c in enumerate(CATEGORY_PRECEDENCE)}


@dataclass(frozen=True)
class AdGroupStats:
    campaign: Optional[str]
    ad_group: str
    keywords: int
    spend: float
    clicks: int
    conversions: float
    impressions: int
    cpa: Optional[float]
    ctr: float
    dominant_category: Category
    purity: float
    status: AdGroupStatus

    def to_dict(self) -> dict:
        out = asdict(self)
        out["dominant_category"] = self.dominant_category.value
        out["status"] = self.status.value
        return out


@dataclass(frozen=True)
class MoveRecommendation:
    keyword_id: str
    keyword: str
    action: ActionType
    category: Category
    current_campaign: Optional[str]
    current_ad_group: Optional[str]
    proposed_campaign: str
    proposed_ad_group: str
    cost: float
    rationale: str

    def to_dict(self) -> dict:
        out = asdict(self)
        out["action"] = self.action.value
        out["category"] = self.category.value
        return out


@dataclass(frozen=True)
class ProposedAdGroup:
    name: str
    category: Category
    anchor: str
    keyword_ids: Tuple[str, ...]
    source_ad_groups: Tuple[str, ...]
    spend: float
    clicks: int
    conversions: float
    notes: str

    def to_dict(self) -> dict:
        out = asdict(self)
        out["category"] = self.category.value
        out["keyword_ids"] = list(self.keyword_ids)
        out["source_ad_groups"] = list(self.source_ad_groups)
        return out


def anchor_phrase(pk: ProcessedKeyword) -> str:
    """Shortest match of the final category (leftmost on ties), else the normalized term."""
    own = [m for m in pk.matches if m.category is pk.final_category]
    if not own:
        return pk.term.normalized
    best = min(own, key=lambda m: (m.span_length(), m.start))
    return pk.phrase(best.span)


def ad_group_name(category: Category, anchor: str) -> str:
    return f"AG | {category.value} | {anchor}"


def _placement(pk: ProcessedKeyword) -> Tuple[Optional[str], str]:
    return pk.campaign, pk.ad_group or UNMAPPED


def _status(purity: float, config: InsightsConfig) -> AdGroupStatus:
    if purity < config.purity_restructure:
        return AdGroupStatus.NEEDS_RESTRUCTURE
    if purity < config.purity_ok:
        return AdGroupStatus.IMPROVE_WITH_NEGATIVES
    return AdGroupStatus.OK


# ======================================================================
# Ad-group stats
# ======================================================================

def compute_ad_group_stats(
    keywords: Sequence[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
    config: Optional[InsightsConfig] = None,
) -> List[AdGroupStats]:
    """Per ad-group totals, dominant category and purity, sorted by spend descending."""
    config = config or InsightsConfig()

    groups: Dict[Tuple[Optional[str], str], List[ProcessedKeyword]] = {}
    for pk in keywords:
        groups.setdefault(_placement(pk), []).append(pk)

    results = []
    for (campaign, ad_group), group in groups.items():
        matrix = metrics_matrix(group, metrics)
        impressions, clicks, spend, conversions = matrix.sum(axis=0)

        categories = np.array([_RANK[pk.final_category] for pk in group])
        per_category = []
        for rank in np.unique(categories):
            mask = categories == rank
            per_category.append((float(matrix[mask, 2].sum()), int(mask.sum()), int(rank)))
        # highest spend, then most keywords, then precedence
        dom_spend, _, dom_rank = max(per_category, key=lambda t: (t[0], t[1], -t[2]))
        purity = dom_spend / spend if spend > 0 else 1.0

        results.append(AdGroupStats(
            campaign=campaign,
            ad_group=ad_group,
            keywords=len(group),
            spend=round(float(spend), 2),
            clicks=int(clicks),
            conversions=float(conversions),
            impressions=int(impressions),
            cpa=round(float(spend / conversions), 2) if conversions > 0 else None,
            ctr=round(float(clicks / impressions), 4) if impressions > 0 else 0.0,
            dominant_category=CATEGORY_PRECEDENCE[dom_rank],
            purity=round(float(purity), 4),
            status=_status(float(purity), config),
        ))

    results.sort(key=lambda s: -s.spend)
    logger.debug("Computed stats for %d ad groups", len(results))
    return results


# ======================================================================
# Move recommendations
# ======================================================================

def generate_move_recommendations(
    keywords: Sequence[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
    decisions: Sequence[ActionDecision],
    config: Optional[InsightsConfig] = None,
) -> List[MoveRecommendation]:
    """
    Target placement for every MOVE / ISOLATE decision spending at least
    ``config.move_min_cost``, sorted by cost descending.

    The proposed campaign is the keyword's own campaign ("New Campaign" when
    unknown); the proposed ad group is named after its category and anchor.
    """
    config = config or InsightsConfig()
    by_id = {pk.keyword_id: pk for pk in keywords}

    moves = []
    for decision in decisions:
        if decision.action not in (ActionType.MOVE, ActionType.ISOLATE):
            continue
        pk = by_id.get(decision.keyword_id)
        if pk is None:
            logger.warning("Decision for unknown keyword_id=%s skipped", decision.keyword_id)
            continue
        m = metrics.get(pk.keyword_id)
        cost = m.cost if m is not None else 0.0
        if cost < config.move_min_cost:
            continue
        moves.append(MoveRecommendation(
            keyword_id=pk.keyword_id,
            keyword=pk.term.normalized,
            action=decision.action,
            category=pk.final_category,
            current_campaign=pk.campaign,
            current_ad_group=pk.ad_group,
            proposed_campaign=pk.campaign or NEW_CAMPAIGN,
            proposed_ad_group=ad_group_name(pk.final_category, anchor_phrase(pk)),
            cost=round(float(cost), 2),
            rationale=decision.rationale,
        ))

    moves.sort(key=lambda mv: -mv.cost)
    return moves


# ======================================================================
# Proposed ad groups
# ======================================================================

def propose_new_ad_groups(
    keywords: Sequence[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
    config: Optional[InsightsConfig] = None,
) -> List[ProposedAdGroup]:
    """
    Dedicated ad groups for (category, anchor) themes scattered over two or
    more existing ad groups.

    A theme is dropped when it is below both the cost and the click floor.
    Safeguarded and NO_MONEY_INTENT keywords are never grouped.
    """
    config = config or InsightsConfig()

    themes: Dict[Tuple[Category, str], List[ProcessedKeyword]] = {}
    for pk in keywords:
        if pk.final_category in SAFEGUARDED_CATEGORIES or pk.final_category is Category.NO_MONEY_INTENT:
            continue
        if pk.term.is_empty:
            continue
        themes.setdefault((pk.final_category, anchor_phrase(pk)), []).append(pk)

    proposals = []
    for (category, anchor), group in themes.items():
        _, clicks, spend, conversions = metrics_matrix(group, metrics).sum(axis=0)
        if spend < config.new_ad_group_min_cost and clicks < config.new_ad_group_min_clicks:
            continue
        sources = sorted({
            f"{campaign} / {ad_group}" if campaign else ad_group
            for campaign, ad_group in (_placement(pk) for pk in group)
        })
        if len(sources) < 2:
            continue
        proposals.append(ProposedAdGroup(
            name=ad_group_name(category, anchor),
            category=category,
            anchor=anchor,
            keyword_ids=tuple(pk.keyword_id for pk in group),
            source_ad_groups=tuple(sources),
            spend=round(float(spend), 2),
            clicks=int(clicks),
            conversions=float(conversions),
            notes=f"{len(group)} keywords from {len(sources)} ad groups",
        ))

    proposals.sort(key=lambda p: (-p.spend, p.name))
    return proposals

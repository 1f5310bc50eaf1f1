"""
Leakage Suggester — reviewable negative-keyword candidates from wasted spend.

A keyword qualifies when:
    - final category is NO_MONEY_INTENT or GENERIC
    - metrics are present, clicks >= min_clicks, conversions == 0, cost > 0

Candidate text:
    - NO_MONEY_INTENT → the shortest no-money match (leftmost on ties)
    - GENERIC → the smallest span covering every generic match; unmatched
      keywords use their content tokens (stopwords removed), else the full
      normalized term

Scope (widened when the placement is unknown):
    NO_MONEY_INTENT → CAMPAIGN → ACCOUNT
    GENERIC         → AD_GROUP → CAMPAIGN → ACCOUNT

Suggestions are deduplicated by (candidate_text, scope, scope_target). The
engine never applies a negative; it only grows the review queue.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from keyword_intel.config import settings
from keyword_intel.config.constants import LEAKAGE_CATEGORIES, STOPWORDS_AR, STOPWORDS_EN
from keyword_intel.insights.metrics import record_suggestion
from keyword_intel.models.engine_io import KeywordMetrics, LeakageSuggestion
from keyword_intel.models.keyword import ProcessedKeyword
from keyword_intel.models.taxonomy import Category, Language, SuggestionScope, SuggestionStatus
from keyword_intel.normalization.normalizer import normalize

logger = logging.getLogger(__name__)

DedupKey = Tuple[str, SuggestionScope, Optional[str]]


def qualifies(pk: ProcessedKeyword, metrics: Optional[KeywordMetrics], min_clicks: int) -> bool:
    return (
        pk.final_category in LEAKAGE_CATEGORIES
        and metrics is not None
        and metrics.clicks >= min_clicks
        and metrics.conversions == 0
        and metrics.cost > 0
    )


def _stopwords(language: Language) -> Set[str]:
    if language is Language.AR:
        return STOPWORDS_AR
    if language is Language.MIXED:
        return STOPWORDS_AR | STOPWORDS_EN
    return STOPWORDS_EN


def candidate_text(pk: ProcessedKeyword) -> Optional[str]:
    """
    Negative-keyword text proposed for *pk*; None for an empty term.

    NO_MONEY_INTENT: the shortest no-money match, leftmost on ties.
    GENERIC: the smallest contiguous span covering every generic match
    ("forex trading" stays whole instead of shrinking to "forex"); without
    matches, the content tokens, else the full normalized term.
    """
    own = [m for m in pk.matches if m.category is pk.final_category]
    if own:
        if pk.final_category is Category.GENERIC:
            span = (min(m.start for m in own), max(m.end for m in own))
        else:
            span = min(own, key=lambda m: (m.span_length(), m.start)).span
        return normalize(pk.phrase(span)).normalized

    content = [tok for tok in pk.tokens if tok not in _stopwords(pk.term.language)]
    text = " ".join(content) if content else pk.term.normalized
    # Same canonical form LeakageSuggestion stores, so dedup keys line up
    return normalize(text).normalized or None


def suggested_scope(pk: ProcessedKeyword) -> Tuple[SuggestionScope, Optional[str]]:
    if pk.final_category is Category.GENERIC and pk.ad_group:
        return SuggestionScope.AD_GROUP, pk.ad_group
    if pk.campaign:
        return SuggestionScope.CAMPAIGN, pk.campaign
    return SuggestionScope.ACCOUNT, None


def suggest_leakage(
    keywords: Iterable[ProcessedKeyword],
    metrics: Mapping[str, KeywordMetrics],
    existing: Iterable[LeakageSuggestion] = (),
    *,
    min_clicks: Optional[int] = None,
) -> List[LeakageSuggestion]:
    """
    Merge leakage evidence from *keywords* into the review queue.

    Args:
        keywords: Processed keywords of one batch.
        metrics: keyword_id → KeywordMetrics (missing ids never qualify).
        existing: Current queue, as previously returned.
        min_clicks: Click floor; defaults to settings.LEAKAGE_MIN_CLICKS.

    Returns:
        The full queue: *existing* first (pending ones refreshed as copies
        with newly seen keyword ids, cost and clicks), then new PENDING
        suggestions in input order. Inputs are never mutated.
    """
    if min_clicks is None:
        min_clicks = settings.LEAKAGE_MIN_CLICKS

    queue: Dict[DedupKey, LeakageSuggestion] = {}
    for suggestion in existing:
        if suggestion.dedup_key in queue:
            logger.warning("Duplicate suggestion in existing queue ignored: %s", suggestion.dedup_key)
            continue
        queue[suggestion.dedup_key] = suggestion

    created = 0
    for pk in keywords:
        m = metrics.get(pk.keyword_id)
        if not qualifies(pk, m, min_clicks):
            continue
        text = candidate_text(pk)
        if text is None:
            continue
        scope, target = suggested_scope(pk)
        key = (text, scope, target)
        current = queue.get(key)

        if current is None:
            queue[key] = LeakageSuggestion(
                candidate_text=text,
                evidence_keyword_ids=(pk.keyword_id,),
                suggested_scope=scope,
                scope_target=target,
                category=pk.final_category,
                evidence_cost=m.cost,
                evidence_clicks=m.clicks,
            )
            created += 1
            record_suggestion(scope)
        elif current.status is SuggestionStatus.PENDING and pk.keyword_id not in current.evidence_keyword_ids:
            queue[key] = current.model_copy(
                update={
                    "evidence_keyword_ids": current.evidence_keyword_ids + (pk.keyword_id,),
                    "evidence_cost": current.evidence_cost + m.cost,
                    "evidence_clicks": current.evidence_clicks + m.clicks,
                }
            )

    logger.debug("Leakage queue: %d suggestions (%d new)", len(queue), created)
    return list(queue.values())

"""
Action Engine — exactly one account-hygiene action per processed keyword.

Canonical order (first step that fires wins):
    1. Safeguard: COMPETITOR / EDUCATION → REVIEW_MANUALLY (never overridable)
    2. NO_MONEY_INTENT                   → ADD_NEGATIVE
    3. Custom rule action_override       → that action
    4. MONEY_INTENT, cost > threshold, 0 conversions
                                         → ADJUST_LANDING_PAGE if the provider
                                           flagged a mismatch, else ADJUST_AD_COPY
    5. BRAND, not isolated               → MOVE
    6. GEO, not isolated                 → ISOLATE
    7. Otherwise                         → NO_ACTION

``decide`` is pure: no I/O, no logging, no clock. The rationale names the
step that fired so every decision is auditable.
"""
from dataclasses import dataclass, field
from typing import Iterable, Optional

from keyword_intel.classification.classifier import pattern_matches
from keyword_intel.classification.overlay import rule_rank
from keyword_intel.config import settings
from keyword_intel.config.constants import SAFEGUARDED_CATEGORIES
from keyword_intel.models.dictionary import CustomRule
from keyword_intel.models.engine_io import ActionDecision, KeywordMetrics
from keyword_intel.models.keyword import ProcessedKeyword
from keyword_intel.models.taxonomy import ActionType, Category


@dataclass(frozen=True)
class InsightsConfig:
    """Thresholds for the action engine, the leakage suggester and the structure report."""

    spend_threshold: float = field(default_factory=lambda: settings.SPEND_NO_CONVERSION_THRESHOLD)
    leakage_min_clicks: int = field(default_factory=lambda: settings.LEAKAGE_MIN_CLICKS)
    purity_ok: float = field(default_factory=lambda: settings.AD_GROUP_PURITY_OK)
    purity_restructure: float = field(default_factory=lambda: settings.AD_GROUP_PURITY_RESTRUCTURE)
    move_min_cost: float = field(default_factory=lambda: settings.MOVE_MIN_COST)
    new_ad_group_min_cost: float = field(default_factory=lambda: settings.NEW_AD_GROUP_MIN_COST)
    new_ad_group_min_clicks: int = field(default_factory=lambda: settings.NEW_AD_GROUP_MIN_CLICKS)
    worst_cpa_min_spend: float = field(default_factory=lambda: settings.WORST_CPA_MIN_SPEND)

    def __post_init__(self) -> None:
        for name in (
            "spend_threshold", "leakage_min_clicks", "move_min_cost",
            "new_ad_group_min_cost", "new_ad_group_min_clicks", "worst_cpa_min_spend",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        if not 0.0 <= self.purity_restructure <= self.purity_ok <= 1.0:
            raise ValueError(
                f"purity thresholds must satisfy 0 <= restructure <= ok <= 1, "
                f"got restructure={self.purity_restructure} ok={self.purity_ok}"
            )


def select_action_rule(
    pk: ProcessedKeyword,
    rules: Iterable[CustomRule],
) -> Optional[CustomRule]:
    """
    Winning action-override rule for *pk*, or None.

    Candidates: active, scope applies to the keyword's entity, carry an
    action_override, and their pattern hits the keyword's tokens. Winner by
    scope rank, then priority, then later version_id.
    """
    candidates = [
        r for r in rules
        if r.action_override is not None
        and r.applies_to(pk.entity_id)
        and pattern_matches(r.pattern, pk)
    ]
    if not candidates:
        return None
    return max(candidates, key=rule_rank)


def decide(
    pk: ProcessedKeyword,
    metrics: Optional[KeywordMetrics],
    rules: Iterable[CustomRule] = (),
    config: Optional[InsightsConfig] = None,
) -> ActionDecision:
    """
    Decide the single action for a processed keyword.

    Args:
        pk: Classifier output.
        metrics: Performance signals; None skips the spend heuristic.
        rules: Rules of the snapshot the keyword was classified against.
        config: Thresholds; defaults come from settings.

    Returns:
        ActionDecision stamped with the keyword's snapshot version.
    """
    config = config or InsightsConfig()
    category = pk.final_category

    def _decision(action: ActionType, rationale: str, safeguard: bool = False) -> ActionDecision:
        return ActionDecision(
            keyword_id=pk.keyword_id,
            action=action,
            rationale=rationale,
            safeguard_triggered=safeguard,
            decided_at_version_id=pk.version_id,
        )

    # 1. Safeguard
    if category in SAFEGUARDED_CATEGORIES:
        return _decision(
            ActionType.REVIEW_MANUALLY,
            f"safeguard: {category.value} keywords are never auto-actioned",
            safeguard=True,
        )

    # 2. No-money intent
    if category is Category.NO_MONEY_INTENT:
        return _decision(
            ActionType.ADD_NEGATIVE,
            "no_money_intent: searcher is not looking to transact",
        )

    # 3. Rule override
    rule = select_action_rule(pk, rules)
    if rule is not None:
        return _decision(
            rule.action_override,
            f"rule_override: rule {rule.rule_id} ({rule.scope.value}, "
            f"'{rule.pattern.describe()}') imposes {rule.action_override.value}",
        )

    # 4. Spend heuristic
    if (
        metrics is not None
        and category is Category.MONEY_INTENT
        and metrics.cost > config.spend_threshold
        and metrics.conversions == 0
    ):
        spend = f"cost {metrics.cost:.2f} > {config.spend_threshold:.2f} with 0 conversions"
        if metrics.landing_page_mismatch_flag is True:
            return _decision(
                ActionType.ADJUST_LANDING_PAGE,
                f"spend_heuristic: {spend}; landing page mismatch flagged",
            )
        return _decision(ActionType.ADJUST_AD_COPY, f"spend_heuristic: {spend}")

    # 5. Brand
    if category is Category.BRAND and not pk.is_isolated:
        return _decision(ActionType.MOVE, "brand: move to the dedicated brand campaign")

    # 6. Geo
    if category is Category.GEO and not pk.is_isolated:
        return _decision(ActionType.ISOLATE, "geo: isolate into a location-targeted ad group")

    # 7. Default
    suffix = " (already isolated)" if pk.is_isolated and category in (Category.BRAND, Category.GEO) else ""
    return _decision(ActionType.NO_ACTION, f"default: no rule applies to {category.value}{suffix}")

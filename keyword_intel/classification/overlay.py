"""
Overlay Resolution — effective pattern set for one keyword.

System entries of the keyword's language (both EN and AR for mixed-script
terms) are overlaid by active custom rules whose scope applies to the
keyword's entity. Candidates sharing a pattern key compete; the winner is
chosen by:

    1. Scope rank: entity (2) > account (1) > system (0)
    2. Higher priority
    3. Later version_id

Losers are kept on the winner as ``shadowed`` so the classifier can explain
why a dictionary term did not decide the category.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from keyword_intel.config.constants import RULE_SCOPE_RANK, SYSTEM_SCOPE_RANK
from keyword_intel.models.dictionary import CustomRule, DictionaryEntry, Pattern
from keyword_intel.models.snapshot import DictionarySnapshot
from keyword_intel.models.taxonomy import Category, EntrySource, Language


@dataclass(frozen=True)
class OverlayCandidate:
    """One pattern competing for a key, from a system entry or a custom rule."""

    pattern: Pattern
    category: Category
    source: EntrySource
    scope_rank: int
    priority: int
    version_id: int
    rule_id: Optional[str] = None
    shadowed: Tuple["OverlayCandidate", ...] = field(default=(), compare=False)

    @property
    def rank(self) -> Tuple[int, int, int]:
        return (self.scope_rank, self.priority, self.version_id)

    @property
    def origin(self) -> str:
        if self.rule_id is not None:
            return f"rule {self.rule_id}"
        return self.source.value.lower()

    def describe(self) -> str:
        return f"'{self.pattern.describe()}' → {self.category.value} ({self.origin})"


def rule_rank(rule: CustomRule) -> Tuple[int, int, int]:
    """Overlay rank of a custom rule; higher wins."""
    return (RULE_SCOPE_RANK[rule.scope], rule.priority, rule.version_id)


def applicable_rules(snapshot: DictionarySnapshot, entity_id: Optional[str]) -> List[CustomRule]:
    """Active rules of *snapshot* whose scope covers *entity_id*."""
    return [r for r in snapshot.rules if r.applies_to(entity_id)]


def _entry_candidate(entry: DictionaryEntry) -> OverlayCandidate:
    return OverlayCandidate(
        pattern=entry.pattern,
        category=entry.category,
        source=entry.source,
        scope_rank=SYSTEM_SCOPE_RANK,
        priority=0,
        version_id=entry.version_id,
    )


def _rule_candidate(rule: CustomRule) -> OverlayCandidate:
    scope_rank, priority, version_id = rule_rank(rule)
    return OverlayCandidate(
        pattern=rule.pattern,
        category=rule.category_override,
        source=EntrySource.CUSTOM,
        scope_rank=scope_rank,
        priority=priority,
        version_id=version_id,
        rule_id=rule.rule_id,
    )


def _pick_winners(candidates: Iterable[OverlayCandidate]) -> List[OverlayCandidate]:
    grouped: Dict[tuple, List[OverlayCandidate]] = {}
    for cand in candidates:
        grouped.setdefault(cand.pattern.key, []).append(cand)

    winners: List[OverlayCandidate] = []
    for group in grouped.values():
        # max() keeps the first of equal ranks, so input order breaks full ties
        best = max(group, key=lambda c: c.rank)
        losers = tuple(c for c in group if c is not best)
        if losers:
            best = OverlayCandidate(
                pattern=best.pattern,
                category=best.category,
                source=best.source,
                scope_rank=best.scope_rank,
                priority=best.priority,
                version_id=best.version_id,
                rule_id=best.rule_id,
                shadowed=losers,
            )
        winners.append(best)
    return winners


def effective_candidates(
    snapshot: DictionarySnapshot,
    language: Language,
    entity_id: Optional[str] = None,
) -> List[OverlayCandidate]:
    """
    Build the effective pattern set for a keyword.

    Args:
        snapshot: Pinned dictionary snapshot.
        language: Keyword language; UNKNOWN uses the EN entries, MIXED both.
        entity_id: Keyword's entity; selects entity-scoped rules.

    Returns:
        One winning candidate per pattern key, in first-seen order
        (system entries first, then rules).
    """
    candidates: List[OverlayCandidate] = [
        _entry_candidate(e) for e in snapshot.entries_for(language)
    ]
    candidates.extend(
        _rule_candidate(r)
        for r in applicable_rules(snapshot, entity_id)
        if r.category_override is not None
    )
    return _pick_winners(candidates)

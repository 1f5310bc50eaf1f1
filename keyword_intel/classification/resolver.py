"""
Deterministic Match Resolver.

Resolves overlapping dictionary matches with fixed rules:
1. A match overlapped by a strictly longer match is dropped
2. Among survivors, the category with the highest precedence wins:
   COMPETITOR > EDUCATION > NO_MONEY_INTENT > MONEY_INTENT > GEO > BRAND > GENERIC
3. No surviving match → GENERIC
"""
from typing import List, Sequence, Tuple

from keyword_intel.config.constants import CATEGORY_RANK
from keyword_intel.models.keyword import Match
from keyword_intel.models.taxonomy import Category


def _sort_key(m: Match) -> tuple:
    return (m.start, -m.end, CATEGORY_RANK[m.category], m.pattern_text)


def resolve_overlaps(matches: Sequence[Match]) -> Tuple[List[Match], List[Match]]:
    """
    Drop matches overlapped by a strictly longer match.

    Equal-length overlaps both survive; precedence settles them later.

    Returns:
        (survivors, dropped), each sorted by position.
    """
    ordered = sorted(matches, key=_sort_key)
    survivors: List[Match] = []
    dropped: List[Match] = []

    for match in ordered:
        longer = any(
            other.overlaps(match) and other.span_length() > match.span_length()
            for other in ordered
        )
        if longer:
            dropped.append(match)
        else:
            survivors.append(match)

    return survivors, dropped


def pick_category(survivors: Sequence[Match]) -> Category:
    """Highest-precedence category among *survivors*; GENERIC when empty."""
    if not survivors:
        return Category.GENERIC
    return min((m.category for m in survivors), key=lambda c: CATEGORY_RANK[c])

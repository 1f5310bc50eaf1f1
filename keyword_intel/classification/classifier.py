"""
Dictionary Matcher — assigns exactly one category to a normalized keyword.

Flow:
    1. Empty tokens → GENERIC ("empty input")
    2. Build the effective pattern set (system entries overlaid by rules)
    3. Record a Match for every span each winning pattern hits
    4. Drop matches overlapped by a strictly longer match
    5. Pick the highest-precedence category among survivors (GENERIC if none)

Every step appends a human-readable line to ``evidence``. The function is
pure: same term + same snapshot + same entity always yields the same
ProcessedKeyword.
"""
import logging
from typing import List, Optional

from keyword_intel.classification.overlay import effective_candidates
from keyword_intel.classification.patterns import find_spans, matches_any
from keyword_intel.classification.resolver import pick_category, resolve_overlaps
from keyword_intel.models.dictionary import Pattern
from keyword_intel.models.engine_io import KeywordInput
from keyword_intel.models.keyword import Match, NormalizedTerm, ProcessedKeyword
from keyword_intel.models.snapshot import DictionarySnapshot
from keyword_intel.models.taxonomy import Category, Language
from keyword_intel.normalization.normalizer import KeywordValidationError, normalize

logger = logging.getLogger(__name__)

EVIDENCE_EMPTY = "empty input"
EVIDENCE_UNKNOWN_LANGUAGE = "language unknown: matched against EN dictionary"
EVIDENCE_MIXED_LANGUAGE = "language mixed: matched against EN and AR dictionaries"
EVIDENCE_NO_MATCH = "no dictionary match: defaulted to generic"


def _match_for(candidate, span) -> Match:
    return Match(
        category=candidate.category,
        span=span,
        source=candidate.source,
        pattern_text=candidate.pattern.describe(),
        rule_id=candidate.rule_id,
    )


def classify(
    term: NormalizedTerm,
    snapshot: DictionarySnapshot,
    *,
    keyword_id: str = "",
    entity_id: Optional[str] = None,
    campaign: Optional[str] = None,
    ad_group: Optional[str] = None,
    is_isolated: bool = False,
) -> ProcessedKeyword:
    """
    Classify a normalized keyword against a pinned snapshot.

    Args:
        term: Output of ``normalize``.
        snapshot: Dictionary snapshot pinned by the caller.
        keyword_id: Caller's identifier, copied to the result.
        entity_id: Selects entity-scoped rules.
        campaign / ad_group / is_isolated: Placement context, copied through
            for the leakage suggester and action engine.

    Returns:
        ProcessedKeyword with surviving matches, final category and evidence.
    """
    evidence: List[str] = []

    def _result(matches, category: Category) -> ProcessedKeyword:
        return ProcessedKeyword(
            keyword_id=keyword_id,
            term=term,
            matches=tuple(matches),
            final_category=category,
            evidence=tuple(evidence),
            version_id=snapshot.version_id,
            entity_id=entity_id,
            campaign=campaign,
            ad_group=ad_group,
            is_isolated=is_isolated,
        )

    if term.is_empty:
        evidence.append(EVIDENCE_EMPTY)
        return _result((), Category.GENERIC)

    if term.language is Language.UNKNOWN:
        evidence.append(EVIDENCE_UNKNOWN_LANGUAGE)
    elif term.language is Language.MIXED:
        evidence.append(EVIDENCE_MIXED_LANGUAGE)

    # --- Match every winning pattern ---
    matches: List[Match] = []
    for candidate in effective_candidates(snapshot, term.language, entity_id):
        spans = find_spans(candidate.pattern, term.tokens)
        if not spans:
            continue
        for loser in candidate.shadowed:
            evidence.append(f"shadowed: {loser.describe()} by {candidate.origin}")
        matches.extend(_match_for(candidate, span) for span in spans)

    # --- Longest span, then precedence ---
    survivors, dropped = resolve_overlaps(matches)
    for m in dropped:
        evidence.append(
            f"dropped: '{m.pattern_text}' [{m.start},{m.end}] overlapped by a longer match"
        )
    for m in survivors:
        origin = f"rule {m.rule_id}" if m.rule_id else m.source.value.lower()
        evidence.append(
            f"match: '{m.pattern_text}' → {m.category.value} [{m.start},{m.end}] ({origin})"
        )

    category = pick_category(survivors)
    if survivors:
        beaten = sorted({m.category.value for m in survivors} - {category.value})
        if beaten:
            evidence.append(f"precedence: {category.value} over {', '.join(beaten)}")
    else:
        evidence.append(EVIDENCE_NO_MATCH)

    return _result(survivors, category)


def invalid_keyword(
    keyword_id: str,
    reason: str,
    snapshot: DictionarySnapshot,
    original: str = "",
    **context,
) -> ProcessedKeyword:
    """GENERIC placeholder for input that could not be normalized."""
    term = NormalizedTerm(original=original, normalized="", language=Language.UNKNOWN)
    return ProcessedKeyword(
        keyword_id=keyword_id,
        term=term,
        matches=(),
        final_category=Category.GENERIC,
        evidence=(f"invalid input: {reason}",),
        version_id=snapshot.version_id,
        **context,
    )


def classify_keyword(item: KeywordInput, snapshot: DictionarySnapshot) -> ProcessedKeyword:
    """Normalize then classify one KeywordInput; malformed text becomes GENERIC."""
    context = dict(
        entity_id=item.entity_id,
        campaign=item.campaign,
        ad_group=item.ad_group,
        is_isolated=item.is_isolated,
    )
    try:
        term = normalize(item.text, item.language_hint)
    except KeywordValidationError as exc:
        logger.warning("Keyword %s rejected by normalizer: %s", item.keyword_id, exc)
        return invalid_keyword(item.keyword_id, str(exc), snapshot, **context)
    return classify(term, snapshot, keyword_id=item.keyword_id, **context)


def pattern_matches(pattern: Pattern, pk: ProcessedKeyword) -> bool:
    """True if *pattern* hits any span of the keyword's tokens."""
    return matches_any(pattern, pk.tokens)

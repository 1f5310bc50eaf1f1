"""
NormalizedTerm, Match and ProcessedKeyword — per-keyword values produced by
the normalizer and the dictionary matcher.

All three are frozen: once a batch has produced them, only the caller owns
them, and identical inputs always compare equal.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

from keyword_intel.models.taxonomy import Category, EntrySource, Language


@dataclass(frozen=True)
class NormalizedTerm:
    """Canonical form of a raw keyword string."""

    original: str
    normalized: str
    language: Language
    tokens: Tuple[str, ...] = field(default=())

    @property
    def is_empty(self) -> bool:
        return not self.tokens


@dataclass(frozen=True)
class Match:
    """A dictionary entry or custom rule hitting a token span."""

    category: Category
    span: Tuple[int, int]       # half-open token indices [start, end)
    source: EntrySource
    pattern_text: str
    rule_id: Optional[str] = None

    @property
    def start(self) -> int:
        return self.span[0]

    @property
    def end(self) -> int:
        return self.span[1]

    def span_length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "Match") -> bool:
        return not (self.end <= other.start or other.end <= self.start)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "span": list(self.span),
            "source": self.source.value,
            "pattern_text": self.pattern_text,
            "rule_id": self.rule_id,
        }

    def __repr__(self) -> str:
        origin = self.rule_id or self.source.value
        return f"Match('{self.pattern_text}', {self.category.value}, [{self.start},{self.end}], {origin})"


@dataclass(frozen=True)
class ProcessedKeyword:
    """Classification outcome for one keyword against one pinned snapshot."""

    keyword_id: str
    term: NormalizedTerm
    matches: Tuple[Match, ...]
    final_category: Category
    evidence: Tuple[str, ...]
    version_id: int
    entity_id: Optional[str] = None
    campaign: Optional[str] = None
    ad_group: Optional[str] = None
    is_isolated: bool = False

    @property
    def tokens(self) -> Tuple[str, ...]:
        return self.term.tokens

    def phrase(self, span: Tuple[int, int]) -> str:
        """Join the normalized tokens covered by *span*."""
        return " ".join(self.term.tokens[span[0] : span[1]])

    def to_dict(self) -> dict:
        return {
            "keyword_id": self.keyword_id,
            "original": self.term.original,
            "normalized": self.term.normalized,
            "language": self.term.language.value,
            "tokens": list(self.term.tokens),
            "matches": [m.to_dict() for m in self.matches],
            "final_category": self.final_category.value,
            "evidence": list(self.evidence),
            "version_id": self.version_id,
            "entity_id": self.entity_id,
            "campaign": self.campaign,
            "ad_group": self.ad_group,
            "is_isolated": self.is_isolated,
        }

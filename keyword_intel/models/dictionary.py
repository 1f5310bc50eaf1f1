"""
Dictionary entries, custom rules and their closed Pattern variant.

Patterns are never free-form regexes: a rule matches either a single token
exactly (LiteralPattern), a contiguous token sequence exactly (PhrasePattern)
or a single token by prefix (PrefixPattern). Pattern text goes through the
same normalizer as keywords, so matching is a plain token comparison.
"""
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Tuple, Union

from keyword_intel.config.constants import OVERRIDABLE_ACTIONS
from keyword_intel.models.taxonomy import (
    ActionType,
    Category,
    EntrySource,
    Language,
    RuleScope,
)
from keyword_intel.normalization.normalizer import normalize


def _normalized_tokens(text, language: Optional[Language] = None) -> Tuple[str, ...]:
    if isinstance(text, (tuple, list)):
        text = " ".join(text)
    return normalize(text, language).tokens


def _single_token(text: str, kind: str) -> str:
    tokens = _normalized_tokens(text)
    if len(tokens) != 1:
        raise ValueError(
            f"{kind} pattern must normalize to exactly one token, got {list(tokens)!r} from {text!r}"
        )
    return tokens[0]


# =============================================================================
# Pattern variants
# =============================================================================

@dataclass(frozen=True)
class LiteralPattern:
    """Exact single-token match."""

    text: str
    kind: ClassVar[str] = "literal"

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", _single_token(self.text, self.kind))

    @property
    def key(self) -> Tuple[str, Tuple[str, ...]]:
        return ("exact", (self.text,))

    def describe(self) -> str:
        return self.text

    def to_dict(self) -> dict:
        return {"kind": self.kind, "text": self.text}


@dataclass(frozen=True)
class PhrasePattern:
    """Exact contiguous token-sequence match."""

    tokens: Tuple[str, ...]
    kind: ClassVar[str] = "phrase"

    def __post_init__(self) -> None:
        tokens = _normalized_tokens(self.tokens)
        if not tokens:
            raise ValueError(f"phrase pattern is empty after normalization: {self.tokens!r}")
        object.__setattr__(self, "tokens", tokens)

    @property
    def key(self) -> Tuple[str, Tuple[str, ...]]:
        # A one-token phrase and a literal shadow each other in the overlay
        return ("exact", self.tokens)

    def describe(self) -> str:
        return " ".join(self.tokens)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "tokens": list(self.tokens)}


@dataclass(frozen=True)
class PrefixPattern:
    """Single token starting with the given text."""

    text: str
    kind: ClassVar[str] = "prefix"

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", _single_token(self.text, self.kind))

    @property
    def key(self) -> Tuple[str, Tuple[str, ...]]:
        return ("prefix", (self.text,))

    def describe(self) -> str:
        return f"{self.text}*"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "text": self.text}


Pattern = Union[LiteralPattern, PhrasePattern, PrefixPattern]


def pattern_from_dict(data: dict) -> Pattern:
    kind = data.get("kind")
    if kind == LiteralPattern.kind:
        return LiteralPattern(data["text"])
    if kind == PhrasePattern.kind:
        return PhrasePattern(tuple(data["tokens"]))
    if kind == PrefixPattern.kind:
        return PrefixPattern(data["text"])
    raise ValueError(f"Unknown pattern kind: {kind!r}")


# =============================================================================
# Dictionary entries
# =============================================================================

@dataclass(frozen=True)
class DictionaryEntry:
    """
    A system (or imported custom) dictionary term.

    Immutable: a correction is published as a new entry for the same
    (language, term) with a later version_id.
    """

    term: str
    language: Language
    category: Category
    version_id: int
    source: EntrySource = EntrySource.SYSTEM
    pattern: PhrasePattern = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.language not in (Language.EN, Language.AR):
            raise ValueError(f"dictionary entry language must be EN or AR, got {self.language}")
        tokens = _normalized_tokens(self.term, self.language)
        if not tokens:
            raise ValueError(f"dictionary term is empty after normalization: {self.term!r}")
        object.__setattr__(self, "pattern", PhrasePattern(tokens))

    def to_dict(self) -> dict:
        return {
            "term": self.term,
            "language": self.language.value,
            "category": self.category.value,
            "source": self.source.value,
            "version_id": self.version_id,
        }


# =============================================================================
# Custom rules
# =============================================================================

@dataclass(frozen=True)
class CustomRule:
    """
    Account- or entity-scoped override authored by an administrator.

    A rule may override the category (applied during classification) and/or
    impose one of OVERRIDABLE_ACTIONS (applied by the action engine after the
    safeguard and no-money steps). It can never bypass the safeguard.
    """

    rule_id: str
    pattern: Pattern
    version_id: int
    category_override: Optional[Category] = None
    action_override: Optional[ActionType] = None
    scope: RuleScope = RuleScope.ACCOUNT
    entity_id: Optional[str] = None
    priority: int = 0
    active: bool = True

    def __post_init__(self) -> None:
        if self.category_override is None and self.action_override is None:
            raise ValueError(f"Rule {self.rule_id}: needs a category_override or an action_override")
        if self.action_override is not None and self.action_override not in OVERRIDABLE_ACTIONS:
            raise ValueError(
                f"Rule {self.rule_id}: action_override {self.action_override.value!r} is not overridable"
            )
        if self.scope is RuleScope.ENTITY and not self.entity_id:
            raise ValueError(f"Rule {self.rule_id}: entity-scoped rule requires entity_id")
        if self.scope is RuleScope.ACCOUNT and self.entity_id is not None:
            raise ValueError(f"Rule {self.rule_id}: account-scoped rule must not carry entity_id")

    def applies_to(self, entity_id: Optional[str]) -> bool:
        """True if the rule is active and its scope covers *entity_id*."""
        if not self.active:
            return False
        if self.scope is RuleScope.ACCOUNT:
            return True
        return entity_id is not None and entity_id == self.entity_id

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "pattern": self.pattern.to_dict(),
            "category_override": self.category_override.value if self.category_override else None,
            "action_override": self.action_override.value if self.action_override else None,
            "scope": self.scope.value,
            "entity_id": self.entity_id,
            "priority": self.priority,
            "active": self.active,
            "version_id": self.version_id,
        }

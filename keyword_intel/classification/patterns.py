"""
Pattern matching over normalized token sequences.

Each Pattern variant maps to a plain token comparison:
- LiteralPattern → tokens[i] == text
- PhrasePattern  → tokens[i:i+n] == pattern tokens
- PrefixPattern  → tokens[i].startswith(text)

Spans are half-open token indices [start, end), returned left to right.
"""
from typing import List, Sequence, Tuple

from keyword_intel.models.dictionary import (
    LiteralPattern,
    Pattern,
    PhrasePattern,
    PrefixPattern,
)

Span = Tuple[int, int]


def find_spans(pattern: Pattern, tokens: Sequence[str]) -> List[Span]:
    """
    Return every span of *tokens* matched by *pattern*.

    Raises:
        TypeError: If *pattern* is not one of the closed Pattern variants.
    """
    if isinstance(pattern, LiteralPattern):
        return [(i, i + 1) for i, tok in enumerate(tokens) if tok == pattern.text]

    if isinstance(pattern, PrefixPattern):
        return [(i, i + 1) for i, tok in enumerate(tokens) if tok.startswith(pattern.text)]

    if isinstance(pattern, PhrasePattern):
        needle = pattern.tokens
        n = len(needle)
        return [
            (i, i + n)
            for i in range(len(tokens) - n + 1)
            if tuple(tokens[i : i + n]) == needle
        ]

    raise TypeError(f"Unsupported pattern type: {type(pattern).__name__}")


def matches_any(pattern: Pattern, tokens: Sequence[str]) -> bool:
    return bool(find_spans(pattern, tokens))

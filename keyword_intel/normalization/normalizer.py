"""
Text Normalizer — canonical, language-aware form of raw keyword strings.

Steps, in order:
    1. Trim outer whitespace
    2. Detect language (unless a hint is given)
    3. Unicode NFC (re-applied after step 5)
    4. AR/MIXED: strip tashkeel/tatweel, fold alef/hamza variants; always lowercase
    5. Replace punctuation/symbols with spaces (except % $ +), drop format chars
    6. Collapse whitespace
    7. Tokenize on spaces

Invariant: normalize(normalize(x).normalized).normalized == normalize(x).normalized
for the same language hint, and without a hint the detected language is
stable too. Pure: no network, no locale-dependent calls.
"""
import re
import unicodedata
from typing import Optional

from keyword_intel.config.constants import (
    ARABIC_FOLD_MAP,
    ARABIC_RANGES,
    PRESERVED_SYMBOLS,
    TASHKEEL_PATTERN,
    TATWEEL,
)
from keyword_intel.models.keyword import NormalizedTerm
from keyword_intel.models.taxonomy import Language

_TASHKEEL_RE = re.compile(TASHKEEL_PATTERN)
_ARABIC_FOLD_TABLE = str.maketrans(ARABIC_FOLD_MAP)


class KeywordValidationError(ValueError):
    """Raised for malformed keyword input (never propagated out of a batch)."""


def is_arabic_char(ch: str) -> bool:
    cp = ord(ch)
    return any(lo <= cp <= hi for lo, hi in ARABIC_RANGES)


def detect_language(text: str) -> Language:
    """
    Detect language from the letters of *text*.

    Arabic letters only ⇒ AR; other letters only ⇒ EN; both ⇒ MIXED;
    no letters ⇒ UNKNOWN (digits, symbols, empty input).

    Only letters count, and normalization never adds or removes one, so the
    detected language of a normalized term equals that of its raw form.
    """
    has_arabic = has_other = False
    for ch in text:
        if not ch.isalpha() or ch == TATWEEL:
            continue
        if is_arabic_char(ch):
            has_arabic = True
        else:
            has_other = True

    if has_arabic and has_other:
        return Language.MIXED
    if has_arabic:
        return Language.AR
    if has_other:
        return Language.EN
    return Language.UNKNOWN


def fold_arabic(text: str) -> str:
    """Strip diacritics and tatweel, fold alef/hamza/yeh/teh variants."""
    text = _TASHKEEL_RE.sub("", text)
    text = text.replace(TATWEEL, "")
    return text.translate(_ARABIC_FOLD_TABLE)


def _strip_punctuation(text: str) -> str:
    out = []
    for ch in text:
        if ch in PRESERVED_SYMBOLS:
            out.append(ch)
            continue
        cat = unicodedata.category(ch)
        if cat == "Cf":
            continue
        if cat[0] in ("P", "S") or cat == "Cc":
            out.append(" ")
        else:
            out.append(ch)
    return "".join(out)


def normalize(raw: str, language_hint: Optional[Language] = None) -> NormalizedTerm:
    """
    Canonicalize a raw keyword string.

    Args:
        raw: Keyword as typed by the searcher / exported by the ad platform.
        language_hint: Optional language hint; skips detection when provided.

    Returns:
        NormalizedTerm with normalized text, resolved language and tokens.
        UNKNOWN language is normalized on the EN path.

    Raises:
        KeywordValidationError: If *raw* is not a string.
    """
    if not isinstance(raw, str):
        raise KeywordValidationError(
            f"keyword must be a string, got {type(raw).__name__}"
        )

    text = raw.strip()
    language = language_hint if language_hint is not None else detect_language(text)

    text = unicodedata.normalize("NFC", text)
    if language in (Language.AR, Language.MIXED):
        text = fold_arabic(text)
    text = text.lower()

    # Re-compose: lowercasing and dropping format chars can leave decomposed pairs
    text = unicodedata.normalize("NFC", _strip_punctuation(text))
    normalized = " ".join(text.split())
    tokens = tuple(normalized.split(" ")) if normalized else ()

    return NormalizedTerm(
        original=raw,
        normalized=normalized,
        language=language,
        tokens=tokens,
    )

"""
Unit tests for the text normalizer.
"""
import pytest

from keyword_intel.models.taxonomy import Language
from keyword_intel.normalization.normalizer import (
    KeywordValidationError,
    detect_language,
    fold_arabic,
    normalize,
)


class TestDetectLanguage:
    def test_english(self):
        assert detect_language("forex trading") is Language.EN

    def test_arabic(self):
        assert detect_language("تداول الفوركس") is Language.AR

    def test_mixed(self):
        assert detect_language("cfi تداول") is Language.MIXED

    @pytest.mark.parametrize("text", ["etoro؟", "forex course ،", "forex ٣", "forex ـ"])
    def test_arabic_punctuation_digits_and_tatweel_ignored(self, text):
        assert detect_language(text) is Language.EN

    def test_arabic_with_diacritics_and_digits(self):
        assert detect_language("تَدَاوُل ١٠٠") is Language.AR

    @pytest.mark.parametrize("text", ["", "   ", "123 456", "%$+"])
    def test_unknown(self, text):
        assert detect_language(text) is Language.UNKNOWN


class TestNormalizeEnglish:
    def test_trim_lower_collapse(self):
        term = normalize("  Forex   TRADING  ")
        assert term.normalized == "forex trading"
        assert term.tokens == ("forex", "trading")
        assert term.language is Language.EN

    def test_punctuation_becomes_space(self):
        term = normalize("forex-trading, signals!")
        assert term.tokens == ("forex", "trading", "signals")

    def test_preserved_symbols(self):
        term = normalize("100% bonus $50 +1")
        assert term.tokens == ("100%", "bonus", "$50", "+1")

    def test_original_kept(self):
        assert normalize(" Free ").original == " Free "

    def test_empty_input(self):
        term = normalize("   ")
        assert term.normalized == ""
        assert term.tokens == ()
        assert term.is_empty

    def test_digits_only_unknown(self):
        term = normalize("500")
        assert term.language is Language.UNKNOWN
        assert term.tokens == ("500",)

    def test_zero_width_dropped(self):
        assert normalize("for\u200bex").tokens == ("forex",)

    def test_language_hint_skips_detection(self):
        assert normalize("forex", Language.AR).language is Language.AR

    def test_non_string_rejected(self):
        with pytest.raises(KeywordValidationError):
            normalize(42)


class TestNormalizeArabic:
    def test_strip_tashkeel(self):
        assert normalize("تَدَاوُل").normalized == "تداول"

    def test_strip_tatweel(self):
        assert normalize("تـــداول").normalized == "تداول"

    def test_fold_alef_variants(self):
        assert normalize("أكاديمية").normalized == "اكاديميه"
        assert normalize("إستثمار").normalized == "استثمار"
        assert normalize("آمن").normalized == "امن"

    def test_fold_yeh_and_teh_marbuta(self):
        assert fold_arabic("ى") == "ي"
        assert fold_arabic("ة") == "ه"

    def test_arabic_punctuation(self):
        term = normalize("تداول، فوركس؟")
        assert term.tokens == ("تداول", "فوركس")

    def test_latin_fragment_lowercased(self):
        term = normalize("CFI تداول")
        assert term.language is Language.MIXED
        assert term.tokens == ("cfi", "تداول")


class TestIdempotence:
    @pytest.mark.parametrize(
        "raw",
        [
            "Free Forex Signals!!",
            "  how-to  EARN money?? ",
            "تَدَاوُلُ الفوركس مجاناً",
            "CFI   Financial — Dubai",
            "100%   bonus",
            "أكاديمية التداول",
            "etoro؟",
            "forex course ،",
            "ETORO تَداول",
            "forex ـ ٣",
            "",
            "...",
        ],
    )
    def test_normalize_twice_is_stable(self, raw):
        once = normalize(raw)
        twice = normalize(once.normalized, once.language)
        assert twice.normalized == once.normalized
        assert twice.tokens == once.tokens

    @pytest.mark.parametrize(
        "raw",
        ["تداول", "forex ،", "etoro؟", "CFI تـداول", "مجاناً!", "100%", "Forex Trading"],
    )
    def test_stable_without_hint(self, raw):
        once = normalize(raw)
        twice = normalize(once.normalized)
        assert twice.language is once.language
        assert twice.normalized == once.normalized

    def test_arabic_punctuation_does_not_change_language(self):
        assert normalize("forex ،").language is normalize("forex").language is Language.EN

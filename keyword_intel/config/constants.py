"""
Constants used across the engine.
Versioned and pinned for determinism.
"""
from typing import Dict, FrozenSet, List, Set, Tuple

from keyword_intel.models.taxonomy import ActionType, Category, Language, RuleScope

# =============================================================================
# Versions (logged with every batch via EngineVersion)
# =============================================================================
NORMALIZER_VERSION: str = "normalizer-2.1.0"
PRECEDENCE_VERSION: str = "precedence-v1"
SCHEMA_VERSION: str = "batch-output-v1"

# =============================================================================
# Category precedence (index 0 = strongest)
# Competitor/Education gate the manual-review safeguard and must outrank
# every weaker signal.
# =============================================================================
CATEGORY_PRECEDENCE: List[Category] = [
    Category.COMPETITOR,
    Category.EDUCATION,
    Category.NO_MONEY_INTENT,
    Category.MONEY_INTENT,
    Category.GEO,
    Category.BRAND,
    Category.GENERIC,
]

CATEGORY_RANK: Dict[Category, int] = {c: i for i, c in enumerate(CATEGORY_PRECEDENCE)}

SAFEGUARDED_CATEGORIES: FrozenSet[Category] = frozenset({Category.COMPETITOR, Category.EDUCATION})

LEAKAGE_CATEGORIES: FrozenSet[Category] = frozenset({Category.NO_MONEY_INTENT, Category.GENERIC})

# Actions a custom rule may impose verbatim
OVERRIDABLE_ACTIONS: FrozenSet[ActionType] = frozenset({
    ActionType.MOVE,
    ActionType.ISOLATE,
    ActionType.ADJUST_AD_COPY,
    ActionType.ADJUST_LANDING_PAGE,
})

# Overlay rank: higher wins for the same pattern
SYSTEM_SCOPE_RANK: int = 0
RULE_SCOPE_RANK: Dict[RuleScope, int] = {
    RuleScope.ACCOUNT: 1,
    RuleScope.ENTITY: 2,
}

# =============================================================================
# Unicode tables (Arabic normalization)
# =============================================================================
ARABIC_RANGES: List[Tuple[int, int]] = [
    (0x0600, 0x06FF),   # Arabic
    (0x0750, 0x077F),   # Arabic Supplement
    (0x08A0, 0x08FF),   # Arabic Extended-A
    (0xFB50, 0xFDFF),   # Presentation Forms-A
    (0xFE70, 0xFEFF),   # Presentation Forms-B
]

TASHKEEL_PATTERN: str = r"[\u064B-\u065F\u0670]"
TATWEEL: str = "\u0640"

ARABIC_FOLD_MAP: Dict[str, str] = {
    "أ": "ا",  # alef with hamza above
    "إ": "ا",  # alef with hamza below
    "آ": "ا",  # alef with madda
    "ٱ": "ا",  # alef wasla
    "ؤ": "و",  # waw with hamza
    "ئ": "ي",  # yeh with hamza
    "ى": "ي",  # alef maksura
    "ة": "ه",  # teh marbuta
}

# Punctuation/symbols that carry meaning for classification
PRESERVED_SYMBOLS: FrozenSet[str] = frozenset({"%", "$", "+"})

# =============================================================================
# Stopwords (leakage candidate extraction)
# =============================================================================
STOPLIST_VERSION: str = "stopwords-en-ar-2024.1"

STOPWORDS_EN: Set[str] = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "from", "as", "is", "was", "are", "were", "been", "be", "have", "has", "had", "do", "does",
    "did", "will", "would", "could", "should", "may", "might", "must", "shall", "can", "need",
    "this", "that", "these", "those", "what", "which", "who", "whom", "whose", "when", "where",
    "why", "how", "all", "each", "every", "both", "few", "more", "most", "other", "some", "such",
    "no", "nor", "not", "only", "own", "same", "so", "than", "too", "very", "just", "also",
}

# Stored pre-folded (alef/hamza) so they compare against normalized tokens
STOPWORDS_AR: Set[str] = {
    "في", "من", "على", "الي", "عن", "مع", "هذا", "هذه", "ذلك", "تلك", "التي", "الذي",
    "ما", "هو", "هي", "هم", "هن", "انا", "انت", "نحن", "انتم", "كل", "بعض", "اي", "كيف",
    "لماذا", "متي", "اين", "كان", "كانت", "يكون", "تكون", "و", "او", "ثم", "لكن", "بل",
}

# =============================================================================
# System dictionary seed (version 1)
# Terms are raw; they are normalized when the seed snapshot is built.
# =============================================================================
SYSTEM_DICTIONARY_VERSION: int = 1

SYSTEM_DICTIONARY: Dict[Category, Dict[Language, List[str]]] = {
    Category.NO_MONEY_INTENT: {
        Language.EN: [
            "free", "earn money", "make money", "money make", "how to earn",
            "free signals", "no deposit", "without deposit", "no investment",
            "earn from home", "work from home", "passive income",
        ],
        Language.AR: [
            "ربح", "ربح المال", "كسب المال", "فلوس", "بدون رأس مال",
            "بدون ايداع", "بدون استثمار", "مجانا", "مجاني", "اربح", "كسب",
        ],
    },
    Category.EDUCATION: {
        Language.EN: [
            "how to", "what is", "guide", "tutorial", "learn", "course",
            "academy", "training", "meaning", "definition", "explain",
            "university", "lesson", "pdf",
        ],
        Language.AR: [
            "كيفية", "ما هو", "دليل", "شرح", "تعلم", "كورس", "دورة",
            "تدريب", "معنى", "جامعة", "أكاديمية",
        ],
    },
    Category.MONEY_INTENT: {
        Language.EN: [
            "open account", "create account", "sign up", "register",
            "registration", "minimum deposit", "bonus", "buy", "best broker",
        ],
        Language.AR: [
            "فتح حساب", "افتح حساب", "انشاء حساب", "حد ادنى للايداع", "بونص",
        ],
    },
    Category.COMPETITOR: {
        Language.EN: [
            "etoro", "plus500", "exness", "avatrade", "xm", "ic markets",
            "pepperstone", "ig markets",
        ],
        Language.AR: [
            "ايتورو", "اكسنس", "بلس 500",
        ],
    },
    Category.BRAND: {
        Language.EN: [
            "cfi", "cfi financial", "cfi trading",
        ],
        Language.AR: [
            "سي اف اي",
        ],
    },
    Category.GEO: {
        Language.EN: [
            "uae", "dubai", "abu dhabi", "saudi", "saudi arabia", "ksa",
            "riyadh", "jeddah", "egypt", "cairo", "kuwait", "qatar", "doha",
            "near me",
        ],
        Language.AR: [
            "دبي", "الإمارات", "السعودية", "الرياض", "جدة", "مصر", "القاهرة",
            "الكويت", "قطر", "الدوحة", "ابوظبي", "ابو ظبي",
        ],
    },
    Category.GENERIC: {
        Language.EN: [
            "forex", "fx", "trading", "trade", "trader", "broker", "invest",
            "investment", "signals", "chart", "price", "gold", "bitcoin",
            "stocks", "crypto",
        ],
        Language.AR: [
            "تداول", "فوركس", "الفوركس", "استثمار", "وسيط", "ذهب", "الذهب",
            "بيتكوين", "اسهم", "سعر",
        ],
    },
}

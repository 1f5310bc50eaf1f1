"""
Closed taxonomies shared by every stage of the engine.

All enums are str-valued so they serialize as plain strings in JSON
payloads, Redis records and pydantic models.
"""
from enum import Enum


class Language(str, Enum):
    EN = "en"
    AR = "ar"
    MIXED = "mixed"  # Arabic and non-Arabic letters in one term
    UNKNOWN = "unknown"


class Category(str, Enum):
    """Intent/safety category assigned to a keyword."""

    MONEY_INTENT = "money_intent"
    NO_MONEY_INTENT = "no_money_intent"
    COMPETITOR = "competitor"
    EDUCATION = "education"
    GEO = "geo"
    BRAND = "brand"
    GENERIC = "generic"


class ActionType(str, Enum):
    """Account-hygiene action emitted by the action engine."""

    MOVE = "move"
    ISOLATE = "isolate"
    ADJUST_AD_COPY = "adjust_ad_copy"
    ADJUST_LANDING_PAGE = "adjust_landing_page"
    ADD_NEGATIVE = "add_negative"
    REVIEW_MANUALLY = "review_manually"
    NO_ACTION = "no_action"


class EntrySource(str, Enum):
    SYSTEM = "system"
    CUSTOM = "custom"


class RuleScope(str, Enum):
    ACCOUNT = "account"
    ENTITY = "entity"


class SuggestionScope(str, Enum):
    CAMPAIGN = "campaign"
    AD_GROUP = "ad_group"
    ACCOUNT = "account"


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"


class AdGroupStatus(str, Enum):
    """Structural health of an ad group, from the cost share of its dominant category."""

    OK = "ok"
    IMPROVE_WITH_NEGATIVES = "improve_with_negatives"
    NEEDS_RESTRUCTURE = "needs_restructure"

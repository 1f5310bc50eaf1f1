"""
Typed Pydantic models for the engine's I/O contracts.

Inputs (KeywordInput, KeywordMetrics) come from external collaborators and
are validated on the way in. Outputs (LeakageSuggestion, ActionDecision)
are handed to the presentation layer, which persists them and reports
status transitions back through the repository.
"""
from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from keyword_intel.models.taxonomy import (
    ActionType,
    Category,
    Language,
    SuggestionScope,
    SuggestionStatus,
)
from keyword_intel.normalization.normalizer import normalize


# =============================================================================
# Inputs
# =============================================================================


class KeywordInput(BaseModel):
    """A keyword row handed to a batch run."""

    model_config = ConfigDict(frozen=True)

    keyword_id: str = Field(..., min_length=1)
    text: str = Field("", description="Raw search term / keyword text.")
    language_hint: Optional[Language] = Field(None, description="Skip detection when known.")
    entity_id: Optional[str] = Field(None, description="Business unit owning the keyword; selects entity rules.")
    campaign: Optional[str] = None
    ad_group: Optional[str] = None
    is_isolated: bool = Field(False, description="Already moved to a dedicated ad group/campaign.")


class KeywordMetrics(BaseModel):
    """Performance signals for one keyword. Read-only to the engine."""

    model_config = ConfigDict(frozen=True)

    impressions: int = Field(0, ge=0)
    clicks: int = Field(0, ge=0)
    cost: float = Field(0.0, ge=0.0)
    conversions: float = Field(0.0, ge=0.0)
    conversion_value: float = Field(0.0, ge=0.0)
    landing_page_mismatch_flag: Optional[bool] = Field(
        None,
        description="Set by the metrics provider; the engine never infers it from text.",
    )

    @property
    def ctr(self) -> float:
        return self.clicks / self.impressions if self.impressions else 0.0

    @property
    def cpa(self) -> Optional[float]:
        return self.cost / self.conversions if self.conversions else None


# =============================================================================
# Outputs
# =============================================================================


class LeakageSuggestion(BaseModel):
    """
    A reviewable negative-keyword candidate.

    Deduplicated by (candidate_text, suggested_scope, scope_target);
    candidate_text is stored normalized, so queue entries edited or
    imported by hand still collide with engine-built ones.
    Never applied by the engine.
    """

    candidate_text: str = Field(..., min_length=1)
    evidence_keyword_ids: Tuple[str, ...] = Field(default=())
    suggested_scope: SuggestionScope
    scope_target: Optional[str] = Field(None, description="Campaign or ad group name; None for ACCOUNT.")
    category: Category
    status: SuggestionStatus = SuggestionStatus.PENDING
    evidence_cost: float = Field(0.0, ge=0.0)
    evidence_clicks: int = Field(0, ge=0)

    @field_validator("candidate_text")
    @classmethod
    def normalize_candidate_text(cls, v: str) -> str:
        normalized = normalize(v).normalized
        if not normalized:
            raise ValueError("candidate_text has no content after normalization")
        return normalized

    @field_validator("evidence_keyword_ids")
    @classmethod
    def validate_unique_ids(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(set(v)) != len(v):
            raise ValueError("evidence_keyword_ids must be unique")
        return v

    @property
    def dedup_key(self) -> Tuple[str, SuggestionScope, Optional[str]]:
        return (self.candidate_text, self.suggested_scope, self.scope_target)

    def mark(self, status: SuggestionStatus) -> "LeakageSuggestion":
        """Return a copy carrying the reviewer's decision."""
        return self.model_copy(update={"status": status})


class ActionDecision(BaseModel):
    """Exactly one action per processed keyword, with an audit rationale."""

    model_config = ConfigDict(frozen=True)

    keyword_id: str
    action: ActionType
    rationale: str = Field(..., min_length=1)
    safeguard_triggered: bool = False
    decided_at_version_id: int

"""
ValidationResult — outcome of validating a stored snapshot payload.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from keyword_intel.models.snapshot import DictionarySnapshot


@dataclass
class ValidationResult:
    """``snapshot`` is set only when ``valid``; ``errors`` explain a rejection."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    snapshot: Optional[DictionarySnapshot] = None

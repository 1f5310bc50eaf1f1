"""
EngineVersion — frozen dataclass for deterministic reproducibility.

Every batch run reports the full EngineVersion for audit and backtesting.
"""
from dataclasses import dataclass

from keyword_intel.config.constants import (
    NORMALIZER_VERSION,
    PRECEDENCE_VERSION,
    SCHEMA_VERSION,
    STOPLIST_VERSION,
)


@dataclass(frozen=True)
class EngineVersion:
    """Contract of version to guarantee repeatability."""

    dictionary_version: int
    normalizer_version: str = NORMALIZER_VERSION
    precedence_version: str = PRECEDENCE_VERSION
    stoplist_version: str = STOPLIST_VERSION
    schema_version: str = SCHEMA_VERSION

    def to_dict(self) -> dict:
        return {
            "dictionary_version": self.dictionary_version,
            "normalizer_version": self.normalizer_version,
            "precedence_version": self.precedence_version,
            "stoplist_version": self.stoplist_version,
            "schema_version": self.schema_version,
        }

    def __repr__(self) -> str:
        return f"Engine-{self.dictionary_version}-{self.normalizer_version}"

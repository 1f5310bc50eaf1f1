"""
System dictionary seed — builds version-1 DictionaryEntry objects from the
bilingual term lists pinned in constants.
"""
import logging
from typing import Dict, List, Optional, Tuple

from keyword_intel.config.constants import SYSTEM_DICTIONARY, SYSTEM_DICTIONARY_VERSION
from keyword_intel.models.dictionary import DictionaryEntry
from keyword_intel.models.snapshot import DictionarySnapshot
from keyword_intel.models.taxonomy import Category, EntrySource, Language

logger = logging.getLogger(__name__)


def build_system_entries(
    terms: Optional[Dict[Category, Dict[Language, List[str]]]] = None,
    version_id: int = SYSTEM_DICTIONARY_VERSION,
) -> Tuple[DictionaryEntry, ...]:
    """
    Expand a {category: {language: [term, ...]}} table into entries.

    Order is deterministic: table order of categories, then languages, then terms.
    """
    terms = SYSTEM_DICTIONARY if terms is None else terms
    entries: List[DictionaryEntry] = []
    for category, by_language in terms.items():
        for language, words in by_language.items():
            for word in words:
                entries.append(
                    DictionaryEntry(
                        term=word,
                        language=language,
                        category=category,
                        version_id=version_id,
                        source=EntrySource.SYSTEM,
                    )
                )
    logger.debug("System dictionary v%d: %d entries", version_id, len(entries))
    return tuple(entries)


def build_seed_snapshot() -> DictionarySnapshot:
    """Snapshot holding only the system dictionary, at its pinned version."""
    return DictionarySnapshot(
        version_id=SYSTEM_DICTIONARY_VERSION,
        entries=build_system_entries(),
    )

"""
DictionarySnapshot — immutable, versioned view over dictionary entries and
custom rules.

A batch pins exactly one snapshot. Administrators publish new versions
(copy-on-write) instead of editing a live dictionary, so a long-running batch
never observes a half-applied edit.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

from keyword_intel.models.dictionary import CustomRule, DictionaryEntry
from keyword_intel.models.taxonomy import Language


def _latest_rule_versions(rules: Iterable[CustomRule]) -> Tuple[CustomRule, ...]:
    """Keep only the newest version of each rule_id, in first-seen order."""
    latest: Dict[str, CustomRule] = {}
    for rule in rules:
        current = latest.get(rule.rule_id)
        if current is None or rule.version_id > current.version_id:
            latest[rule.rule_id] = rule
    return tuple(latest.values())


@dataclass(frozen=True)
class DictionarySnapshot:
    """Pinned dictionary/rule state for one version_id."""

    version_id: int
    entries: Tuple[DictionaryEntry, ...] = field(default=())
    rules: Tuple[CustomRule, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(self, "rules", _latest_rule_versions(self.rules))
        newer = [
            item for item in (*self.entries, *self.rules)
            if item.version_id > self.version_id
        ]
        if newer:
            raise ValueError(
                f"Snapshot v{self.version_id} contains items from a later version: {newer[0]!r}"
            )

    def entries_for(self, language: Language) -> Tuple[DictionaryEntry, ...]:
        """System entries for *language*; UNKNOWN falls back to EN, MIXED uses both."""
        if language is Language.MIXED:
            wanted = {Language.EN, Language.AR}
        elif language is Language.UNKNOWN:
            wanted = {Language.EN}
        else:
            wanted = {language}
        return tuple(e for e in self.entries if e.language in wanted)

    def active_rules(self) -> Tuple[CustomRule, ...]:
        return tuple(r for r in self.rules if r.active)

    def extend(self, version_id: int, entries=(), rules=()) -> "DictionarySnapshot":
        """Return a new snapshot with *entries*/*rules* appended (copy-on-write)."""
        if version_id <= self.version_id:
            raise ValueError(
                f"New version {version_id} must be greater than {self.version_id}"
            )
        return DictionarySnapshot(
            version_id=version_id,
            entries=self.entries + tuple(entries),
            rules=self.rules + tuple(rules),
        )

    def __repr__(self) -> str:
        return f"DictionarySnapshot-v{self.version_id}(entries={len(self.entries)}, rules={len(self.rules)})"

"""
Snapshot payload codec.

A snapshot is persisted as a plain JSON object (see SNAPSHOT_PAYLOAD_SCHEMA):

    {
      "version_id": 3,
      "entries": [{"term", "language", "category", "source", "version_id"}, ...],
      "rules":   [{"rule_id", "pattern": {"kind", ...}, "category_override",
                   "action_override", "scope", "entity_id", "priority",
                   "active", "version_id"}, ...]
    }

Decoding validates the payload with jsonschema first, then rebuilds the
frozen dataclasses (which re-normalize pattern text and re-check rule
invariants).
"""
import json
import logging
from typing import Union

from jsonschema import ValidationError, validate

from keyword_intel.config.schemas import SNAPSHOT_PAYLOAD_SCHEMA
from keyword_intel.models.dictionary import CustomRule, DictionaryEntry, pattern_from_dict
from keyword_intel.models.snapshot import DictionarySnapshot
from keyword_intel.models.taxonomy import (
    ActionType,
    Category,
    EntrySource,
    Language,
    RuleScope,
)
from keyword_intel.models.validation import ValidationResult

logger = logging.getLogger(__name__)


def snapshot_to_payload(snapshot: DictionarySnapshot) -> dict:
    return {
        "version_id": snapshot.version_id,
        "entries": [e.to_dict() for e in snapshot.entries],
        "rules": [r.to_dict() for r in snapshot.rules],
    }


def dumps_snapshot(snapshot: DictionarySnapshot) -> str:
    return json.dumps(snapshot_to_payload(snapshot), ensure_ascii=False, sort_keys=True)


def _entry_from_dict(data: dict) -> DictionaryEntry:
    return DictionaryEntry(
        term=data["term"],
        language=Language(data["language"]),
        category=Category(data["category"]),
        version_id=data["version_id"],
        source=EntrySource(data["source"]),
    )


def _rule_from_dict(data: dict) -> CustomRule:
    category = data.get("category_override")
    action = data.get("action_override")
    return CustomRule(
        rule_id=data["rule_id"],
        pattern=pattern_from_dict(data["pattern"]),
        version_id=data["version_id"],
        category_override=Category(category) if category else None,
        action_override=ActionType(action) if action else None,
        scope=RuleScope(data["scope"]),
        entity_id=data.get("entity_id"),
        priority=data.get("priority", 0),
        active=data.get("active", True),
    )


def validate_snapshot_payload(payload: Union[dict, str]) -> ValidationResult:
    """
    Validate a stored payload in stages.

    1. JSON parse (if given a string)
    2. Schema conformance (jsonschema)
    3. Model invariants (pattern normalization, rule overrides, versions)

    Returns:
        ValidationResult whose ``snapshot`` is the decoded DictionarySnapshot
        when ``valid`` is True.
    """
    errors = []

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            return ValidationResult(valid=False, errors=[f"JSON parse error: {e}"])

    try:
        validate(instance=payload, schema=SNAPSHOT_PAYLOAD_SCHEMA)
    except ValidationError as e:
        return ValidationResult(valid=False, errors=[f"Schema validation failed: {e.message}"])

    try:
        snapshot = DictionarySnapshot(
            version_id=payload["version_id"],
            entries=tuple(_entry_from_dict(e) for e in payload["entries"]),
            rules=tuple(_rule_from_dict(r) for r in payload["rules"]),
        )
    except ValueError as e:
        errors.append(f"Invalid snapshot content: {e}")
        return ValidationResult(valid=False, errors=errors)

    return ValidationResult(valid=True, snapshot=snapshot)


def snapshot_from_payload(payload: Union[dict, str]) -> DictionarySnapshot:
    """
    Decode a stored payload.

    Raises:
        ValueError: If the payload fails any validation stage.
    """
    result = validate_snapshot_payload(payload)
    if not result.valid:
        logger.error("Snapshot payload rejected: %s", result.errors)
        raise ValueError("; ".join(result.errors))
    return result.snapshot

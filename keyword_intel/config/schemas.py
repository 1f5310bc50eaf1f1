"""
JSON Schemas for persisted snapshots and batch output.

Two schemas:
1. SNAPSHOT_PAYLOAD_SCHEMA — what a repository stores per dictionary version
2. BATCH_OUTPUT_SCHEMA     — what ``BatchResult.to_dict()`` produces
"""
from keyword_intel.models.taxonomy import (
    ActionType,
    Category,
    EntrySource,
    Language,
    RuleScope,
    SuggestionScope,
    SuggestionStatus,
)

CATEGORY_VALUES = [c.value for c in Category]
ACTION_VALUES = [a.value for a in ActionType]

_NULLABLE_STRING = {"type": ["string", "null"]}

# =============================================================================
# 1. Snapshot payload
# =============================================================================
_PATTERN_SCHEMA: dict = {
    "oneOf": [
        {
            "type": "object",
            "additionalProperties": False,
            "required": ["kind", "text"],
            "properties": {
                "kind": {"enum": ["literal", "prefix"]},
                "text": {"type": "string", "minLength": 1},
            },
        },
        {
            "type": "object",
            "additionalProperties": False,
            "required": ["kind", "tokens"],
            "properties": {
                "kind": {"const": "phrase"},
                "tokens": {
                    "type": "array",
                    "minItems": 1,
                    "items": {"type": "string", "minLength": 1},
                },
            },
        },
    ],
}

SNAPSHOT_PAYLOAD_SCHEMA: dict = {
    "type": "object",
    "additionalProperties": False,
    "required": ["version_id", "entries", "rules"],
    "properties": {
        "version_id": {"type": "integer", "minimum": 0},
        "entries": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["term", "language", "category", "source", "version_id"],
                "properties": {
                    "term": {"type": "string", "minLength": 1},
                    "language": {"enum": [Language.EN.value, Language.AR.value]},
                    "category": {"enum": CATEGORY_VALUES},
                    "source": {"enum": [s.value for s in EntrySource]},
                    "version_id": {"type": "integer", "minimum": 0},
                },
            },
        },
        "rules": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": [
                    "rule_id", "pattern", "category_override", "action_override",
                    "scope", "entity_id", "priority", "active", "version_id",
                ],
                "properties": {
                    "rule_id": {"type": "string", "minLength": 1},
                    "pattern": _PATTERN_SCHEMA,
                    "category_override": {"enum": CATEGORY_VALUES + [None]},
                    "action_override": {"enum": ACTION_VALUES + [None]},
                    "scope": {"enum": [s.value for s in RuleScope]},
                    "entity_id": _NULLABLE_STRING,
                    "priority": {"type": "integer"},
                    "active": {"type": "boolean"},
                    "version_id": {"type": "integer", "minimum": 0},
                },
            },
        },
    },
}

# =============================================================================
# 2. Batch output
# =============================================================================
BATCH_OUTPUT_SCHEMA: dict = {
    "type": "object",
    "required": ["engine_version", "processed", "decisions", "suggestions", "warnings"],
    "properties": {
        "engine_version": {
            "type": "object",
            "required": [
                "dictionary_version", "normalizer_version", "precedence_version",
                "stoplist_version", "schema_version",
            ],
            "properties": {
                "dictionary_version": {"type": "integer"},
                "normalizer_version": {"type": "string"},
                "precedence_version": {"type": "string"},
                "stoplist_version": {"type": "string"},
                "schema_version": {"type": "string"},
            },
        },
        "processed": {
            "type": "array",
            "items": {
                "type": "object",
                "required": [
                    "keyword_id", "normalized", "language", "tokens",
                    "matches", "final_category", "evidence", "version_id",
                ],
                "properties": {
                    "keyword_id": {"type": "string"},
                    "normalized": {"type": "string"},
                    "language": {"enum": [lang.value for lang in Language]},
                    "tokens": {"type": "array", "items": {"type": "string"}},
                    "matches": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["category", "span", "source", "pattern_text"],
                            "properties": {
                                "category": {"enum": CATEGORY_VALUES},
                                "span": {
                                    "type": "array",
                                    "items": {"type": "integer", "minimum": 0},
                                    "minItems": 2,
                                    "maxItems": 2,
                                },
                                "source": {"enum": [s.value for s in EntrySource]},
                                "pattern_text": {"type": "string"},
                                "rule_id": _NULLABLE_STRING,
                            },
                        },
                    },
                    "final_category": {"enum": CATEGORY_VALUES},
                    "evidence": {"type": "array", "items": {"type": "string"}},
                    "version_id": {"type": "integer"},
                },
            },
        },
        "decisions": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": [
                    "keyword_id", "action", "rationale",
                    "safeguard_triggered", "decided_at_version_id",
                ],
                "properties": {
                    "keyword_id": {"type": "string"},
                    "action": {"enum": ACTION_VALUES},
                    "rationale": {"type": "string", "minLength": 1},
                    "safeguard_triggered": {"type": "boolean"},
                    "decided_at_version_id": {"type": "integer"},
                },
            },
        },
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": [
                    "candidate_text", "evidence_keyword_ids", "suggested_scope",
                    "scope_target", "category", "status", "evidence_cost", "evidence_clicks",
                ],
                "properties": {
                    "candidate_text": {"type": "string", "minLength": 1},
                    "evidence_keyword_ids": {
                        "type": "array",
                        "items": {"type": "string"},
                        "uniqueItems": True,
                    },
                    "suggested_scope": {"enum": [s.value for s in SuggestionScope]},
                    "scope_target": _NULLABLE_STRING,
                    "category": {"enum": CATEGORY_VALUES},
                    "status": {"enum": [s.value for s in SuggestionStatus]},
                    "evidence_cost": {"type": "number", "minimum": 0},
                    "evidence_clicks": {"type": "integer", "minimum": 0},
                },
            },
        },
        "warnings": {"type": "array", "items": {"type": "string"}},
    },
}

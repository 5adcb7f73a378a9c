"""JSON schema for configuration structure validation."""

from __future__ import annotations

CONFIG_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Frame Batcher Config",
    "type": "object",
    "required": ["version"],
    "properties": {
        "version": {"type": "string"},
        "scheduler": {
            "type": "object",
            "properties": {
                "frame_budget_ms": {"type": "number", "exclusiveMinimum": 0},
                "failure_policy": {"type": "string", "enum": ["propagate", "rearm"]},
                "event_id_mode": {
                    "type": "string",
                    "enum": ["deterministic", "random", "seeded_random"],
                },
                "bypass": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "name": {"type": "string", "minLength": 1},
                        "params": {"type": "object", "default": {}},
                    },
                    "additionalProperties": False,
                },
            },
            "additionalProperties": False,
        },
        "owners": {
            "type": "array",
            "items": {"$ref": "#/$defs/Owner"},
            "default": [],
        },
        "submissions": {
            "type": "array",
            "items": {"$ref": "#/$defs/Submission"},
            "default": [],
        },
        "sim": {
            "type": "object",
            "required": ["duration_ms"],
            "properties": {
                "duration_ms": {"type": "number", "exclusiveMinimum": 0},
                "refresh_interval_ms": {"type": "number", "exclusiveMinimum": 0},
                "seed": {"type": "integer"},
            },
            "additionalProperties": False,
        },
    },
    "$defs": {
        "Owner": {
            "type": "object",
            "required": ["id", "cost_ms"],
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "kind": {"type": "string", "minLength": 1},
                "cost_ms": {"type": "number", "minimum": 0},
                "jitter_ms": {"type": "number", "minimum": 0},
                "fail": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "Submission": {
            "type": "object",
            "required": ["at_ms", "owner"],
            "properties": {
                "at_ms": {"type": "number", "minimum": 0},
                "owner": {"type": "string", "minLength": 1},
                "count": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

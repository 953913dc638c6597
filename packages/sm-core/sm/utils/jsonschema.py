"""JSON Schema validation wrapper."""

from __future__ import annotations

from typing import Any

import jsonschema

# Envelope of a durable record; the step fields depend on the machine.
CHECKPOINT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "state": {
            "type": "object",
            "properties": {"kind": {"type": "string"}},
            "required": ["kind"],
        },
        "error": {"type": ["string", "null"]},
    },
    "required": ["state"],
    "additionalProperties": False,
}


def validate_json(instance: Any, schema: dict[str, Any]) -> list[str]:
    """Validate a value against a JSON Schema. Returns list of error messages."""
    validator = jsonschema.Draft7Validator(schema)
    return [err.message for err in validator.iter_errors(instance)]


def validate_checkpoint(data: Any) -> list[str]:
    """Validate a raw record against the checkpoint envelope."""
    return validate_json(data, CHECKPOINT_SCHEMA)

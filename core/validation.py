"""JSON Schema validation utilities."""
from __future__ import annotations

from typing import Any, Dict, List

from jsonschema import Draft202012Validator

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "cypher": {
            "type": "object",
            "properties": {
                "statement_mode": {"enum": ["strict", "legacy"]},
            },
            "additionalProperties": False,
        },
        "mapping": {
            "type": "object",
            "properties": {
                "descriptor": {"type": ["string", "null"]},
            },
            "additionalProperties": False,
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {"type": "string"},
                "console_format": {"type": "string"},
                "file_format": {"type": "string"},
                "output_dir": {"type": ["string", "null"]},
            },
        },
    },
}

DESCRIPTOR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "types": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["class"],
                "properties": {
                    "class": {"type": "string", "minLength": 1},
                    "label": {"type": "string"},
                    "properties": {
                        "type": "object",
                        "additionalProperties": {"type": "string", "minLength": 1},
                    },
                },
                "additionalProperties": False,
            },
        },
        "enums": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["class"],
                "properties": {
                    "class": {"type": "string", "minLength": 1},
                    "displays": {
                        "type": "object",
                        "additionalProperties": {"type": "string"},
                    },
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}


class SchemaValidator:
    def __init__(self, schema: Dict[str, Any]):
        self.schema = schema
        self.validator = Draft202012Validator(schema)

    def validate(self, data: Dict[str, Any]) -> List[str]:
        errors = []
        for err in sorted(self.validator.iter_errors(data), key=lambda e: list(e.path)):
            path = '.'.join([str(p) for p in err.path])
            errors.append(f"{path}: {err.message}")
        return errors

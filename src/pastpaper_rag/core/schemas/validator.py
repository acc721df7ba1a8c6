"""
Schema Validation Utilities

Validates model output against the extraction batch schemas.

Model responses are an untrusted wire format: they are parsed permissively
(code fences stripped, envelope objects unwrapped) but validated strictly
right after parsing. One bad element rejects the whole batch.

Schemas live beside this module as ``<name>.schema.json``:
- ``question_batch``: array of question objects
- ``mark_scheme_batch``: array of mark scheme objects
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

QUESTION_BATCH_SCHEMA = "question_batch"
MARK_SCHEME_BATCH_SCHEMA = "mark_scheme_batch"

# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def validate_batch(data: Any, schema_name: str) -> list[dict[str, Any]]:
    """
    Validate a parsed extraction batch.

    Args:
        data: Parsed JSON (expected: list of objects)
        schema_name: QUESTION_BATCH_SCHEMA or MARK_SCHEME_BATCH_SCHEMA

    Returns:
        The batch, unchanged, typed as a list of dicts

    Raises:
        ValidationError: On the first schema violation. ``errors`` lists
            every violation found, ``path`` points at the first one.
    """
    schema = load_schema(schema_name)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator = validator_cls(schema)

    errors = list(validator.iter_errors(data))
    if errors:
        first = errors[0]
        path = ".".join(str(p) for p in first.absolute_path)
        raise ValidationError(
            f"Schema validation failed at {path or '<root>'}: {first.message}",
            path=path,
            errors=[
                f"{'.'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}"
                for e in errors
            ],
        )
    return data

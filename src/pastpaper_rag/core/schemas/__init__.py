"""JSON schemas for model output and their validation helpers."""

from .validator import (
    MARK_SCHEME_BATCH_SCHEMA,
    QUESTION_BATCH_SCHEMA,
    ValidationError,
    load_schema,
    validate_batch,
)

__all__ = [
    "MARK_SCHEME_BATCH_SCHEMA",
    "QUESTION_BATCH_SCHEMA",
    "ValidationError",
    "load_schema",
    "validate_batch",
]

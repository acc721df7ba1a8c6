"""Common utilities shared across the pipeline."""

from __future__ import annotations

from .labels import canonical_label, is_child_label, label_tokens
from .path_utils import (
    PaperFileInfo,
    counterpart_name,
    extract_paper_prefix,
    figure_filename,
    parse_paper_filename,
)
from .topics import DEFAULT_TOPICS, resolve_topic_label

__all__ = [
    # labels
    "canonical_label",
    "is_child_label",
    "label_tokens",
    # paths
    "PaperFileInfo",
    "counterpart_name",
    "extract_paper_prefix",
    "figure_filename",
    "parse_paper_filename",
    # topics
    "DEFAULT_TOPICS",
    "resolve_topic_label",
]

"""
Module: common.topics

Purpose:
    Topic taxonomy helpers. Extraction constrains every question's topic
    to a fixed taxonomy; these functions normalize the labels the model
    returns and resolve them to the canonical spelling.

Key Functions:
    - normalise_topic_label(): Collapse whitespace and strip a label
    - resolve_topic_label(): Map a raw label to its canonical taxonomy entry
    - topic_slug(): Comparison key for a label

Dependencies:
    - re (std)

Used By:
    - extractor.client: Topic normalization during record validation
    - extractor.prompts: Taxonomy listed in the extraction instruction
    - pipeline.config: Default taxonomy
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

__all__ = [
    "DEFAULT_TOPICS",
    "normalise_topic_label",
    "resolve_topic_label",
    "topic_slug",
]

# Cambridge A Level Physics (9702) top-level topic groups
DEFAULT_TOPICS: Tuple[str, ...] = (
    "Mechanics",
    "Waves",
    "Electricity",
    "Magnetism",
    "Modern Physics",
    "Nuclear Physics",
    "General Physics",
)

_TOPIC_PREFIX_RE = re.compile(r"^\s*\d+[\.)\]]\s*")
_SEPARATOR_RE = re.compile(r"[\s_\-]+")


def normalise_topic_label(value: Optional[str]) -> str:
    """
    Normalize a topic label for display.

    Args:
        value: Raw topic label (e.g., "  modern   physics ").

    Returns:
        Label with surrounding whitespace stripped and internal runs
        collapsed to single spaces. Empty string if value is empty.

    Example:
        >>> normalise_topic_label("  Nuclear   Physics ")
        'Nuclear Physics'
    """
    if not value:
        return ""
    return " ".join(value.split())


def topic_slug(value: str) -> str:
    """Comparison key: lowercase, no number prefix, single spaces.

    Example:
        >>> topic_slug("3. Modern_Physics")
        'modern physics'
    """
    cleaned = _TOPIC_PREFIX_RE.sub("", value).strip().lower()
    return _SEPARATOR_RE.sub(" ", cleaned)


def resolve_topic_label(value: Optional[str], taxonomy: Iterable[str] = DEFAULT_TOPICS) -> Optional[str]:
    """
    Resolve a topic label to its canonical taxonomy entry.

    Matching ignores case, number prefixes and separator differences.

    Args:
        value: Topic label returned by the model.
        taxonomy: Allowed topic labels.

    Returns:
        Canonical taxonomy label, or None when the label is not in the
        taxonomy.

    Example:
        >>> resolve_topic_label("electricity")
        'Electricity'
        >>> resolve_topic_label("Astrophysics") is None
        True
    """
    if not value:
        return None
    slug = topic_slug(value)
    for topic in taxonomy:
        if topic_slug(topic) == slug:
            return topic
    return None

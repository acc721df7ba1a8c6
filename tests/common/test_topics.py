"""
Tests for common.topics
"""

from pastpaper_rag.common.topics import (
    DEFAULT_TOPICS,
    normalise_topic_label,
    resolve_topic_label,
    topic_slug,
)


def test_normalise_topic_label_collapses_whitespace():
    assert normalise_topic_label("  Nuclear   Physics ") == "Nuclear Physics"
    assert normalise_topic_label(None) == ""


def test_topic_slug_ignores_number_prefix_and_separators():
    assert topic_slug("3. Modern_Physics") == "modern physics"
    assert topic_slug("modern-physics") == "modern physics"


def test_resolve_topic_label_when_case_differs_then_returns_canonical():
    assert resolve_topic_label("electricity") == "Electricity"
    assert resolve_topic_label("2) general physics") == "General Physics"


def test_resolve_topic_label_when_not_in_taxonomy_then_returns_none():
    assert resolve_topic_label("Astrophysics") is None
    assert resolve_topic_label("") is None


def test_resolve_topic_label_when_custom_taxonomy_then_uses_it():
    # Arrange
    taxonomy = ("Algebra", "Geometry")

    # Act / Assert
    assert resolve_topic_label("geometry", taxonomy) == "Geometry"
    assert resolve_topic_label("Mechanics", taxonomy) is None


def test_default_topics_are_unique():
    assert len(set(DEFAULT_TOPICS)) == len(DEFAULT_TOPICS)

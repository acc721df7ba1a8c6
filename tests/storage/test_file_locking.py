"""
Tests for storage.file_locking
"""

import json

import pytest

from pastpaper_rag.storage.file_locking import (
    locked_append_jsonl,
    locked_read_jsonl,
    locked_rewrite_jsonl,
    locked_write_json,
)


def test_append_then_read_preserves_order(tmp_path):
    # Arrange
    path = tmp_path / "nested" / "records.jsonl"

    # Act
    locked_append_jsonl(path, {"id": "a"})
    locked_append_jsonl(path, {"id": "b", "text": "Ω = V / I"})

    # Assert
    assert locked_read_jsonl(path) == [{"id": "a"}, {"id": "b", "text": "Ω = V / I"}]


def test_read_when_missing_then_empty(tmp_path):
    assert locked_read_jsonl(tmp_path / "none.jsonl") == []


def test_read_when_corrupt_line_then_raises_with_line_number(tmp_path):
    path = tmp_path / "records.jsonl"
    path.write_text('{"id": "a"}\n{broken\n', encoding="utf-8")
    with pytest.raises(ValueError, match="records.jsonl:2"):
        locked_read_jsonl(path)


def test_rewrite_applies_modifier(tmp_path):
    # Arrange
    path = tmp_path / "records.jsonl"
    for n in range(4):
        locked_append_jsonl(path, {"n": n})

    # Act
    written = locked_rewrite_jsonl(path, lambda records: [r for r in records if r["n"] % 2 == 0])

    # Assert
    assert written == [{"n": 0}, {"n": 2}]
    assert locked_read_jsonl(path) == written


def test_write_json_replaces_document(tmp_path):
    path = tmp_path / "_reports" / "last_run.json"
    locked_write_json(path, {"a": [1, 2, 3]})
    locked_write_json(path, {"b": 1})
    assert json.loads(path.read_text(encoding="utf-8")) == {"b": 1}

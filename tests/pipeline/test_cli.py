"""
Tests for pipeline.cli

Test Coverage:
- Argument parsing
- --reset value parsing
- Configuration errors map to exit code 2
- run_ingestion with nothing to do
"""

import argparse
import asyncio

import pytest

from pastpaper_rag.pipeline.cli import (
    EXIT_CONFIG,
    EXIT_OK,
    build_parser,
    main,
    parse_reset,
    run_ingestion,
)
from pastpaper_rag.pipeline.config import ConfigError, IngestConfig


class TestBuildParser:
    """Tests for build_parser()."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.data_dir is None
        assert args.exam_code is None
        assert args.test is False
        assert args.reset is None
        assert args.recreate_index is False

    def test_all_options(self, tmp_path):
        # Act
        args = build_parser().parse_args(
            [
                "--data-dir", str(tmp_path),
                "--exam-code", "9702",
                "--test",
                "--reset", "2021", "s21",
                "--recreate-index",
                "--store", str(tmp_path / "q.jsonl"),
                "-v",
            ]
        )

        # Assert
        assert args.data_dir == tmp_path
        assert args.exam_code == "9702"
        assert args.test is True
        assert args.reset == ["2021", "s21"]
        assert args.recreate_index is True
        assert args.store == tmp_path / "q.jsonl"
        assert args.verbose is True


class TestParseReset:
    """Tests for parse_reset()."""

    def test_none_when_absent(self):
        assert parse_reset(None) is None

    def test_year_only(self):
        assert parse_reset(["2021"]) == (2021, None)

    def test_year_and_paper(self):
        assert parse_reset(["2021", "s21"]) == (2021, "s21")

    def test_non_integer_year_raises(self):
        with pytest.raises(ConfigError, match="integer"):
            parse_reset(["s21"])

    def test_too_many_values_raise(self):
        with pytest.raises(ConfigError, match="YEAR"):
            parse_reset(["2021", "s21", "w21"])


class TestMain:
    """Tests for main() exit codes."""

    def test_missing_api_key_is_config_error(self, monkeypatch, tmp_path):
        # Arrange
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        # Act / Assert
        assert main(["--data-dir", str(tmp_path)]) == EXIT_CONFIG

    def test_bad_reset_is_config_error(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        assert main(["--data-dir", str(tmp_path), "--reset", "last-year"]) == EXIT_CONFIG

    def test_bad_exam_code_is_config_error(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        assert main(["--data-dir", str(tmp_path), "--exam-code", "97"]) == EXIT_CONFIG


class TestRunIngestion:
    """Tests for run_ingestion() short-circuits."""

    def test_empty_data_dir_exits_ok_without_index(self, tmp_path, caplog):
        # Arrange
        config = IngestConfig(data_dir=tmp_path, gemini_api_key="test-key", qdrant_url=":memory:")
        args = argparse.Namespace(reset=None, recreate_index=False, test=False)

        # Act
        code = asyncio.run(run_ingestion(config, args))

        # Assert
        assert code == EXIT_OK
        assert "No document sets found" in caplog.text

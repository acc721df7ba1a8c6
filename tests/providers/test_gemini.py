"""
Tests for providers.gemini (no network)

Test Coverage:
- to_gemini_schema(): JSON schema reduction for structured output
- _translate(): SDK errors -> retry classes
- GeminiGenerator.generate(): request shape and blocked responses
"""

import asyncio

import pytest
from google.api_core import exceptions as google_exceptions

from pastpaper_rag.core.capabilities import RateLimitedError, TransientGenerationError
from pastpaper_rag.core.schemas import QUESTION_BATCH_SCHEMA, load_schema
from pastpaper_rag.providers.gemini import GeminiEmbedder, GeminiGenerator, _translate, to_gemini_schema


class TestToGeminiSchema:
    """Tests for to_gemini_schema()."""

    def test_nullable_type_list_becomes_nullable_flag(self):
        assert to_gemini_schema({"type": ["string", "null"], "pattern": "\\S"}) == {
            "type": "STRING",
            "nullable": True,
        }

    def test_question_batch_schema_reduces_recursively(self):
        # Act
        reduced = to_gemini_schema(load_schema(QUESTION_BATCH_SCHEMA))

        # Assert
        assert reduced["type"] == "ARRAY"
        item = reduced["items"]
        assert item["type"] == "OBJECT"
        assert item["required"] == ["questionNumber", "text", "marks", "topic"]
        assert item["properties"]["marks"] == {"type": "INTEGER", "nullable": True}
        assert item["properties"]["figureBoundingBox"]["items"] == {"type": "NUMBER"}
        assert "$schema" not in reduced and "title" not in reduced


class TestTranslate:
    """Tests for _translate()."""

    def test_resource_exhausted_is_rate_limited(self):
        assert isinstance(_translate(google_exceptions.ResourceExhausted("quota")), RateLimitedError)

    def test_service_unavailable_is_transient(self):
        assert isinstance(_translate(google_exceptions.ServiceUnavailable("down")), TransientGenerationError)

    def test_other_errors_pass_through(self):
        error = google_exceptions.PermissionDenied("bad key")
        assert _translate(error) is error


class FakeResponse:
    def __init__(self, text=None):
        self._text = text

    @property
    def text(self):
        if self._text is None:
            raise ValueError("response was blocked")
        return self._text


class FakeModel:
    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []

    async def generate_content_async(self, contents, generation_config=None):
        self.requests.append((contents, generation_config))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class TestGeminiGenerator:
    """Tests for GeminiGenerator with the model call replaced."""

    def test_init_when_no_key_then_raises(self):
        with pytest.raises(ValueError, match="API key"):
            GeminiGenerator("")

    def test_generate_sends_pdf_part_and_instruction(self):
        # Arrange
        generator = GeminiGenerator("test-key")
        generator._model = FakeModel(FakeResponse('[{"questionNumber": "1"}]'))

        # Act
        text = asyncio.run(generator.generate(b"%PDF-1.7", "Extract", response_schema={"type": "array"}))

        # Assert
        assert text == '[{"questionNumber": "1"}]'
        contents, config = generator._model.requests[0]
        assert contents[0] == {"mime_type": "application/pdf", "data": b"%PDF-1.7"}
        assert contents[1] == "Extract"
        assert config.response_mime_type == "application/json"

    def test_generate_when_blocked_then_returns_empty_text(self):
        generator = GeminiGenerator("test-key")
        generator._model = FakeModel(FakeResponse(None))
        assert asyncio.run(generator.generate(b"%PDF", "Extract")) == ""

    def test_generate_when_quota_exceeded_then_rate_limited(self):
        generator = GeminiGenerator("test-key")
        generator._model = FakeModel(google_exceptions.ResourceExhausted("quota"))
        with pytest.raises(RateLimitedError):
            asyncio.run(generator.generate(b"%PDF", "Extract"))


def test_gemini_embedder_rejects_bad_dimensions():
    with pytest.raises(ValueError, match="dimensions"):
        GeminiEmbedder("test-key", dimensions=0)

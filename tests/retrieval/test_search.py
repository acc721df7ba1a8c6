"""
Tests for retrieval.search

Test Coverage:
- format_context(): section layout, ordering, budget, sentinel
- SearchService.search(): validation and ranking
- SearchService.context_for(): degrades to the sentinel, never raises
"""

import asyncio

import pytest

from conftest import FakeEmbedder
from pastpaper_rag.core.models import Difficulty, QuestionRecord, ScoredResult, SearchFilters, StoredQuestion
from pastpaper_rag.indexing.indexer import EmbeddingIndexer
from pastpaper_rag.retrieval.search import NO_CONTEXT_SENTINEL, SearchService, format_context, format_result


def _result(number="1(a)", score=0.9, **metadata):
    base = {
        "year": 2021,
        "paper": "s21",
        "question_number": number,
        "topic": "Mechanics",
        "marks": 3,
        "text": "Define acceleration.",
        "mark_scheme": "Rate of change of velocity.",
    }
    base.update(metadata)
    return ScoredResult(id=f"id-{number}", score=score, metadata=base)


def _stored(number, text, topic="Mechanics", year=2021, paper="s21"):
    record = QuestionRecord(
        question_number=number,
        text=text,
        marks=2,
        topic=topic,
        difficulty=Difficulty.EASY,
        mark_scheme=f"Scheme {number}",
    )
    return StoredQuestion.from_record(record, year=year, paper=paper)


# ─────────────────────────────────────────────────────────────────────────────
# Formatting
# ─────────────────────────────────────────────────────────────────────────────


class TestFormatContext:
    """Tests for format_result() and format_context()."""

    def test_format_result_layout(self):
        text = format_result(_result(), 1)
        assert text == (
            "--- Question 1 (2021 s21 Q1(a), Mechanics, 3 marks) ---\n"
            "Question: Define acceleration.\n"
            "\n"
            "Mark Scheme: Rate of change of velocity."
        )

    def test_format_result_includes_examiner_remarks_when_present(self):
        text = format_result(_result(examiner_remarks="Units were often omitted."), 2)
        assert text.endswith("\n\nExaminer Remarks: Units were often omitted.")

    def test_format_context_numbers_sections_in_order(self):
        # Act
        context = format_context([_result("1(a)"), _result("2(b)", score=0.5)])

        # Assert
        sections = context.split("\n\n--- ")
        assert len(sections) == 2
        assert context.startswith("--- Question 1 (2021 s21 Q1(a)")
        assert "--- Question 2 (2021 s21 Q2(b)" in context

    def test_format_context_when_no_results_then_sentinel(self):
        assert format_context([]) == NO_CONTEXT_SENTINEL

    def test_format_context_stops_at_budget(self):
        # Arrange
        results = [_result(str(n)) for n in range(1, 6)]
        one_section = len(format_result(results[0], 1))

        # Act
        context = format_context(results, max_chars=one_section * 2 + 10)

        # Assert
        assert len(context) <= one_section * 2 + 10
        assert context.count("--- Question ") == 2

    def test_format_context_clips_oversized_first_section(self):
        context = format_context([_result(text="x" * 5000)], max_chars=300)
        assert len(context) <= 300
        assert context.endswith("[...]")

    @pytest.mark.parametrize("max_chars", [1, 3, 6])
    def test_format_context_when_budget_below_marker_then_stays_within_budget(self, max_chars):
        context = format_context([_result()], max_chars=max_chars)
        assert len(context) == max_chars
        assert "[...]" not in context

    def test_format_context_clips_long_fields(self):
        context = format_context([_result(mark_scheme="m" * 3000)], max_field_chars=100)
        assert "m" * 101 not in context


# ─────────────────────────────────────────────────────────────────────────────
# Search
# ─────────────────────────────────────────────────────────────────────────────


class TestSearchService:
    """Tests for SearchService."""

    def test_search_when_blank_query_then_raises(self, indexer):
        with pytest.raises(ValueError, match="blank"):
            asyncio.run(SearchService(indexer).search("  "))

    def test_search_when_top_k_zero_then_raises(self, indexer):
        with pytest.raises(ValueError, match="top_k"):
            asyncio.run(SearchService(indexer).search("velocity", top_k=0))

    def test_search_returns_nearest_first_and_respects_top_k(self, indexer):
        # Arrange
        questions = [
            _stored("1", "Define acceleration."),
            _stored("2", "State Newton's second law."),
            _stored("3", "Explain terminal velocity."),
        ]
        asyncio.run(indexer.index_questions(questions))
        service = SearchService(indexer)

        # Act
        results = asyncio.run(service.search("Explain terminal velocity.", top_k=2))

        # Assert
        assert len(results) == 2
        assert results[0].id == questions[2].id

    def test_search_with_filters(self, indexer):
        # Arrange
        asyncio.run(
            indexer.index_questions(
                [_stored("1", "Define acceleration."), _stored("1", "Define a wave.", topic="Waves", paper="s22")]
            )
        )

        # Act
        results = asyncio.run(
            SearchService(indexer).search("Define acceleration.", filters=SearchFilters(topic="Waves"))
        )

        # Assert
        assert [r.metadata["paper"] for r in results] == ["s22"]

    def test_context_for_when_index_empty_then_sentinel(self, indexer):
        """Zero matching vectors produce the sentinel, not an empty string."""
        context = asyncio.run(SearchService(indexer).context_for("What is momentum?"))
        assert context == NO_CONTEXT_SENTINEL

    def test_context_for_when_filters_match_nothing_then_sentinel(self, indexer):
        asyncio.run(indexer.index_questions([_stored("1", "Define acceleration.")]))
        context = asyncio.run(
            SearchService(indexer).context_for("acceleration", filters=SearchFilters(year=1999))
        )
        assert context == NO_CONTEXT_SENTINEL

    def test_context_for_returns_formatted_context(self, indexer):
        asyncio.run(indexer.index_questions([_stored("4(a)", "Define momentum.")]))
        context = asyncio.run(SearchService(indexer).context_for("Define momentum."))
        assert context.startswith("--- Question 1 (2021 s21 Q4(a), Mechanics, 2 marks) ---")
        assert "Mark Scheme: Scheme 4(a)" in context

    def test_context_for_when_embedding_fails_then_sentinel(self, qdrant_index):
        # Arrange
        indexer = EmbeddingIndexer(FakeEmbedder(fail_on=lambda text: True), qdrant_index)

        # Act
        context = asyncio.run(SearchService(indexer).context_for("momentum"))

        # Assert
        assert context == NO_CONTEXT_SENTINEL

    def test_context_for_when_search_too_slow_then_sentinel(self, qdrant_index):
        # Arrange
        class SlowEmbedder(FakeEmbedder):
            async def embed(self, text):
                await asyncio.sleep(1)
                return await super().embed(text)

        indexer = EmbeddingIndexer(SlowEmbedder(), qdrant_index)

        # Act
        context = asyncio.run(SearchService(indexer).context_for("momentum", timeout=0.05))

        # Assert
        assert context == NO_CONTEXT_SENTINEL

    def test_context_for_when_collection_missing_then_sentinel(self, fake_embedder, qdrant_index):
        indexer = EmbeddingIndexer(fake_embedder, qdrant_index)
        assert asyncio.run(SearchService(indexer).context_for("momentum")) == NO_CONTEXT_SENTINEL

"""
Module: retrieval.search

Purpose:
    Serving-time semantic search over indexed questions. Embeds the query
    with the indexer's embedder (the same instance used at indexing
    time), runs a filtered nearest-neighbour query and formats the hits
    into a bounded context block for prompt injection.

Key Functions:
    - SearchService.search(): Ranked results for a query
    - format_context(): Results -> labeled, size-bounded text block
    - SearchService.context_for(): Search + format that never raises

Dependencies:
    - asyncio (std): Serving-path timeout
    - indexing.indexer: Shared embedder and index

Used By:
    - retrieval.prompt: System prompt assembly
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from pastpaper_rag.common.thresholds import RETRIEVAL_THRESHOLDS
from pastpaper_rag.core.models import ScoredResult, SearchFilters
from pastpaper_rag.indexing.indexer import EmbeddingIndexer

logger = logging.getLogger(__name__)

NO_CONTEXT_SENTINEL = "No relevant past paper questions found."

_TRUNCATION_MARK = " [...]"


def _clip(text: str, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    if limit <= len(_TRUNCATION_MARK):
        return text[:max(limit, 0)]
    return text[: limit - len(_TRUNCATION_MARK)].rstrip() + _TRUNCATION_MARK


def format_result(
    result: ScoredResult,
    position: int,
    *,
    max_field_chars: int = RETRIEVAL_THRESHOLDS.max_field_chars,
) -> str:
    """
    Render one hit as a labeled section.

    Example:
        --- Question 1 (2021 9702_s21 Q1(a), Mechanics, 3 marks) ---
        Question: Define acceleration.

        Mark Scheme: rate of change of velocity
    """
    m = result.metadata
    lines = [
        f"--- Question {position} ({m.get('year', '?')} {m.get('paper', '?')} "
        f"Q{m.get('question_number', '?')}, {m.get('topic', 'Unknown topic')}, "
        f"{m.get('marks', 0)} marks) ---",
        f"Question: {_clip(m.get('text', ''), max_field_chars)}",
        "",
        f"Mark Scheme: {_clip(m.get('mark_scheme', ''), max_field_chars)}",
    ]
    remarks = m.get("examiner_remarks")
    if remarks:
        lines.extend(["", f"Examiner Remarks: {_clip(remarks, max_field_chars)}"])
    return "\n".join(lines)


def format_context(
    results: Sequence[ScoredResult],
    max_chars: int = RETRIEVAL_THRESHOLDS.max_context_chars,
    *,
    max_field_chars: int = RETRIEVAL_THRESHOLDS.max_field_chars,
) -> str:
    """
    Format results into one bounded context block.

    Sections are added in the given order until the next one would push
    the block past ``max_chars``. A first section that is too long on its
    own is clipped, so any non-empty result list produces context.

    Returns:
        The context block, or NO_CONTEXT_SENTINEL for zero results.
    """
    if not results:
        return NO_CONTEXT_SENTINEL

    separator = "\n\n"
    sections: List[str] = []
    used = 0
    for position, result in enumerate(results, start=1):
        section = format_result(result, position, max_field_chars=max_field_chars)
        extra = len(section) + (len(separator) if sections else 0)
        if used + extra > max_chars:
            if not sections:
                sections.append(_clip(section, max_chars))
            else:
                logger.debug(f"Context budget reached after {len(sections)} of {len(results)} result(s)")
            break
        sections.append(section)
        used += extra
    return separator.join(sections)


class SearchService:
    """
    Query path over the vector index.

    Takes the EmbeddingIndexer rather than an embedder so queries are
    always embedded with the function used at indexing time.

    Example:
        >>> service = SearchService(indexer)
        >>> context = await service.context_for("explain terminal velocity")
    """

    def __init__(self, indexer: EmbeddingIndexer) -> None:
        self.indexer = indexer

    async def search(
        self,
        query: str,
        top_k: int = RETRIEVAL_THRESHOLDS.default_top_k,
        filters: Optional[SearchFilters] = None,
    ) -> List[ScoredResult]:
        """
        Nearest questions to a query.

        Returns:
            At most top_k results, highest score first

        Raises:
            ValueError: If query is blank or top_k < 1
            EmbeddingError: If the query cannot be embedded
        """
        if not query or not query.strip():
            raise ValueError("query cannot be blank")
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1: {top_k}")

        vector = await self.indexer.embed(query.strip())
        results = await self.indexer.index.query(vector, top_k, filters)
        results = sorted(results, key=lambda r: r.score, reverse=True)[:top_k]
        logger.debug(f"Search returned {len(results)} result(s) for {query[:60]!r}")
        return results

    async def context_for(
        self,
        query: str,
        top_k: int = RETRIEVAL_THRESHOLDS.context_top_k,
        filters: Optional[SearchFilters] = None,
        timeout: float = RETRIEVAL_THRESHOLDS.search_timeout_s,
        max_chars: int = RETRIEVAL_THRESHOLDS.max_context_chars,
    ) -> str:
        """
        Context block for a query; never raises.

        Any failure or a search slower than ``timeout`` seconds is logged
        and yields NO_CONTEXT_SENTINEL, so the caller's response goes
        ahead without retrieved context.
        """
        try:
            results = await asyncio.wait_for(self.search(query, top_k, filters), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Retrieval timed out after {timeout}s; continuing without context")
            return NO_CONTEXT_SENTINEL
        except Exception as e:
            logger.warning(f"Retrieval failed ({type(e).__name__}: {e}); continuing without context")
            return NO_CONTEXT_SENTINEL
        return format_context(results, max_chars)

"""
Module: core.capabilities

Purpose:
    Abstract interfaces for the external collaborators the pipeline calls:
    generation model, embedding model, vector index, question store and
    page rasterizer. Concrete clients are constructed once and injected,
    so tests substitute fakes without network access.

Key Classes:
    - GenerationCapability: Multimodal document -> text generation
    - EmbeddingCapability: Text -> fixed-length vector
    - VectorIndex: Upsert / query / scoped delete
    - QuestionStore: Natural-key persistence
    - PageRasterizer: PDF page -> PIL image
    - RateLimitedError, TransientGenerationError: Provider error taxonomy

Dependencies:
    - fitz (PyMuPDF): Document type for rasterization
    - PIL: Rendered page type

Used By:
    - providers.gemini, providers.qdrant
    - storage.question_store
    - extractor.utils.pdf
    - extractor.client, indexing.indexer, pipeline.orchestrator
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import fitz
from PIL import Image

from pastpaper_rag.core.models import (
    ScoredResult,
    SearchFilters,
    StoredQuestion,
    VectorRecord,
)


class RateLimitedError(Exception):
    """Provider refused the call because of quota or rate limits (HTTP 429)."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class TransientGenerationError(Exception):
    """Provider failed in a way that is worth retrying (5xx, unavailable)."""
    pass


class GenerationCapability(ABC):
    """Multimodal generation over a binary document."""

    @abstractmethod
    async def generate(
        self,
        payload: bytes,
        instruction: str,
        *,
        response_schema: Optional[dict] = None,
    ) -> str:
        """
        Generate text for a PDF payload.

        Args:
            payload: PDF bytes (one chunk)
            instruction: Extraction instruction
            response_schema: JSON schema to constrain output, when the
                provider supports structured output

        Returns:
            Raw response text (may still carry code fences)

        Raises:
            RateLimitedError: On quota / rate limit responses
            TransientGenerationError: On retryable provider failures
        """


class EmbeddingCapability(ABC):
    """Text embedding with a fixed output dimension."""

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Length of every vector this embedder returns."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """
        Embed one text.

        Raises:
            RateLimitedError: On quota / rate limit responses
        """


class VectorIndex(ABC):
    """Nearest-neighbour index with metadata payloads."""

    @abstractmethod
    async def ensure_collection(self, dimensions: int) -> None:
        """Create the collection if it does not exist yet."""

    @abstractmethod
    async def recreate(self, dimensions: int) -> None:
        """Drop and recreate the collection (full index rebuild)."""

    @abstractmethod
    async def upsert(self, records: Sequence[VectorRecord]) -> None:
        """Insert or overwrite records by id (one provider call)."""

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Optional[SearchFilters] = None,
    ) -> list[ScoredResult]:
        """
        Nearest neighbours of ``vector``.

        Returns:
            At most ``top_k`` results, highest score first
        """

    @abstractmethod
    async def delete_scope(self, year: int, paper: Optional[str] = None) -> None:
        """Delete every vector for a year, or for one paper of that year."""


class QuestionStore(ABC):
    """Persistent question store keyed by (year, paper, question_number)."""

    @abstractmethod
    async def find_by_natural_key(
        self, year: int, paper: str, question_number: str
    ) -> Optional[StoredQuestion]:
        """Stored question for the key, or None."""

    @abstractmethod
    async def create(self, stored: StoredQuestion) -> StoredQuestion:
        """
        Persist a new question.

        Raises:
            StoreError: If the natural key already exists or the write fails
        """

    @abstractmethod
    async def mark_indexed(self, ids: Sequence[str]) -> int:
        """Flag questions as indexed. Returns how many were updated."""

    @abstractmethod
    async def delete_many(self, year: int, paper: Optional[str] = None) -> int:
        """Delete a year (or one paper of it). Returns how many were deleted."""

    @abstractmethod
    async def list_scope(self, year: int, paper: Optional[str] = None) -> list[StoredQuestion]:
        """All stored questions of a year (or one paper of it), in write order."""


class PageRasterizer(ABC):
    """Renders one PDF page to pixels."""

    @abstractmethod
    def render_page(self, document: fitz.Document, page_index: int, scale: float) -> Image.Image:
        """
        Render a page.

        Args:
            document: Open PDF document
            page_index: 0-based page index
            scale: Zoom factor relative to 72 DPI

        Returns:
            RGB PIL Image of the whole page

        Raises:
            IndexError: If page_index is outside the document
        """

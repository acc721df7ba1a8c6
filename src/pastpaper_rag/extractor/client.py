"""
Module: extractor.client

Purpose:
    Turns PDF chunks into typed question and mark scheme records using a
    multimodal generation model. Model output is treated as an untrusted
    wire format: code fences are stripped, envelopes unwrapped, then the
    batch is validated strictly against the kind's JSON schema. One bad
    element rejects the whole batch and the chunk is retried.

Key Functions:
    - strip_code_fences(): Remove markdown fence wrapping
    - parse_json_batch(): Decode a response into a list of objects
    - StructuredExtractionClient.extract_questions(): One question chunk
    - StructuredExtractionClient.extract_mark_schemes(): One mark scheme chunk
    - StructuredExtractionClient.extract_document(): Whole document, chunk by chunk

Dependencies:
    - asyncio (std): Timeouts and backoff waits
    - core.schemas.validator: jsonschema validation
    - core.capabilities: Generation interface and provider errors

Used By:
    - pipeline.orchestrator
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from pastpaper_rag.common.labels import canonical_label, label_tokens
from pastpaper_rag.common.topics import resolve_topic_label
from pastpaper_rag.core.capabilities import (
    GenerationCapability,
    RateLimitedError,
    TransientGenerationError,
)
from pastpaper_rag.core.models import (
    Difficulty,
    DocumentChunk,
    FigureRegion,
    MarkSchemeRecord,
    QuestionRecord,
)
from pastpaper_rag.core.schemas import (
    MARK_SCHEME_BATCH_SCHEMA,
    QUESTION_BATCH_SCHEMA,
    ValidationError,
    load_schema,
    validate_batch,
)

from .chunker import split_document
from .config import ExtractionConfig
from .prompts import mark_scheme_instruction, question_instruction
from .utils.pdf import DocumentSource

logger = logging.getLogger(__name__)

ExtractedRecord = Union[QuestionRecord, MarkSchemeRecord]

_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*\n?(?P<body>.*?)\n?\s*```$", re.DOTALL)

# Envelope keys the model sometimes wraps the array in
_ENVELOPE_KEYS = ("questions", "markSchemes", "mark_schemes", "items", "results")


class DocumentKind(str, Enum):
    """Which record shape a document yields."""

    QUESTIONS = "questions"
    MARK_SCHEMES = "mark_schemes"


class ResponseFormatError(Exception):
    """Model response could not be parsed or failed validation."""

    def __init__(self, message: str, raw: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.raw = raw
        self.errors = errors or []


class ExtractionFailure(Exception):
    """A chunk could not be extracted after all retries."""

    def __init__(self, chunk_range: Tuple[int, int], cause: BaseException, attempts: int = 1):
        start, end = chunk_range
        super().__init__(
            f"Extraction failed for pages {start + 1}-{end} after {attempts} attempt(s): "
            f"{type(cause).__name__}: {cause}"
        )
        self.chunk_range = chunk_range
        self.cause = cause
        self.attempts = attempts


# ─────────────────────────────────────────────────────────────────────────────
# Response cleanup
# ─────────────────────────────────────────────────────────────────────────────


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code fence wrapping from a response.

    Example:
        >>> strip_code_fences('```json\\n[1, 2]\\n```')
        '[1, 2]'
        >>> strip_code_fences('[1, 2]')
        '[1, 2]'
    """
    cleaned = (text or "").strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        return match.group("body").strip()
    return cleaned


def parse_json_batch(text: str) -> List[Any]:
    """
    Decode a response into a list, unwrapping a single-key envelope.

    Accepts a bare array or an object such as ``{"questions": [...]}``.

    Raises:
        ResponseFormatError: If the text is not JSON or holds no array.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ResponseFormatError("Empty response", raw=text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"Response is not valid JSON: {e}", raw=text) from e

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in _ENVELOPE_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
    raise ResponseFormatError(
        f"Expected a JSON array, got {type(data).__name__}", raw=text
    )


# ─────────────────────────────────────────────────────────────────────────────
# Client
# ─────────────────────────────────────────────────────────────────────────────


class StructuredExtractionClient:
    """
    Extracts typed records from PDF chunks.

    Chunks are processed strictly one after another; every external call
    is bounded by ``generation_timeout_s`` and retried per the config's
    retry policy.

    Example:
        >>> client = StructuredExtractionClient(GeminiGenerator(api_key))
        >>> questions = await client.extract_document(path, DocumentKind.QUESTIONS)
    """

    def __init__(
        self,
        generator: GenerationCapability,
        config: Optional[ExtractionConfig] = None,
    ) -> None:
        self._generator = generator
        self._config = config or ExtractionConfig()
        self._question_instruction = question_instruction(self._config.topics)
        self._mark_scheme_instruction = mark_scheme_instruction()

    @property
    def config(self) -> ExtractionConfig:
        return self._config

    async def extract_questions(self, chunk: DocumentChunk) -> List[QuestionRecord]:
        """Extract question records from one chunk (figure pages made absolute)."""
        return await self._extract_with_retry(chunk, DocumentKind.QUESTIONS)

    async def extract_mark_schemes(self, chunk: DocumentChunk) -> List[MarkSchemeRecord]:
        """Extract mark scheme records from one chunk."""
        return await self._extract_with_retry(chunk, DocumentKind.MARK_SCHEMES)

    async def extract_document(
        self,
        document: DocumentSource,
        kind: DocumentKind,
        *,
        source: Optional[Path] = None,
    ) -> List[ExtractedRecord]:
        """
        Chunk a document and extract every chunk in page order.

        Args:
            document: Open document, PDF bytes, or path
            kind: Record shape to extract
            source: Path for logs when document is not a path

        Returns:
            Records of all chunks, in chunk order

        Raises:
            ExtractionFailure: If any chunk exhausts its retries. Records
                from earlier chunks are discarded with the document.
        """
        chunks = split_document(document, self._config.chunk_pages, source=source)
        name = chunks[0].source.name if chunks and chunks[0].source else "document"
        logger.info(f"Extracting {kind.value} from {name}: {len(chunks)} chunk(s)")

        records: List[ExtractedRecord] = []
        for index, chunk in enumerate(chunks):
            if index > 0 and self._config.chunk_delay_s > 0:
                await asyncio.sleep(self._config.chunk_delay_s)
            if kind is DocumentKind.QUESTIONS:
                batch: Sequence[ExtractedRecord] = await self.extract_questions(chunk)
            else:
                batch = await self.extract_mark_schemes(chunk)
            logger.debug(f"{name} {chunk.describe()}: {len(batch)} record(s)")
            records.extend(batch)

        logger.info(f"Extracted {len(records)} {kind.value} record(s) from {name}")
        return records

    # ─────────────────────────────────────────────────────────────────────────
    # Retry loop
    # ─────────────────────────────────────────────────────────────────────────

    async def _extract_with_retry(self, chunk: DocumentChunk, kind: DocumentKind) -> list:
        if kind is DocumentKind.QUESTIONS:
            instruction = self._question_instruction
            schema_name = QUESTION_BATCH_SCHEMA
        else:
            instruction = self._mark_scheme_instruction
            schema_name = MARK_SCHEME_BATCH_SCHEMA
        schema = load_schema(schema_name)

        attempts = self._config.retries + 1
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            try:
                raw = await asyncio.wait_for(
                    self._generator.generate(chunk.payload, instruction, response_schema=schema),
                    timeout=self._config.generation_timeout_s,
                )
                return self._parse(raw, chunk, kind, schema_name)
            except ResponseFormatError as e:
                last_error = e
                delay = self._config.parse_backoff_s
            except asyncio.TimeoutError as e:
                last_error = e
                delay = self._config.parse_backoff_s
            except RateLimitedError as e:
                last_error = e
                delay = max(self._config.rate_limit_delay(attempt), e.retry_after or 0.0)
            except TransientGenerationError as e:
                last_error = e
                delay = self._config.rate_limit_delay(attempt)
            except Exception as e:
                raise ExtractionFailure(chunk.page_range, e, attempts=attempt) from e

            if attempt < attempts:
                logger.warning(
                    f"{kind.value} {chunk.describe()} attempt {attempt}/{attempts} failed "
                    f"({type(last_error).__name__}: {last_error}); retrying in {delay:.0f}s"
                )
                if delay > 0:
                    await asyncio.sleep(delay)

        assert last_error is not None
        logger.error(f"{kind.value} {chunk.describe()} failed after {attempts} attempt(s)")
        raise ExtractionFailure(chunk.page_range, last_error, attempts=attempts) from last_error

    # ─────────────────────────────────────────────────────────────────────────
    # Parsing and normalization
    # ─────────────────────────────────────────────────────────────────────────

    def _parse(self, raw: str, chunk: DocumentChunk, kind: DocumentKind, schema_name: str) -> list:
        items = parse_json_batch(raw)
        try:
            validate_batch(items, schema_name)
        except ValidationError as e:
            raise ResponseFormatError(str(e), raw=raw, errors=e.errors) from e

        if kind is DocumentKind.QUESTIONS:
            return [self._to_question(item, index, chunk) for index, item in enumerate(items)]
        return [self._to_mark_scheme(item, index) for index, item in enumerate(items)]

    def _label(self, value: str, index: int) -> str:
        if not label_tokens(value):
            raise ResponseFormatError(f"[{index}] questionNumber is not a question label: {value!r}")
        return canonical_label(value)

    def _to_question(self, item: dict, index: int, chunk: DocumentChunk) -> QuestionRecord:
        question_number = self._label(item["questionNumber"], index)
        marks = int(item.get("marks") or 0)

        topic = resolve_topic_label(item["topic"], self._config.topics)
        if topic is None:
            raise ResponseFormatError(
                f"[{index}] {question_number}: topic {item['topic']!r} not in taxonomy"
            )

        figure = None
        if item.get("hasImage"):
            figure = self._figure_region(item, question_number, chunk)

        return QuestionRecord(
            question_number=question_number,
            text=item["text"].strip(),
            marks=marks,
            topic=topic,
            difficulty=Difficulty.parse(item.get("difficulty"), marks=marks),
            has_image=figure is not None,
            figure=figure,
        )

    def _figure_region(
        self, item: dict, question_number: str, chunk: DocumentChunk
    ) -> Optional[FigureRegion]:
        """Validated region with an absolute page, or None (question kept without figure)."""
        region = FigureRegion.try_parse(
            item.get("figureBoundingBox"),
            item.get("pageNumber"),
            min_span=self._config.min_region_span,
        )
        if region is not None:
            try:
                return region.with_page(chunk.to_absolute_page(region.page))
            except ValueError as e:
                logger.warning(f"{question_number}: figure page rejected ({e}); keeping question without image")
                return None

        logger.warning(
            f"{question_number}: invalid figure region "
            f"{item.get('figureBoundingBox')!r} on page {item.get('pageNumber')!r}; "
            f"keeping question without image"
        )
        return None

    def _to_mark_scheme(self, item: dict, index: int) -> MarkSchemeRecord:
        remarks = (item.get("examinerRemarks") or "").strip()
        return MarkSchemeRecord(
            question_number=self._label(item["questionNumber"], index),
            mark_scheme=item["markScheme"].strip(),
            examiner_remarks=remarks or None,
        )

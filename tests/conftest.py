import asyncio
import hashlib
import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import fitz
import numpy as np
import pytest
from qdrant_client import AsyncQdrantClient

# Add src to sys.path so we can import pastpaper_rag
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from pastpaper_rag.core.capabilities import EmbeddingCapability, GenerationCapability  # noqa: E402
from pastpaper_rag.extractor.config import ExtractionConfig  # noqa: E402
from pastpaper_rag.indexing.indexer import EmbeddingIndexer  # noqa: E402
from pastpaper_rag.providers.qdrant import QdrantVectorIndex  # noqa: E402
from pastpaper_rag.storage.question_store import JsonlQuestionStore  # noqa: E402


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────

Reply = Union[str, BaseException, list]


class FakeGenerator(GenerationCapability):
    """
    Scripted generation.

    Replies are consumed in call order, separately for question paper and
    mark scheme instructions. A reply may be a string, a list (sent as
    JSON), or an exception to raise. When a script runs out, "[]" is
    returned.
    """

    def __init__(
        self,
        question_replies: Sequence[Reply] = (),
        scheme_replies: Sequence[Reply] = (),
    ):
        self.question_replies: List[Reply] = list(question_replies)
        self.scheme_replies: List[Reply] = list(scheme_replies)
        self.calls: List[Dict] = []

    async def generate(self, payload, instruction, *, response_schema=None):
        kind = "questions" if "question paper" in instruction else "mark_schemes"
        self.calls.append(
            {
                "kind": kind,
                "pages": fitz.open(stream=payload, filetype="pdf").page_count,
                "schema": response_schema,
            }
        )
        replies = self.question_replies if kind == "questions" else self.scheme_replies
        if not replies:
            return "[]"
        reply = replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, list):
            return json.dumps(reply)
        return reply

    def calls_for(self, kind: str) -> List[Dict]:
        return [c for c in self.calls if c["kind"] == kind]


class FakeEmbedder(EmbeddingCapability):
    """Deterministic unit vectors seeded from a hash of the text."""

    def __init__(self, dimensions: int = 8, fail_on: Optional[Callable[[str], bool]] = None):
        self._dimensions = dimensions
        self.fail_on = fail_on
        self.texts: List[str] = []

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        self.texts.append(text)
        if self.fail_on is not None and self.fail_on(text):
            raise RuntimeError(f"embedding refused for {text[:20]!r}")
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        vector = np.random.default_rng(seed).normal(size=self._dimensions)
        return (vector / np.linalg.norm(vector)).tolist()


# ─────────────────────────────────────────────────────────────────────────────
# Record builders
# ─────────────────────────────────────────────────────────────────────────────


def question_item(number: str, marks: int = 2, topic: str = "Mechanics", **extra) -> dict:
    """One question element as the model returns it."""
    item = {
        "questionNumber": number,
        "text": f"Question {number} text.",
        "marks": marks,
        "topic": topic,
    }
    item.update(extra)
    return item


def scheme_item(number: str, **extra) -> dict:
    """One mark scheme element as the model returns it."""
    item = {"questionNumber": number, "markScheme": f"Scheme for {number}"}
    item.update(extra)
    return item


def write_pdf(path: Path, pages: int = 1, *, figure: bool = False) -> Path:
    """
    Write a small A4 PDF with one line of text per page.

    With ``figure`` a filled rectangle is drawn in the top half of each
    page so crops have visible content.
    """
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 72), f"Page {number}", fontsize=14)
        if figure:
            page.draw_rect(fitz.Rect(100, 150, 400, 350), color=(0, 0, 0), fill=(0.2, 0.4, 0.8))
    path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(path)
    doc.close()
    return path


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fast_extraction_config():
    """Extraction config with no waits."""
    return ExtractionConfig(
        chunk_pages=5,
        retries=2,
        parse_backoff_s=0,
        rate_limit_backoff_s=0,
        rate_limit_backoff_max_s=0,
        chunk_delay_s=0,
        generation_timeout_s=5,
    )


@pytest.fixture
def pdf_factory(tmp_path: Path):
    """Build PDFs under tmp_path: pdf_factory("name.pdf", pages=3)."""
    def _make(name: str, pages: int = 1, figure: bool = False) -> Path:
        return write_pdf(tmp_path / name, pages, figure=figure)
    return _make


@pytest.fixture
def fake_embedder():
    return FakeEmbedder(dimensions=8)


@pytest.fixture
def qdrant_index():
    """Real Qdrant index over the in-process local backend."""
    return QdrantVectorIndex(
        AsyncQdrantClient(location=":memory:"),
        "test_questions",
        payload_indexes=False,
    )


@pytest.fixture
def indexer(fake_embedder, qdrant_index):
    """EmbeddingIndexer with a ready collection (batch size 2)."""
    indexer = EmbeddingIndexer(fake_embedder, qdrant_index, batch_size=2)
    asyncio.run(indexer.ensure_ready())
    return indexer


@pytest.fixture
def question_store(tmp_path: Path):
    return JsonlQuestionStore(tmp_path / "data" / "questions.jsonl")

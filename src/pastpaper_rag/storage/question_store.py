"""
Module: storage.question_store

Purpose:
    JSONL-backed question store. One line per persisted question, keyed by
    (year, paper, question_number). The existence check and the append of
    create() happen under one exclusive file lock.

Key Classes:
    - JsonlQuestionStore: QuestionStore over a JSONL file
    - StoreError: Store read/write failure or duplicate natural key

Dependencies:
    - portalocker (via storage.file_locking)
    - asyncio (std): File I/O runs in a worker thread

Used By:
    - pipeline.orchestrator: Idempotency filter and persistence
    - pipeline.cli: Store construction
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import portalocker

from pastpaper_rag.core.capabilities import QuestionStore
from pastpaper_rag.core.models import StoredQuestion

from .file_locking import Record, locked_file, locked_read_jsonl, locked_rewrite_jsonl

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Question store read/write failure."""
    pass


def _in_scope(record: Record, year: int, paper: Optional[str]) -> bool:
    return record.get("year") == year and (paper is None or record.get("paper") == paper)


class JsonlQuestionStore(QuestionStore):
    """
    Question store backed by a single JSONL file.

    Attributes:
        path: JSONL file (created on first write)

    Example:
        >>> store = JsonlQuestionStore(Path("data/questions.jsonl"))
        >>> await store.find_by_natural_key(2021, "s21", "1(a)")
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonlQuestionStore({str(self.path)!r})"

    # ─────────────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────────────

    def _read_all(self) -> List[Record]:
        try:
            return locked_read_jsonl(self.path)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e

    async def find_by_natural_key(
        self, year: int, paper: str, question_number: str
    ) -> Optional[StoredQuestion]:
        records = await asyncio.to_thread(self._read_all)
        for record in records:
            if _in_scope(record, year, paper) and record.get("question_number") == question_number:
                return StoredQuestion.from_dict(record)
        return None

    async def list_scope(self, year: int, paper: Optional[str] = None) -> List[StoredQuestion]:
        records = await asyncio.to_thread(self._read_all)
        return [StoredQuestion.from_dict(r) for r in records if _in_scope(r, year, paper)]

    async def list_all(self) -> List[StoredQuestion]:
        """Every stored question, in write order."""
        records = await asyncio.to_thread(self._read_all)
        return [StoredQuestion.from_dict(r) for r in records]

    # ─────────────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────────────

    def _create(self, stored: StoredQuestion) -> None:
        year, paper, question_number = stored.natural_key
        try:
            with locked_file(self.path, 'r+', portalocker.LOCK_EX) as f:
                for line in f:
                    if not line.strip():
                        continue
                    record = json.loads(line)
                    if _in_scope(record, year, paper) and record.get("question_number") == question_number:
                        raise StoreError(f"Question already stored: {year} {paper} {question_number}")
                f.seek(0, 2)
                f.write(json.dumps(stored.to_dict(), ensure_ascii=False) + '\n')
                f.flush()
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e

    async def create(self, stored: StoredQuestion) -> StoredQuestion:
        await asyncio.to_thread(self._create, stored)
        logger.debug(f"Stored {stored!r}")
        return stored

    def _rewrite(self, modifier) -> List[Record]:
        try:
            return locked_rewrite_jsonl(self.path, modifier)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot rewrite {self.path}: {e}") from e

    async def mark_indexed(self, ids: Sequence[str]) -> int:
        wanted = set(ids)
        if not wanted:
            return 0
        updated = 0

        def modifier(records: List[Record]) -> List[Record]:
            nonlocal updated
            for record in records:
                if record.get("id") in wanted and not record.get("indexed"):
                    record["indexed"] = True
                    updated += 1
            return records

        await asyncio.to_thread(self._rewrite, modifier)
        return updated

    async def delete_many(self, year: int, paper: Optional[str] = None) -> int:
        if not self.path.exists():
            return 0
        deleted = 0

        def modifier(records: List[Record]) -> List[Record]:
            nonlocal deleted
            kept = [r for r in records if not _in_scope(r, year, paper)]
            deleted = len(records) - len(kept)
            return kept

        await asyncio.to_thread(self._rewrite, modifier)
        logger.info(f"Deleted {deleted} stored question(s) for {year} {paper or '(all papers)'}")
        return deleted

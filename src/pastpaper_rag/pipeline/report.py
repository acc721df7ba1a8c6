"""
Module: pipeline.report

Purpose:
    Result records for ingestion: IngestReport for one document set and
    RunSummary for a whole run, plus the best-effort writer for
    ``_reports/last_run.json``.

Key Classes:
    - Stage: Pipeline state of a document set
    - IngestReport: Counts, ids, failures and timings for one set
    - RunSummary: Reports of every set in a run

Key Functions:
    - save_run_summary(): Write last_run.json without failing the run

Dependencies:
    - storage.file_locking: Locked JSON write
    - common.best_effort: Non-critical side effect helper

Used By:
    - pipeline.orchestrator
    - pipeline.cli
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pastpaper_rag.common.best_effort import attempt_non_critical
from pastpaper_rag.extractor.merge import UnmatchedLabels
from pastpaper_rag.storage.file_locking import locked_write_json

from .timing import TimingLog

logger = logging.getLogger(__name__)

LAST_RUN_FILENAME = "last_run.json"


class Stage(str, Enum):
    """Pipeline state of a document set."""

    DISCOVERED = "discovered"
    EXTRACTING = "extracting"
    MERGING = "merging"
    PERSISTING = "persisting"
    INDEXING = "indexing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class IngestReport:
    """
    Result of ingesting one document set.

    Attributes:
        year, paper: Scope
        stage: Last stage reached (COMPLETE or FAILED)
        failed_stage: Stage that failed, if any
        error: Error message, if any
        questions_extracted: Question records from the question paper
        schemes_extracted: Mark scheme records from the mark scheme
        questions_merged: Records after merge, dedup and pruning
        persisted_ids: Ids of questions written in this run
        skipped_existing: Labels already in the store
        figure_failures: Labels whose figure could not be cropped
        write_failures: Label -> error for questions that failed to persist
        indexed_ids: Ids upserted to the vector index in this run
        unmatched: Labels present in only one stream
        timings: Stage and question timings
    """
    year: int
    paper: str
    stage: Stage = Stage.DISCOVERED
    failed_stage: Optional[Stage] = None
    error: Optional[str] = None
    questions_extracted: int = 0
    schemes_extracted: int = 0
    questions_merged: int = 0
    persisted_ids: List[str] = field(default_factory=list)
    skipped_existing: List[str] = field(default_factory=list)
    figure_failures: List[str] = field(default_factory=list)
    write_failures: Dict[str, str] = field(default_factory=dict)
    indexed_ids: List[str] = field(default_factory=list)
    unmatched: UnmatchedLabels = field(default_factory=UnmatchedLabels)
    timings: TimingLog = field(default_factory=TimingLog)

    @property
    def label(self) -> str:
        return f"{self.year} {self.paper}"

    @property
    def succeeded(self) -> bool:
        return self.stage is Stage.COMPLETE

    def advance(self, stage: Stage) -> None:
        logger.debug(f"{self.label}: {self.stage.value} -> {stage.value}")
        self.stage = stage

    def fail(self, error: BaseException) -> None:
        """Record a failure in the current stage."""
        self.failed_stage = self.stage
        self.error = f"{type(error).__name__}: {error}"
        self.stage = Stage.FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        result: Dict[str, Any] = {
            "year": self.year,
            "paper": self.paper,
            "stage": self.stage.value,
            "questions_extracted": self.questions_extracted,
            "schemes_extracted": self.schemes_extracted,
            "questions_merged": self.questions_merged,
            "persisted": len(self.persisted_ids),
            "persisted_ids": list(self.persisted_ids),
            "skipped_existing": list(self.skipped_existing),
            "indexed": len(self.indexed_ids),
            "figure_failures": list(self.figure_failures),
            "write_failures": dict(self.write_failures),
            "unmatched": self.unmatched.to_dict(),
            "timings": self.timings.to_dict(),
        }
        if self.failed_stage is not None:
            result["failed_stage"] = self.failed_stage.value
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class RunSummary:
    """Reports of every document set processed in one run."""
    reports: List[IngestReport] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def failed(self) -> List[IngestReport]:
        return [r for r in self.reports if not r.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.failed

    @property
    def persisted_count(self) -> int:
        return sum(len(r.persisted_ids) for r in self.reports)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at,
            "document_sets": len(self.reports),
            "failed": [r.label for r in self.failed],
            "persisted": self.persisted_count,
            "reports": [r.to_dict() for r in self.reports],
        }


def save_run_summary(summary: RunSummary, reports_dir: Path) -> bool:
    """
    Write ``<reports_dir>/last_run.json``; a failure is logged, never raised.

    Returns:
        True if the file was written
    """
    path = reports_dir / LAST_RUN_FILENAME
    written = attempt_non_critical("write run summary", locked_write_json, path, summary.to_dict())
    if written:
        logger.debug(f"Wrote run summary to {path}")
    return written

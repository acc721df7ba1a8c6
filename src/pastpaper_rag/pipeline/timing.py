"""
Module: pipeline.timing

Purpose:
    Timing instrumentation for ingestion: wall-clock time per pipeline
    stage of a document set, and per-question persistence time.

Key Classes:
    - TimingLog: Collects stage and question timings

Key Functions:
    - timed_phase: Context manager for timing code blocks

Dependencies:
    - time (std)
    - contextlib (std)
    - dataclasses (std)

Used By:
    - pipeline.orchestrator: Per document set timings
    - pipeline.report: Serialized into IngestReport
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TimingLog:
    """
    Timing metrics for one document set.

    Attributes:
        stage_timings: stage name -> seconds (repeated stages accumulate)
        question_timings: question number -> seconds spent persisting it

    Example:
        >>> log = TimingLog()
        >>> log.log_stage("extracting", 41.2)
        >>> log.log_question("1(a)", 0.031)
        >>> print(log.summary())
    """
    stage_timings: Dict[str, float] = field(default_factory=dict)
    question_timings: Dict[str, float] = field(default_factory=dict)

    def log_stage(self, stage: str, duration: float) -> None:
        """Add time to a stage."""
        self.stage_timings[stage] = self.stage_timings.get(stage, 0.0) + duration

    def log_question(self, question_number: str, duration: float) -> None:
        """Record persistence time for one question."""
        self.question_timings[question_number] = duration

    @property
    def total(self) -> float:
        return sum(self.stage_timings.values())

    def get_slowest_questions(self, n: int = 3) -> List[Tuple[str, float]]:
        """The N questions that took longest to persist."""
        ranked = sorted(self.question_timings.items(), key=lambda item: item[1], reverse=True)
        return ranked[:n]

    def summary(self) -> str:
        """Generate human-readable timing summary."""
        lines = ["", "=== Ingestion Timing Summary ==="]
        for stage, duration in self.stage_timings.items():
            lines.append(f"  {stage:15s} {duration:8.3f}s")
        lines.append(f"  {'total':15s} {self.total:8.3f}s")

        slowest = self.get_slowest_questions(3)
        if slowest:
            lines.append("")
            lines.append("Slowest questions to persist:")
            for question_number, duration in slowest:
                lines.append(f"  {question_number}: {duration:.3f}s")

        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export timing data as dictionary."""
        return {
            "stage_timings": dict(self.stage_timings),
            "total": self.total,
            "slowest_questions": [
                {"question_number": q, "seconds": d} for q, d in self.get_slowest_questions(5)
            ],
        }


@contextmanager
def timed_phase(
    log: TimingLog,
    phase: str,
    question_number: Optional[str] = None,
) -> Generator[None, None, None]:
    """
    Context manager for timing a code phase.

    Args:
        log: TimingLog instance to record metrics
        phase: Stage name (ignored for question-level timings)
        question_number: If provided, records a question-level metric;
            otherwise adds to the stage timing

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "merging"):
        ...     merged = merge(questions, schemes)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if question_number:
            log.log_question(question_number, elapsed)
        else:
            log.log_stage(phase, elapsed)

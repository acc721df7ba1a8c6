"""
Module: pipeline.orchestrator

Purpose:
    Drives one document set through the ingestion state machine

        DISCOVERED -> EXTRACTING -> MERGING -> PERSISTING -> INDEXING -> COMPLETE

    with FAILED reachable from any stage, and runs many sets one after
    another. Each set is an independent unit of work: a failed set is
    logged and reported, the run moves on.

Key Classes:
    - IngestionOrchestrator: Extraction, merge, persistence and indexing
    - IngestionError: A document set failed in a given stage

Dependencies:
    - extractor: Chunked extraction, merge, figure cropping
    - storage: Question store (idempotent by natural key)
    - indexing: Embeddings and vector upserts

Used By:
    - pipeline.cli
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import fitz

from pastpaper_rag.core.capabilities import PageRasterizer, QuestionStore
from pastpaper_rag.core.models import QuestionRecord, StoredQuestion
from pastpaper_rag.extractor.client import DocumentKind, StructuredExtractionClient
from pastpaper_rag.extractor.figures import crop_figure, figure_url
from pastpaper_rag.extractor.merge import merge, unmatched_labels
from pastpaper_rag.extractor.utils.pdf import open_document
from pastpaper_rag.indexing.indexer import EmbeddingIndexer

from .config import IngestConfig
from .discovery import DocumentSet
from .report import IngestReport, RunSummary, Stage, save_run_summary
from .timing import timed_phase

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """A document set failed; ``report`` holds everything done before the failure."""

    def __init__(self, stage: Stage, report: IngestReport):
        self.stage = stage
        self.report = report
        super().__init__(f"{report.label} failed during {stage.value}: {report.error}")


class IngestionOrchestrator:
    """
    Sequential ingestion of past paper document sets.

    All collaborators are injected so tests can run the whole pipeline
    against fakes and local backends.

    Example:
        >>> orchestrator = IngestionOrchestrator(client, store, indexer, PyMuPDFRasterizer(), config)
        >>> summary = await orchestrator.run(discover_document_sets(config.data_dir))
        >>> summary.succeeded
        True
    """

    def __init__(
        self,
        extraction_client: StructuredExtractionClient,
        store: QuestionStore,
        indexer: EmbeddingIndexer,
        rasterizer: PageRasterizer,
        config: Optional[IngestConfig] = None,
    ) -> None:
        self.extraction_client = extraction_client
        self.store = store
        self.indexer = indexer
        self.rasterizer = rasterizer
        self.config = config or IngestConfig()
        self._index_ready = False

    # ─────────────────────────────────────────────────────────────────────────
    # Index lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    async def prepare_index(self, recreate: bool = False) -> None:
        """Create the vector collection if missing, or drop and recreate it."""
        if recreate:
            await self.indexer.rebuild()
        else:
            await self.indexer.ensure_ready()
        self._index_ready = True

    async def reset_scope(self, year: int, paper: Optional[str] = None) -> int:
        """
        Delete a scope from the store and the vector index.

        Returns:
            Number of stored questions deleted
        """
        deleted = await self.store.delete_many(year, paper)
        await self.indexer.delete_scope(year, paper)
        logger.info(
            f"Reset {year} {paper or '(all papers)'}: {deleted} question(s) removed",
            extra={"year": year, "paper": paper, "deleted": deleted},
        )
        return deleted

    # ─────────────────────────────────────────────────────────────────────────
    # One document set
    # ─────────────────────────────────────────────────────────────────────────

    async def ingest_document_set(self, document_set: DocumentSet) -> IngestReport:
        """
        Ingest one question paper / mark scheme pair.

        Returns:
            Report in stage COMPLETE

        Raises:
            IngestionError: With the report in stage FAILED; questions
                persisted before the failure stay persisted.
        """
        report = IngestReport(year=document_set.year, paper=document_set.paper)
        logger.info(
            f"Ingesting {document_set.label}",
            extra={
                "year": document_set.year,
                "paper": document_set.paper,
                "question_paper": str(document_set.question_paper),
                "mark_scheme": str(document_set.mark_scheme),
            },
        )
        try:
            questions, schemes = await self._extract(document_set, report)

            report.advance(Stage.MERGING)
            with timed_phase(report.timings, Stage.MERGING.value):
                report.unmatched = unmatched_labels(questions, schemes)
                merged = merge(questions, schemes)
                report.questions_merged = len(merged)
            if not report.unmatched.is_empty:
                logger.warning(
                    f"{report.label}: unmatched labels",
                    extra={"year": report.year, "paper": report.paper, **report.unmatched.to_dict()},
                )

            report.advance(Stage.PERSISTING)
            with timed_phase(report.timings, Stage.PERSISTING.value):
                await self._persist(document_set, merged, report)

            report.advance(Stage.INDEXING)
            with timed_phase(report.timings, Stage.INDEXING.value):
                await self._index_pending(report)

            report.advance(Stage.COMPLETE)
        except Exception as e:
            stage = report.stage
            report.fail(e)
            logger.error(
                f"{report.label} failed during {stage.value}: {e}",
                extra={"year": report.year, "paper": report.paper, "stage": stage.value},
            )
            raise IngestionError(stage, report) from e

        logger.debug(report.timings.summary())
        logger.info(
            f"Completed {report.label}: {len(report.persisted_ids)} new, "
            f"{len(report.skipped_existing)} existing, {len(report.indexed_ids)} indexed",
            extra={
                "year": report.year,
                "paper": report.paper,
                "persisted": len(report.persisted_ids),
                "indexed": len(report.indexed_ids),
                "figure_failures": len(report.figure_failures),
                "write_failures": len(report.write_failures),
            },
        )
        return report

    async def _extract(self, document_set: DocumentSet, report: IngestReport):
        report.advance(Stage.EXTRACTING)
        with timed_phase(report.timings, Stage.EXTRACTING.value):
            questions = await self.extraction_client.extract_document(
                document_set.question_paper, DocumentKind.QUESTIONS
            )
            report.questions_extracted = len(questions)

            if self.config.pacing.stage_delay_s > 0:
                await asyncio.sleep(self.config.pacing.stage_delay_s)

            schemes = await self.extraction_client.extract_document(
                document_set.mark_scheme, DocumentKind.MARK_SCHEMES
            )
            report.schemes_extracted = len(schemes)
        return questions, schemes

    async def _persist(
        self,
        document_set: DocumentSet,
        merged: Sequence[QuestionRecord],
        report: IngestReport,
    ) -> None:
        pending: List[QuestionRecord] = []
        for record in merged:
            existing = await self.store.find_by_natural_key(
                document_set.year, document_set.paper, record.question_number
            )
            if existing is not None:
                report.skipped_existing.append(record.question_number)
            else:
                pending.append(record)

        if report.skipped_existing:
            logger.info(f"{report.label}: {len(report.skipped_existing)} question(s) already stored")

        document = None
        if any(record.has_image for record in pending):
            document = open_document(document_set.question_paper)
        try:
            for record in pending:
                with timed_phase(report.timings, Stage.PERSISTING.value, record.question_number):
                    await self._persist_one(document_set, record, document, report)
        finally:
            if document is not None:
                document.close()

    async def _persist_one(
        self,
        document_set: DocumentSet,
        record: QuestionRecord,
        document: Optional[fitz.Document],
        report: IngestReport,
    ) -> None:
        image_url = None
        if record.has_image and record.figure is not None and document is not None:
            path = self._crop(document_set, record, document)
            if path is None:
                report.figure_failures.append(record.question_number)
            else:
                image_url = figure_url(path, self.config.image_url_prefix)

        stored = StoredQuestion.from_record(
            record, year=document_set.year, paper=document_set.paper, image_url=image_url
        )
        try:
            await self.store.create(stored)
        except Exception as e:
            logger.warning(
                f"{report.label}: could not store question {record.question_number}: {e}",
                extra={"year": report.year, "paper": report.paper, "question_number": record.question_number},
            )
            report.write_failures[record.question_number] = str(e)
            return
        report.persisted_ids.append(stored.id)

    def _crop(
        self,
        document_set: DocumentSet,
        record: QuestionRecord,
        document: fitz.Document,
    ) -> Optional[Path]:
        try:
            return crop_figure(
                document,
                record.figure.page,
                record.figure,
                output_dir=self.config.images_dir,
                year=document_set.year,
                paper=document_set.paper,
                question_number=record.question_number,
                config=self.config.figures,
                rasterizer=self.rasterizer,
            )
        except Exception as e:
            logger.warning(f"{document_set.label} {record.question_number}: figure crop failed: {e}")
            return None

    async def _index_pending(self, report: IngestReport) -> None:
        if not self._index_ready:
            await self.prepare_index()

        unindexed = [q for q in await self.store.list_scope(report.year, report.paper) if not q.indexed]
        if not unindexed:
            logger.info(f"{report.label}: nothing to index")
            return

        ids = await self.indexer.index_questions(unindexed)
        await self.store.mark_indexed(ids)
        report.indexed_ids.extend(ids)

    # ─────────────────────────────────────────────────────────────────────────
    # Many document sets
    # ─────────────────────────────────────────────────────────────────────────

    async def run(self, document_sets: Sequence[DocumentSet], test_mode: bool = False) -> RunSummary:
        """
        Ingest document sets one after another.

        Args:
            document_sets: Sets to ingest, in order
            test_mode: Only ingest the first set and re-raise its failure

        Returns:
            RunSummary with one report per attempted set

        Raises:
            IngestionError: Only in test mode
        """
        if test_mode:
            document_sets = list(document_sets)[:1]
            logger.info("Test mode: ingesting the first document set only")

        summary = RunSummary()
        try:
            for position, document_set in enumerate(document_sets):
                if position > 0 and self.config.pacing.set_delay_s > 0:
                    await asyncio.sleep(self.config.pacing.set_delay_s)
                try:
                    report = await self.ingest_document_set(document_set)
                except IngestionError as e:
                    summary.reports.append(e.report)
                    if test_mode:
                        raise
                    continue
                summary.reports.append(report)
        finally:
            save_run_summary(summary, self.config.reports_dir)

        logger.info(
            f"Run finished: {len(summary.reports)} set(s), {len(summary.failed)} failed, "
            f"{summary.persisted_count} question(s) stored",
            extra={"failed": [r.label for r in summary.failed]},
        )
        return summary

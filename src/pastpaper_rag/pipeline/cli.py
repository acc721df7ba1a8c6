"""
Module: pipeline.cli

Purpose:
    Command line entry point ``pastpaper-ingest`` (also ``python -m
    pastpaper_rag``). Loads ``.env``, builds the Gemini, Qdrant and JSONL
    collaborators from IngestConfig, discovers document sets and runs the
    orchestrator.

Exit codes:
    0  every document set completed
    1  at least one document set failed
    2  configuration error

Used By:
    - pyproject console script
    - pastpaper_rag.__main__
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from qdrant_client import AsyncQdrantClient

from pastpaper_rag.extractor.client import StructuredExtractionClient
from pastpaper_rag.extractor.utils.pdf import PyMuPDFRasterizer
from pastpaper_rag.indexing.indexer import EmbeddingIndexer
from pastpaper_rag.providers.gemini import GeminiEmbedder, GeminiGenerator
from pastpaper_rag.providers.qdrant import QdrantVectorIndex
from pastpaper_rag.storage.question_store import JsonlQuestionStore

from .config import ConfigError, IngestConfig
from .discovery import discover_document_sets
from .orchestrator import IngestionError, IngestionOrchestrator

logger = logging.getLogger(__name__)

LOCAL_QDRANT = ":memory:"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pastpaper-ingest",
        description="Extract past paper questions, store them and index them for retrieval",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pastpaper-ingest --data-dir data/past-papers --exam-code 9702
  pastpaper-ingest --test -v
  pastpaper-ingest --reset 2021 9702_s21
""",
    )
    parser.add_argument("--data-dir", type=Path, help="Directory searched for past paper PDFs")
    parser.add_argument("--exam-code", help="Only ingest this 4-digit syllabus code")
    parser.add_argument(
        "--test",
        action="store_true",
        help="Ingest the first document set only and stop on its failure",
    )
    parser.add_argument(
        "--reset",
        nargs="+",
        metavar=("YEAR", "PAPER"),
        help="Delete a year (or year and paper) from the store and index before ingesting",
    )
    parser.add_argument(
        "--recreate-index",
        action="store_true",
        help="Drop and recreate the vector collection before ingesting",
    )
    parser.add_argument("--store", type=Path, help="JSONL question store path")
    parser.add_argument("--images-dir", type=Path, help="Directory for cropped figures")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def parse_reset(values: Optional[Sequence[str]]) -> Optional[tuple[int, Optional[str]]]:
    """
    Parse ``--reset YEAR [PAPER]``.

    Raises:
        ConfigError: If the year is not an integer or too many values are given

    Example:
        >>> parse_reset(["2021", "9702_s21"])
        (2021, '9702_s21')
    """
    if not values:
        return None
    if len(values) > 2:
        raise ConfigError(f"--reset takes YEAR [PAPER], got {' '.join(values)}")
    try:
        year = int(values[0])
    except ValueError as e:
        raise ConfigError(f"--reset year must be an integer: {values[0]!r}") from e
    paper = values[1] if len(values) == 2 else None
    return year, paper


def build_orchestrator(config: IngestConfig, qdrant: AsyncQdrantClient) -> IngestionOrchestrator:
    """Wire the production collaborators for ``config``."""
    generator = GeminiGenerator(
        config.gemini_api_key,
        config.generation_model,
        max_output_tokens=config.extraction.max_output_tokens,
    )
    embedder = GeminiEmbedder(
        config.gemini_api_key,
        config.embedding_model,
        dimensions=config.embedding_dimensions,
    )
    index = QdrantVectorIndex(
        qdrant,
        config.collection_name,
        payload_indexes=config.qdrant_url != LOCAL_QDRANT,
    )
    return IngestionOrchestrator(
        extraction_client=StructuredExtractionClient(generator, config.extraction),
        store=JsonlQuestionStore(config.store_path),
        indexer=EmbeddingIndexer(embedder, index, batch_size=config.index_batch_size),
        rasterizer=PyMuPDFRasterizer(),
        config=config,
    )


def open_qdrant(config: IngestConfig) -> AsyncQdrantClient:
    if config.qdrant_url == LOCAL_QDRANT:
        logger.warning("Using an in-memory Qdrant index; vectors are lost on exit")
        return AsyncQdrantClient(location=LOCAL_QDRANT)
    return AsyncQdrantClient(url=config.qdrant_url, api_key=config.qdrant_api_key)


async def run_ingestion(config: IngestConfig, args: argparse.Namespace) -> int:
    reset = parse_reset(args.reset)
    document_sets = discover_document_sets(config.data_dir, config.exam_code)
    if not document_sets and reset is None and not args.recreate_index:
        logger.warning(f"No document sets found under {config.data_dir}")
        return EXIT_OK

    qdrant = open_qdrant(config)
    try:
        orchestrator = build_orchestrator(config, qdrant)
        await orchestrator.prepare_index(recreate=args.recreate_index)
        if reset is not None:
            await orchestrator.reset_scope(*reset)
        try:
            summary = await orchestrator.run(document_sets, test_mode=args.test)
        except IngestionError as e:
            logger.error(f"Test run failed: {e}")
            return EXIT_FAILED
    finally:
        await qdrant.close()

    return EXIT_OK if summary.succeeded else EXIT_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    load_dotenv()

    try:
        config = IngestConfig.from_env().with_overrides(
            data_dir=args.data_dir,
            exam_code=args.exam_code,
            store_path=args.store,
            images_dir=args.images_dir,
        )
        config.require_credentials()
        parse_reset(args.reset)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG

    return asyncio.run(run_ingestion(config, args))


if __name__ == "__main__":
    sys.exit(main())

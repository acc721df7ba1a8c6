"""
Module: pipeline.config

Purpose:
    Configuration for an ingestion run: paths, model and index settings,
    pacing, plus the nested extraction and figure configs. Values come
    from dataclass defaults, environment variables (IngestConfig.from_env)
    and CLI overrides, in that order of precedence (last wins).

Key Classes:
    - PacingConfig: Courtesy delays between external calls
    - IngestConfig: Everything the CLI needs to build the pipeline
    - ConfigError: Invalid or missing configuration

Environment variables:
    GEMINI_API_KEY, GEMINI_MODEL, GEMINI_EMBEDDING_MODEL,
    EMBEDDING_DIMENSIONS, QDRANT_URL, QDRANT_API_KEY, QDRANT_COLLECTION,
    PASTPAPER_DATA_DIR, PASTPAPER_STORE, PASTPAPER_IMAGES_DIR,
    PASTPAPER_IMAGE_URL_PREFIX, PASTPAPER_EXAM_CODE

Used By:
    - pipeline.orchestrator: Pacing, figure settings, paths
    - pipeline.cli: Loads from environment
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from pastpaper_rag.common.thresholds import INDEX_THRESHOLDS, PACING_THRESHOLDS
from pastpaper_rag.extractor.config import ExtractionConfig, FigureConfig
from pastpaper_rag.extractor.figures import DEFAULT_URL_PREFIX
from pastpaper_rag.providers.qdrant import DEFAULT_COLLECTION


class ConfigError(Exception):
    """Invalid or missing configuration."""
    pass


@dataclass(frozen=True)
class PacingConfig:
    """
    Delays that keep request rates under provider limits.

    Attributes:
        stage_delay_s: Pause between question and mark scheme extraction
        set_delay_s: Pause between document sets
    """
    stage_delay_s: float = PACING_THRESHOLDS.stage_delay_s
    set_delay_s: float = PACING_THRESHOLDS.set_delay_s

    def __post_init__(self) -> None:
        if self.stage_delay_s < 0 or self.set_delay_s < 0:
            raise ValueError("Pacing delays must be >= 0")

    @classmethod
    def none(cls) -> PacingConfig:
        """No pauses (tests and local fakes)."""
        return cls(stage_delay_s=0.0, set_delay_s=0.0)


@dataclass(frozen=True)
class IngestConfig:
    """
    Configuration for an ingestion run.

    Attributes:
        data_dir: Root searched for past paper PDFs
        store_path: JSONL question store
        images_dir: Directory for cropped figures
        image_url_prefix: Prefix of the URL stored on each question
        exam_code: Only ingest this syllabus code (None = all)
        gemini_api_key: API key for generation and embeddings
        generation_model: Gemini model for extraction
        embedding_model: Gemini embedding model
        embedding_dimensions: Vector length (3072 for gemini-embedding-001)
        index_batch_size: Records per vector upsert call
        qdrant_url: Qdrant endpoint, or ":memory:" for a local index
        qdrant_api_key: Qdrant Cloud API key
        collection_name: Qdrant collection
        extraction: Chunking and retry settings
        figures: Cropping settings
        pacing: Delays between stages and document sets
    """
    data_dir: Path = Path("data/past-papers")
    store_path: Path = Path("data/questions.jsonl")
    images_dir: Path = Path("public/questions")
    image_url_prefix: str = DEFAULT_URL_PREFIX
    exam_code: Optional[str] = None
    gemini_api_key: str = field(default="", repr=False)
    generation_model: str = "gemini-2.0-flash"
    embedding_model: str = "models/gemini-embedding-001"
    embedding_dimensions: int = INDEX_THRESHOLDS.embedding_dimensions
    index_batch_size: int = INDEX_THRESHOLDS.upsert_batch_size
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: Optional[str] = field(default=None, repr=False)
    collection_name: str = DEFAULT_COLLECTION
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    figures: FigureConfig = field(default_factory=FigureConfig)
    pacing: PacingConfig = field(default_factory=PacingConfig)

    def __post_init__(self) -> None:
        if self.embedding_dimensions < 1:
            raise ConfigError(f"embedding_dimensions must be >= 1, got {self.embedding_dimensions}")
        if self.index_batch_size < 1:
            raise ConfigError(f"index_batch_size must be >= 1, got {self.index_batch_size}")
        if self.exam_code is not None and not (len(self.exam_code) == 4 and self.exam_code.isdigit()):
            raise ConfigError(f"exam_code must be 4 digits: {self.exam_code!r}")

    @property
    def reports_dir(self) -> Path:
        """Directory for run reports, beside the store."""
        return self.store_path.parent / "_reports"

    def with_overrides(self, **overrides: Any) -> IngestConfig:
        """Copy with the non-None overrides applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values) if values else self

    def require_credentials(self) -> None:
        """
        Raises:
            ConfigError: If no Gemini API key is configured
        """
        if not self.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY is not set")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> IngestConfig:
        """
        Build a config from environment variables.

        Args:
            env: Mapping to read (defaults to os.environ)

        Raises:
            ConfigError: If a numeric variable is not a number
        """
        env = os.environ if env is None else env
        values: dict[str, Any] = {}

        paths = {
            "PASTPAPER_DATA_DIR": "data_dir",
            "PASTPAPER_STORE": "store_path",
            "PASTPAPER_IMAGES_DIR": "images_dir",
        }
        for var, name in paths.items():
            if env.get(var):
                values[name] = Path(env[var])

        strings = {
            "PASTPAPER_IMAGE_URL_PREFIX": "image_url_prefix",
            "PASTPAPER_EXAM_CODE": "exam_code",
            "GEMINI_API_KEY": "gemini_api_key",
            "GEMINI_MODEL": "generation_model",
            "GEMINI_EMBEDDING_MODEL": "embedding_model",
            "QDRANT_URL": "qdrant_url",
            "QDRANT_API_KEY": "qdrant_api_key",
            "QDRANT_COLLECTION": "collection_name",
        }
        for var, name in strings.items():
            if env.get(var):
                values[name] = env[var].strip()

        if env.get("EMBEDDING_DIMENSIONS"):
            try:
                values["embedding_dimensions"] = int(env["EMBEDDING_DIMENSIONS"])
            except ValueError as e:
                raise ConfigError(
                    f"EMBEDDING_DIMENSIONS must be an integer: {env['EMBEDDING_DIMENSIONS']!r}"
                ) from e

        return cls(**values)

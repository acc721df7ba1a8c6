"""
Ingestion pipeline: discovery of document sets, the orchestrator state
machine, run reports and the ``pastpaper-ingest`` command.
"""

from .config import ConfigError, IngestConfig, PacingConfig
from .discovery import DocumentSet, discover_document_sets
from .orchestrator import IngestionError, IngestionOrchestrator
from .report import IngestReport, RunSummary, Stage
from .timing import TimingLog, timed_phase

__all__ = [
    "ConfigError",
    "DocumentSet",
    "IngestConfig",
    "IngestReport",
    "IngestionError",
    "IngestionOrchestrator",
    "PacingConfig",
    "RunSummary",
    "Stage",
    "TimingLog",
    "discover_document_sets",
    "timed_phase",
]

"""Top-level package for the past paper RAG pipeline.

Provides subpackages:
- pastpaper_rag.extractor – chunking, LLM extraction, merge and figure cropping
- pastpaper_rag.indexing – embeddings and batched vector upserts
- pastpaper_rag.retrieval – semantic search and prompt context formatting
- pastpaper_rag.pipeline – document discovery, orchestration and CLI
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    # In dev mode, read directly from pyproject.toml
    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"

    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.1"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    # Fallback to importlib.metadata for installed package
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("pastpaper-rag")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]

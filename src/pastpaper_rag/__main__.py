"""Allow ``python -m pastpaper_rag`` to run the ingestion CLI."""

import sys

from pastpaper_rag.pipeline.cli import main

if __name__ == "__main__":
    sys.exit(main())

"""
Module: storage.file_locking

Purpose:
    Locked JSON / JSONL file access for the question store and run
    reports. Uses portalocker for Mac, Windows and Linux compatibility.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_append_jsonl: Append one record under an exclusive lock
    - locked_read_jsonl: Read all records under a shared lock
    - locked_rewrite_jsonl: Read-filter-write all records under one lock
    - locked_write_json: Replace a JSON document under an exclusive lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.question_store: JSONL question records
    - pipeline.report: last_run.json
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import portalocker

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file (parent directories are created).
        mode: File open mode ('r', 'a', 'r+', ...).
        lock_type: LOCK_EX for exclusive, LOCK_SH for shared.

    Yields:
        Open file handle with lock held.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Read modes need the file to exist
    if ('r' in mode) and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def _parse_lines(path: Path, lines: List[str]) -> List[Record]:
    records: List[Record] = []
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise ValueError(f"{path.name}:{number}: invalid JSON line: {e}") from e
    return records


def locked_append_jsonl(path: Path, record: Record) -> None:
    """
    Append a record to a JSONL file with an exclusive lock.

    Example:
        >>> locked_append_jsonl(store_path, {"id": "...", "marks": 3})
    """
    with locked_file(path, 'a', portalocker.LOCK_EX) as f:
        f.write(json.dumps(record, ensure_ascii=False) + '\n')
        f.flush()

    logger.debug(f"Appended record to {path.name}")


def locked_read_jsonl(path: Path) -> List[Record]:
    """
    Read every record of a JSONL file under a shared lock.

    Returns:
        Records in file order; empty when the file does not exist.

    Raises:
        ValueError: If a line is not valid JSON.
    """
    if not path.exists():
        return []
    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        return _parse_lines(path, f.readlines())


def locked_rewrite_jsonl(
    path: Path,
    modifier: Callable[[List[Record]], List[Record]],
) -> List[Record]:
    """
    Read all records, apply modifier, write them back - all under one lock.

    Args:
        path: Path to JSONL file.
        modifier: Takes the current records, returns the records to keep.

    Returns:
        The records that were written.
    """
    with locked_file(path, 'r+', portalocker.LOCK_EX) as f:
        f.seek(0)
        existing = _parse_lines(path, f.readlines())

        modified = modifier(existing)

        f.seek(0)
        f.truncate()
        for record in modified:
            f.write(json.dumps(record, ensure_ascii=False) + '\n')
        f.flush()
        return modified


def locked_write_json(path: Path, data: Any) -> None:
    """Replace a JSON document under an exclusive lock."""
    with locked_file(path, 'r+', portalocker.LOCK_EX) as f:
        f.seek(0)
        f.truncate()
        json.dump(data, f, indent=2, ensure_ascii=False)

"""Explicit fire-and-forget helper for non-critical side effects.

Report files, timing dumps and similar bookkeeping must never block or fail
the primary path. Calling them through ``attempt_non_critical`` makes that
visible at the call site instead of hiding it in a bare ``try``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


def attempt_non_critical(description: str, action: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
    """
    Run ``action``; log and ignore any failure.

    Args:
        description: Short human-readable name for log messages.
        action: Callable to invoke.
        *args, **kwargs: Forwarded to ``action``.

    Returns:
        True if the action completed, False if it raised.

    Example:
        >>> attempt_non_critical("write run report", report.save, path)
        True
    """
    try:
        action(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Non-critical step failed ({description}): {e}")
        return False
    return True

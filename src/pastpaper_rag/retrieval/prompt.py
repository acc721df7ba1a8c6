"""System prompt assembly with retrieved past paper context."""

from __future__ import annotations

from .search import NO_CONTEXT_SENTINEL

CONTEXT_START = "--- RELEVANT PAST PAPER CONTEXT ---"
CONTEXT_END = "--- END CONTEXT ---"
CONTEXT_GUIDANCE = (
    "Use the above past paper questions and mark schemes to inform your responses where relevant."
)


def assemble_system_prompt(base_prompt: str, context: str) -> str:
    """
    Append a retrieved context block to a system prompt.

    The base prompt is returned unchanged when there is no context
    (empty or NO_CONTEXT_SENTINEL).

    Example:
        >>> assemble_system_prompt("You are a tutor.", NO_CONTEXT_SENTINEL)
        'You are a tutor.'
    """
    if not context or not context.strip() or context.strip() == NO_CONTEXT_SENTINEL:
        return base_prompt
    return f"{base_prompt}\n\n{CONTEXT_START}\n{context.strip()}\n{CONTEXT_END}\n\n{CONTEXT_GUIDANCE}"

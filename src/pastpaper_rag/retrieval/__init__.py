"""Serving-time retrieval: search, context formatting and prompt assembly."""

from pastpaper_rag.core.models import SearchFilters

from .prompt import assemble_system_prompt
from .search import NO_CONTEXT_SENTINEL, SearchService, format_context

__all__ = [
    "NO_CONTEXT_SENTINEL",
    "SearchFilters",
    "SearchService",
    "assemble_system_prompt",
    "format_context",
]

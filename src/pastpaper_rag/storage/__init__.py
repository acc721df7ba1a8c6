"""Persistence for extracted questions."""

from .question_store import JsonlQuestionStore, StoreError

__all__ = ["JsonlQuestionStore", "StoreError"]

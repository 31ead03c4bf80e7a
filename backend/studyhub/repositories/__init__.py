"""Repositories module for data access layer."""

from .flashcard_repository import (
    FlashcardRepository,
    get_flashcard_repository,
)
from .progress_repository import (
    ProgressRepository,
    get_progress_repository,
)

__all__ = [
    "FlashcardRepository",
    "get_flashcard_repository",
    "ProgressRepository",
    "get_progress_repository",
]

"""Models module for Pydantic schemas."""

from .flashcard import Flashcard, FlashcardSet
from .progress import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    ProgressRecord,
    ReviewStats,
    SchedulingState,
    state_for,
)
from .review import (
    Grade,
    RateRequest,
    RateResponse,
    ReviewSessionResponse,
    SessionPhase,
)

__all__ = [
    "Flashcard",
    "FlashcardSet",
    "DEFAULT_EASE_FACTOR",
    "DEFAULT_INTERVAL_DAYS",
    "MIN_EASE_FACTOR",
    "ProgressRecord",
    "ReviewStats",
    "SchedulingState",
    "state_for",
    "Grade",
    "RateRequest",
    "RateResponse",
    "ReviewSessionResponse",
    "SessionPhase",
]

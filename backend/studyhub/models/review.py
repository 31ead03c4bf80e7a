"""Models for the flashcard review endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from studyhub.srs.grading import Grade

from .flashcard import Flashcard
from .progress import ReviewStats, SchedulingState

SessionPhase = Literal["loading", "front", "back", "complete"]


class ReviewSessionResponse(BaseModel):
    """Snapshot of a review session as shown to the client."""

    topicId: str
    phase: SessionPhase
    position: int = Field(..., description="Index of the current card")
    total: int = Field(..., description="Number of cards in the queue")
    reviewed: int = Field(0, description="Ratings accepted so far")
    flipped: bool = False
    progress: float = Field(0.0, description="Fraction of the queue reached, 0-1")
    card: Flashcard | None = Field(None, description="Current card, None once complete")
    stats: ReviewStats
    failedWrites: list[str] = Field(default_factory=list, description="Cards whose progress write failed")


class RateRequest(BaseModel):
    """Body for POST /flashcards/{topic_id}/session/rate.

    Exactly one of grade or quality must be set.
    """

    grade: Grade | None = Field(None, description="Rating button pressed")
    quality: int | None = Field(None, description="Raw SM-2 quality (0-5)")

    @model_validator(mode="after")
    def _one_of_grade_or_quality(self) -> "RateRequest":
        if (self.grade is None) == (self.quality is None):
            raise ValueError("Provide exactly one of 'grade' or 'quality'")
        return self


class RateResponse(BaseModel):
    """Result of rating a card."""

    cardId: str
    quality: int
    state: SchedulingState
    session: ReviewSessionResponse

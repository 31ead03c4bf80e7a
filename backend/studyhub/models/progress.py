"""Per-user scheduling state and derived statistics."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone

from pydantic import BaseModel, Field


DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
DEFAULT_INTERVAL_DAYS = 1


def now_iso() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class SchedulingState(BaseModel):
    """SM-2 bookkeeping for one (user, card) pair."""

    easeFactor: float = Field(DEFAULT_EASE_FACTOR, ge=MIN_EASE_FACTOR, description="SM-2 ease factor (min 1.3)")
    intervalDays: int = Field(DEFAULT_INTERVAL_DAYS, ge=0, description="Days until the next review")
    repetitions: int = Field(0, ge=0, description="Consecutive successful reviews")
    nextReviewAt: str | None = Field(None, description="Next due timestamp (UTC ISO Z)")

    @classmethod
    def initial(cls) -> "SchedulingState":
        """State assumed for a card the user has never reviewed."""
        return cls(
            easeFactor=DEFAULT_EASE_FACTOR,
            intervalDays=DEFAULT_INTERVAL_DAYS,
            repetitions=0,
            nextReviewAt=None,
        )


def state_for(progress: Mapping[str, SchedulingState], card_id: str) -> SchedulingState:
    """Look up a card's state, falling back to the initial state when absent."""
    state = progress.get(card_id)
    if state is None:
        return SchedulingState.initial()
    return state


class ProgressRecord(BaseModel):
    """Persisted progress document, one per (user, card)."""

    id: str
    userId: str
    flashcardId: str
    easeFactor: float = DEFAULT_EASE_FACTOR
    intervalDays: int = DEFAULT_INTERVAL_DAYS
    repetitions: int = 0
    nextReviewAt: str | None = None
    lastQuality: int | None = None
    lastReviewedAt: str | None = None
    updatedAt: str = Field(default_factory=now_iso)

    @staticmethod
    def make_id(user_id: str, card_id: str) -> str:
        return f"{user_id}:{card_id}"

    @classmethod
    def from_state(
        cls, user_id: str, card_id: str, state: SchedulingState, quality: int | None = None
    ) -> "ProgressRecord":
        now = now_iso()
        return cls(
            id=cls.make_id(user_id, card_id),
            userId=user_id,
            flashcardId=card_id,
            easeFactor=state.easeFactor,
            intervalDays=state.intervalDays,
            repetitions=state.repetitions,
            nextReviewAt=state.nextReviewAt,
            lastQuality=quality,
            lastReviewedAt=now if quality is not None else None,
            updatedAt=now,
        )

    def to_state(self) -> SchedulingState:
        return SchedulingState(
            easeFactor=self.easeFactor,
            intervalDays=self.intervalDays,
            repetitions=self.repetitions,
            nextReviewAt=self.nextReviewAt,
        )


class ReviewStats(BaseModel):
    """Mastered / learning / new counts shown above the card."""

    mastered: int = Field(0, ge=0)
    learning: int = Field(0, ge=0)
    new: int = Field(0, ge=0)

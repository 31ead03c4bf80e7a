"""Mastered / learning / new classification over a user's progress."""

from __future__ import annotations

from collections.abc import Mapping

from studyhub.models.progress import DEFAULT_EASE_FACTOR, ReviewStats, SchedulingState

MASTERED_MIN_REPETITIONS = 3


def is_mastered(state: SchedulingState) -> bool:
    return state.easeFactor >= DEFAULT_EASE_FACTOR and state.repetitions >= MASTERED_MIN_REPETITIONS


def compute_stats(progress: Mapping[str, SchedulingState], total_cards: int) -> ReviewStats:
    """Classify every progress record the user has.

    Every record counts as mastered or learning, whether or not its card is in
    the current topic; `new` is what remains of total_cards, floored at 0.
    """
    mastered = sum(1 for state in progress.values() if is_mastered(state))
    learning = len(progress) - mastered
    return ReviewStats(
        mastered=mastered,
        learning=learning,
        new=max(0, total_cards - (mastered + learning)),
    )

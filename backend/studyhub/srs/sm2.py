"""SM-2 scheduling update.

A simplified SM-2: the interval for the third and later successful reviews
grows by the *prior* ease factor, and the ease factor update is applied on
every rating, pass or fail.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from studyhub.errors import InvalidQuality
from studyhub.models.progress import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    SchedulingState,
)
from studyhub.srs.time import next_review_iso

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3


@dataclass(frozen=True)
class SM2State:
    ease_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    interval_days: int = DEFAULT_INTERVAL_DAYS


def validate_quality(quality: int) -> int:
    """Return quality unchanged, or raise InvalidQuality if it is not an int in 0-5."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(f"quality must be an integer, got {quality!r}")
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidQuality(f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
    return quality


def _round_half_up(value: float) -> int:
    # Intervals are positive; builtin round() would send 2.5 to 2.
    return int(math.floor(value + 0.5))


def _next_ease_factor(ease_factor: float, quality: int) -> float:
    miss = 5 - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def apply_sm2(state: SM2State | None, quality: int) -> SM2State:
    """Apply one SM-2 review to state (the default state when None).

    Rules:
    - q >= 3: reps 0 -> interval 1; reps 1 -> interval 6;
      otherwise interval = round(prior interval * prior EF); reps += 1
    - q < 3: reps = 0, interval = 1
    - EF' = max(1.3, EF + (0.1 - (5-q)*(0.08 + (5-q)*0.02)))

    Raises:
        InvalidQuality: If quality is not an integer in 0-5.
    """
    validate_quality(quality)
    prior = state if state is not None else SM2State()

    if quality >= PASSING_QUALITY:
        if prior.repetitions == 0:
            interval = 1
        elif prior.repetitions == 1:
            interval = 6
        else:
            interval = max(1, _round_half_up(prior.interval_days * prior.ease_factor))
        repetitions = prior.repetitions + 1
    else:
        interval = 1
        repetitions = 0

    return SM2State(
        ease_factor=_next_ease_factor(prior.ease_factor, quality),
        repetitions=repetitions,
        interval_days=interval,
    )


def schedule_review(prior: SchedulingState | None, quality: int, now: datetime) -> SchedulingState:
    """Compute the scheduling state that follows a review at `now`."""
    if prior is None:
        prior = SchedulingState.initial()

    result = apply_sm2(
        SM2State(
            ease_factor=prior.easeFactor,
            repetitions=prior.repetitions,
            interval_days=prior.intervalDays,
        ),
        quality,
    )
    return SchedulingState(
        easeFactor=result.ease_factor,
        intervalDays=result.interval_days,
        repetitions=result.repetitions,
        nextReviewAt=next_review_iso(now, result.interval_days),
    )

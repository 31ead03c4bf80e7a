"""Mapping from the four rating buttons to SM-2 quality values."""

from __future__ import annotations

from typing import Literal

from studyhub.errors import InvalidQuality


Grade = Literal["again", "hard", "good", "easy"]


GRADE_TO_QUALITY: dict[Grade, int] = {
    "again": 0,
    "hard": 2,
    "good": 4,
    "easy": 5,
}


def quality_for_grade(grade: str) -> int:
    """Return the SM-2 quality for a rating button.

    Raises:
        InvalidQuality: If grade is not one of again/hard/good/easy
    """
    try:
        return GRADE_TO_QUALITY[grade]  # type: ignore[index]
    except KeyError:
        raise InvalidQuality(f"Invalid grade: {grade}") from None

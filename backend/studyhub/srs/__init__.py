"""SRS helpers (SM-2 scheduling, grade mapping, statistics)."""

from .sm2 import SM2State, apply_sm2, schedule_review, validate_quality
from .grading import GRADE_TO_QUALITY, Grade, quality_for_grade
from .stats import compute_stats, is_mastered
from .time import (
    utc_now,
    to_iso_z,
    parse_iso_z,
    add_days,
    next_review_iso,
)

__all__ = [
    "SM2State",
    "apply_sm2",
    "schedule_review",
    "validate_quality",
    "GRADE_TO_QUALITY",
    "Grade",
    "quality_for_grade",
    "compute_stats",
    "is_mastered",
    "utc_now",
    "to_iso_z",
    "parse_iso_z",
    "add_days",
    "next_review_iso",
]

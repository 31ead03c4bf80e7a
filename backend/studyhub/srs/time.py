"""UTC time helpers for review scheduling.

Timestamps are stored as UTC ISO strings with second precision and a
trailing 'Z': YYYY-MM-DDTHH:MM:SSZ
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC 'now'."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Return dt in UTC; naive datetimes are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_z(dt: datetime) -> str:
    """Format a datetime as UTC ISO string with second precision and trailing 'Z'."""
    dt = as_utc(dt).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


def parse_iso_z(s: str) -> datetime:
    """Parse an ISO-8601 string ending with 'Z' (or an offset) into a UTC datetime."""
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(s))


def add_days(now: datetime, days: int) -> datetime:
    """Shift by whole calendar days, keeping the time of day."""
    return as_utc(now) + timedelta(days=days)


def next_review_iso(now: datetime, interval_days: int) -> str:
    return to_iso_z(add_days(now, interval_days))

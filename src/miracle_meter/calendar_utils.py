"""Week arithmetic for streak tracking.

Weeks start on ``week_start_day`` (0 = Monday ... 6 = Sunday, matching
``date.weekday()``). All functions are pure.
"""

from __future__ import annotations

from datetime import date, timedelta


def parse_date(d: str) -> date:
    """Parse a YYYY-MM-DD string to a date object."""
    return date.fromisoformat(d)


def to_iso(d: date) -> str:
    return d.isoformat()


def week_start(d: date, week_start_day: int = 0) -> date:
    """Return the first day of the week containing d."""
    offset = (d.weekday() - week_start_day) % 7
    return d - timedelta(days=offset)


def week_end(d: date, week_start_day: int = 0) -> date:
    """Return the last day of the week containing d."""
    return week_start(d, week_start_day) + timedelta(days=6)


def is_same_week(a: date, b: date, week_start_day: int = 0) -> bool:
    return week_start(a, week_start_day) == week_start(b, week_start_day)


def days_between(a: date, b: date) -> int:
    """Whole days from a to b (negative if b is before a)."""
    return (b - a).days


def weeks_between(a: date, b: date, week_start_day: int = 0) -> int:
    """Number of week boundaries crossed going from a to b."""
    start_a = week_start(a, week_start_day)
    start_b = week_start(b, week_start_day)
    return days_between(start_a, start_b) // 7


def days_left_in_week(d: date, week_start_day: int = 0) -> int:
    """Days remaining after d in its week (0 on the last day)."""
    return days_between(d, week_end(d, week_start_day))

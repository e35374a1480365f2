"""Utilities for picking the class date and the next scheduled run."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

# SATS releases classes a week ahead.
DEFAULT_DAYS_IN_ADVANCE = 7


def now_in_timezone(zone: ZoneInfo) -> datetime:
    return datetime.now(tz=zone)


def target_date(today: date | None = None, *, days_in_advance: int = DEFAULT_DAYS_IN_ADVANCE) -> date:
    """The date whose classes a run should book."""
    today = today or date.today()
    return today + timedelta(days=days_in_advance)


def parse_clock(value: str) -> time:
    hours, minutes = value.split(":", 1)
    return time(int(hours), int(minutes))


def next_run_at(now: datetime, at: str) -> datetime:
    """
    Next occurrence of the daily ``at`` time (``HH:MM``) strictly after ``now``.

    The result carries the same tzinfo as ``now``.
    """
    clock = parse_clock(at)
    candidate = datetime.combine(now.date(), clock, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate = datetime.combine(now.date() + timedelta(days=1), clock, tzinfo=now.tzinfo)
    return candidate


def seconds_until(now: datetime, then: datetime) -> float:
    """Real seconds between two aware datetimes, across UTC offset changes."""
    elapsed = then.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    return max(0.0, elapsed.total_seconds())

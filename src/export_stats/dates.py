"""Local-calendar date helpers.

Daily buckets are keyed by the wall-clock date in the user's zone, never by
UTC date, so charts line up with when messages were actually sent.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo
from typing import NamedTuple

from dateutil import tz as dateutil_tz


class DayCount(NamedTuple):
    date: str  # YYYY-MM-DD, local time
    count: int


def to_local(ts: datetime, zone: tzinfo | None = None) -> datetime:
    """Convert an instant to wall-clock time in `zone` (system local by default)."""
    zone = zone or dateutil_tz.tzlocal()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=zone)
    return ts.astimezone(zone)


def safe_local(ts: object, zone: tzinfo | None = None) -> datetime | None:
    """Like to_local, but None for non-datetimes and instants the zone can't hold."""
    if not isinstance(ts, datetime):
        return None
    try:
        return to_local(ts, zone)
    except (OverflowError, ValueError, OSError):
        return None


def date_key(local: datetime) -> str:
    return f"{local.year:04d}-{local.month:02d}-{local.day:02d}"


def local_date_key(ts: datetime | None, zone: tzinfo | None = None) -> str | None:
    """Return YYYY-MM-DD for `ts` in local time, or None if unusable."""
    local = safe_local(ts, zone)
    return date_key(local) if local is not None else None


def parse_local_date(value: str, zone: tzinfo | None = None) -> datetime:
    """Parse a YYYY-MM-DD key as local noon (keeps clear of DST edges)."""
    day = date.fromisoformat(str(value)[:10])
    return datetime(day.year, day.month, day.day, 12, tzinfo=zone or dateutil_tz.tzlocal())


def days_between(a: str, b: str) -> int:
    """Whole calendar days from date key `a` to date key `b`."""
    return (date.fromisoformat(b[:10]) - date.fromisoformat(a[:10])).days


def fill_missing_days(days: Iterable[tuple[str, int]]) -> list[DayCount]:
    """Zero-fill gaps between the first and last date keys.

    Accepts (date_key, count) pairs in any order, including Summary.by_day
    rows. Malformed keys are dropped.
    """
    counts: dict[date, int] = {}
    for key, count in days:
        try:
            day = date.fromisoformat(str(key)[:10])
        except ValueError:
            continue
        counts[day] = int(count or 0)
    if not counts:
        return []

    start, end = min(counts), max(counts)
    out = []
    current = start
    while current <= end:
        out.append(DayCount(current.isoformat(), counts.get(current, 0)))
        current += timedelta(days=1)
    return out

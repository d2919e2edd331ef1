"""Derived highlights computed from a finished Summary."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from export_stats.dates import days_between
from export_stats.discord.models import ChannelStats, DayCount, Summary, WordCount

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True)
class LongestMessage:
    length: int
    contents: str
    timestamp: datetime | None


@dataclass(frozen=True)
class Streak:
    length: int
    end_date: str | None


@dataclass(frozen=True)
class Insights:
    longest_message: LongestMessage | None
    busiest_day: DayCount | None
    streak: Streak
    messages_per_day: float | None  # over the first..last active day span
    peak_hour: int | None
    peak_day_name: str | None
    top_channel: ChannelStats | None
    top_word: WordCount | None
    channel_count: int


def longest_streak(days: tuple[DayCount, ...] | list[DayCount]) -> Streak:
    """Longest run of consecutive calendar days with at least one message."""
    best = current = 0
    prev: str | None = None
    end_date: str | None = None
    for day in sorted(days, key=lambda d: d.date):
        if day.count <= 0:
            current = 0
            continue
        current = current + 1 if prev is not None and days_between(prev, day.date) == 1 else 1
        if current >= best:
            best = current
            end_date = day.date
        prev = day.date
    return Streak(best, end_date)


def _peak(rows):
    """First row with the highest non-zero count, or None."""
    best = None
    for row in rows:
        if row.count > 0 and (best is None or row.count > best.count):
            best = row
    return best


def build_insights(summary: Summary) -> Insights:
    longest = None
    for channel in summary.by_channel:
        for m in channel.messages:
            if m.contents and (longest is None or len(m.contents) > longest.length):
                longest = LongestMessage(len(m.contents), m.contents, m.timestamp)

    days = summary.by_day
    messages_per_day = None
    if days and summary.total_messages:
        span = max(1, days_between(days[0].date, days[-1].date) + 1)
        messages_per_day = round(summary.total_messages / span, 1)

    peak_hour = _peak(summary.by_hour)
    peak_day = _peak(summary.by_day_of_week)

    return Insights(
        longest_message=longest,
        busiest_day=_peak(days),
        streak=longest_streak(days),
        messages_per_day=messages_per_day,
        peak_hour=peak_hour.hour if peak_hour else None,
        peak_day_name=DAY_NAMES[peak_day.day] if peak_day else None,
        top_channel=summary.by_channel[0] if summary.by_channel else None,
        top_word=summary.top_words[0] if summary.top_words else None,
        channel_count=len(summary.by_channel),
    )

"""Single-pass aggregate statistics over a normalized message corpus."""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, tzinfo

from export_stats.dates import date_key, safe_local
from export_stats.discord.models import (
    ChannelStats,
    DayCount,
    GuildStats,
    HourCount,
    Message,
    ParseResult,
    Summary,
    WeekdayCount,
    WordCount,
)
from export_stats.discord.resolver import display_name

logger = logging.getLogger(__name__)

TOP_WORDS_LIMIT = 100
TOP_EMOJIS_LIMIT = 24
CHANNEL_TOP_WORDS_LIMIT = 30
DM_CHANNEL_KEY = "dm"

STOPWORDS = frozenset("""
a about above after again against all am an and any are aren't as at
be because been before being below between both but by
can cant can't could couldnt did didn't do does doesn't doing dont don't down during
each every few for from further
had has have having he her here hers herself him himself his how
i if im i'm in into is isn't it it's its itself
just me more most my myself
no nor not now of off oh ok on once only or other our ours out over own
same she should so some such
than that thats that's the their theirs them themselves then there these they this those through to too
uh um under until up very
was wasn't we were what when where which while who whom why will with wont won't would
yes you your yours yourself
""".split())

_WHITESPACE = re.compile(r"[\s\u200b-\u200d\ufeff]+")
_EMOJI = re.compile(r":[\w~]+:", re.ASCII | re.IGNORECASE)
_EMOJI_KEY = re.compile(r"^:[\w~]+:$", re.ASCII)


def tokenize(text: str) -> list[str]:
    """Lowercase, collapse whitespace and keep tokens longer than one char."""
    return [w for w in _WHITESPACE.sub(" ", text.lower()).split(" ") if len(w) > 1]


def is_emoji_key(token: str) -> bool:
    return bool(_EMOJI_KEY.match(token))


def count_words(tokens: Iterable[str], counts: Counter) -> None:
    for word in tokens:
        if word in STOPWORDS:
            continue
        counts[word] += 1


def count_emojis(text: str, counts: Counter) -> None:
    for match in _EMOJI.findall(text):
        counts[match.lower()] += 1


def local_timestamp(ts: object, tz: tzinfo | None = None) -> datetime | None:
    """Wall-clock time of a stored timestamp in `tz`, or None if unusable.

    A timestamp that cannot be expressed in `tz` (e.g. year 9999 shifted past
    the end of the calendar) is treated the same as a missing one.
    """
    local = safe_local(ts, tz)
    if local is None:
        return None
    try:
        local.timestamp()
    except (OverflowError, ValueError, OSError):
        return None
    return local


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class _ChannelRollup:
    channel_id: str
    channel_name: str | None
    guild_id: str | None
    guild_name: str | None
    avatar_url: str | None
    count: int = 0
    messages: list[Message] = field(default_factory=list)


def build_summary(result: ParseResult, tz: tzinfo | None = None) -> Summary:
    """Aggregate every message in `result` into a Summary.

    Every message counts toward the totals and the channel/guild rollups.
    Only messages with a valid timestamp land in the day, hour and weekday
    tables, so those may sum to less than `total_messages`.
    """
    channels: dict[str, _ChannelRollup] = {}
    guilds: dict[str, GuildStats] = {}
    by_day: Counter = Counter()
    by_hour = [0] * 24
    by_weekday = [0] * 7
    counts: Counter = Counter()

    total_words = 0
    attachment_count = 0
    first_ts: datetime | None = None
    last_ts: datetime | None = None
    untimed = 0

    for m in result.messages:
        key = m.channel_id or DM_CHANNEL_KEY
        rollup = channels.get(key)
        if rollup is None:
            rollup = _ChannelRollup(
                channel_id=key,
                channel_name=display_name(result, key, m.channel_name, m.guild_id),
                guild_id=m.guild_id,
                guild_name=m.guild_name,
                avatar_url=m.avatar_url,
            )
            channels[key] = rollup
        rollup.count += 1
        rollup.messages.append(m)
        if m.avatar_url and not rollup.avatar_url:
            rollup.avatar_url = m.avatar_url

        if m.guild_id:
            g = guilds.get(m.guild_id)
            guilds[m.guild_id] = GuildStats(
                guild_id=m.guild_id,
                guild_name=g.guild_name if g else (m.guild_name or m.guild_id),
                count=(g.count if g else 0) + 1,
            )

        local = local_timestamp(m.timestamp, tz)
        if local is not None:
            ts = m.timestamp
            if first_ts is None or ts < first_ts:
                first_ts = ts
            if last_ts is None or ts > last_ts:
                last_ts = ts
            by_day[date_key(local)] += 1
            by_hour[local.hour] += 1
            # isoweekday: Monday=1..Sunday=7 -> Sunday=0..Saturday=6
            by_weekday[local.isoweekday() % 7] += 1
        else:
            untimed += 1

        words = tokenize(m.contents)
        total_words += len(words)
        count_words(words, counts)
        count_emojis(m.contents, counts)
        attachment_count += len(m.attachments or ())

    total_messages = len(result.messages)
    if untimed:
        logger.info("%d of %d messages have no usable timestamp", untimed, total_messages)

    top_words = tuple(
        WordCount(w, c) for w, c in counts.most_common() if not is_emoji_key(w)
    )[:TOP_WORDS_LIMIT]
    top_emojis = tuple(
        WordCount(w, c) for w, c in counts.most_common() if is_emoji_key(w)
    )[:TOP_EMOJIS_LIMIT]

    by_channel = sorted(
        (_finish_channel(r, tz) for r in channels.values()),
        key=lambda ch: ch.count,
        reverse=True,
    )

    return Summary(
        total_messages=total_messages,
        total_words=total_words,
        avg_words_per_message=round_half_up(total_words / total_messages) if total_messages else 0,
        attachment_count=attachment_count,
        first_message_at=first_ts,
        last_message_at=last_ts,
        by_channel=tuple(by_channel),
        by_guild=tuple(sorted(guilds.values(), key=lambda g: g.count, reverse=True)),
        by_day=tuple(DayCount(d, by_day[d]) for d in sorted(by_day)),
        by_hour=tuple(HourCount(h, c) for h, c in enumerate(by_hour)),
        by_day_of_week=tuple(WeekdayCount(d, c) for d, c in enumerate(by_weekday)),
        top_words=top_words,
        top_emojis=top_emojis,
    )


def _finish_channel(rollup: _ChannelRollup, tz: tzinfo | None = None) -> ChannelStats:
    """Per-channel word counts and time range, from the retained messages."""
    counts: Counter = Counter()
    timestamps = []
    for m in rollup.messages:
        count_words(tokenize(m.contents), counts)
        if local_timestamp(m.timestamp, tz) is not None:
            timestamps.append(m.timestamp)
    top_words = tuple(
        WordCount(w, c) for w, c in counts.most_common() if not is_emoji_key(w)
    )[:CHANNEL_TOP_WORDS_LIMIT]

    return ChannelStats(
        channel_id=rollup.channel_id,
        channel_name=rollup.channel_name,
        guild_id=rollup.guild_id,
        guild_name=rollup.guild_name,
        avatar_url=rollup.avatar_url,
        count=rollup.count,
        messages=tuple(rollup.messages),
        top_words=top_words,
        first_message_at=min(timestamps) if timestamps else None,
        last_message_at=max(timestamps) if timestamps else None,
    )

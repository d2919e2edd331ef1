"""Data models for the Discord export module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, NamedTuple

from export_stats.dates import DayCount


class RecordKind(Enum):
    """Structural classification of a decoded JSON document."""

    MESSAGES = "messages"
    CHANNEL_META = "channel_meta"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RawFileEntry:
    """One file of an export, addressed by its `/`-joined relative path."""

    path: str
    reader: Callable[[], Awaitable[str]] = field(repr=False, compare=False)

    async def read(self) -> str:
        return await self.reader()


@dataclass
class Message:
    """A single normalized message."""

    id: str | None
    timestamp: datetime | None  # already shifted by the correction offset
    contents: str = ""
    attachments: list[Any] = field(default_factory=list)
    channel_id: str | None = None
    guild_id: str | None = None
    channel_name: str | None = None
    guild_name: str | None = None
    avatar_url: str | None = None


@dataclass
class ChannelMeta:
    """Channel metadata from a channel.json / metadata.json file."""

    guild_id: str | None
    channel_id: str | None
    channel_name: str = "Unknown"
    guild_name: str | None = None
    user_ids: Any = None
    avatar_url: str | None = None
    recipients: list[Any] | None = None
    path: str | None = None  # channel path the file was found under


@dataclass
class Guild:
    id: str
    name: str


@dataclass
class ParseResult:
    """Mutable accumulator threaded through one parse invocation."""

    messages: list[Message] = field(default_factory=list)
    channels: list[ChannelMeta] = field(default_factory=list)
    meta_by_path: dict[str, ChannelMeta] = field(default_factory=dict)
    guilds: dict[str, Guild] = field(default_factory=dict)
    channel_names: dict[str, str] = field(default_factory=dict)  # id -> override
    account: Any = None


class WordCount(NamedTuple):
    word: str
    count: int


class HourCount(NamedTuple):
    hour: int
    count: int


class WeekdayCount(NamedTuple):
    day: int  # 0 = Sunday
    count: int


@dataclass(frozen=True)
class ChannelStats:
    """Per-channel rollup."""

    channel_id: str
    channel_name: str | None
    guild_id: str | None
    guild_name: str | None
    avatar_url: str | None
    count: int
    messages: tuple[Message, ...] = ()
    top_words: tuple[WordCount, ...] = ()
    first_message_at: datetime | None = None
    last_message_at: datetime | None = None

    @property
    def is_dm(self) -> bool:
        return not self.guild_id


@dataclass(frozen=True)
class GuildStats:
    """Per-guild rollup."""

    guild_id: str
    guild_name: str
    count: int


@dataclass(frozen=True)
class Summary:
    """Aggregate statistics over one export."""

    total_messages: int
    total_words: int
    avg_words_per_message: int
    attachment_count: int
    first_message_at: datetime | None
    last_message_at: datetime | None
    by_channel: tuple[ChannelStats, ...] = ()
    by_guild: tuple[GuildStats, ...] = ()
    by_day: tuple[DayCount, ...] = ()
    by_hour: tuple[HourCount, ...] = ()
    by_day_of_week: tuple[WeekdayCount, ...] = ()
    top_words: tuple[WordCount, ...] = ()
    top_emojis: tuple[WordCount, ...] = ()

    def to_dict(self, include_messages: bool = False) -> dict:
        """Plain JSON-ready structure; timestamps as ISO 8601 strings."""
        channels = []
        for ch in self.by_channel:
            row = {
                "channel_id": ch.channel_id,
                "channel_name": ch.channel_name,
                "guild_id": ch.guild_id,
                "guild_name": ch.guild_name,
                "avatar_url": ch.avatar_url,
                "count": ch.count,
                "top_words": [list(w) for w in ch.top_words],
                "first_message_at": _iso(ch.first_message_at),
                "last_message_at": _iso(ch.last_message_at),
            }
            if include_messages:
                row["messages"] = [_message_dict(m) for m in ch.messages]
            channels.append(row)

        return {
            "total_messages": self.total_messages,
            "total_words": self.total_words,
            "avg_words_per_message": self.avg_words_per_message,
            "attachment_count": self.attachment_count,
            "first_message_at": _iso(self.first_message_at),
            "last_message_at": _iso(self.last_message_at),
            "by_channel": channels,
            "by_guild": [
                {"guild_id": g.guild_id, "guild_name": g.guild_name, "count": g.count}
                for g in self.by_guild
            ],
            "by_day": [d._asdict() for d in self.by_day],
            "by_hour": [h._asdict() for h in self.by_hour],
            "by_day_of_week": [d._asdict() for d in self.by_day_of_week],
            "top_words": [list(w) for w in self.top_words],
            "top_emojis": [list(e) for e in self.top_emojis],
        }


@dataclass
class ExportData:
    """Everything a parse hands to downstream consumers."""

    summary: Summary
    messages: list[Message] = field(default_factory=list)
    channels: list[ChannelMeta] = field(default_factory=list)
    guilds: list[Guild] = field(default_factory=list)
    account: Any = None


def _iso(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts else None


def _message_dict(m: Message) -> dict:
    return {
        "id": m.id,
        "timestamp": _iso(m.timestamp),
        "contents": m.contents,
        "attachments": list(m.attachments),
        "channel_id": m.channel_id,
        "guild_id": m.guild_id,
        "channel_name": m.channel_name,
        "guild_name": m.guild_name,
        "avatar_url": m.avatar_url,
    }

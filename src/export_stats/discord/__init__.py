"""Discord data export ingestion and statistics."""

from export_stats.discord.insights import Insights, build_insights
from export_stats.discord.models import (
    ChannelMeta,
    ChannelStats,
    ExportData,
    Guild,
    GuildStats,
    Message,
    RawFileEntry,
    RecordKind,
    Summary,
)
from export_stats.discord.parser import (
    classify,
    is_channel_meta,
    is_message_array,
    normalize_channel_meta,
    normalize_message,
)
from export_stats.discord.reader import DiscordExportReader, parse_export
from export_stats.discord.resolver import looks_like_id
from export_stats.discord.stats import build_summary

__all__ = [
    "DiscordExportReader",
    "parse_export",
    "build_summary",
    "build_insights",
    "classify",
    "is_message_array",
    "is_channel_meta",
    "normalize_message",
    "normalize_channel_meta",
    "looks_like_id",
    "Message",
    "ChannelMeta",
    "RawFileEntry",
    "RecordKind",
    "Guild",
    "Summary",
    "ChannelStats",
    "GuildStats",
    "ExportData",
    "Insights",
]

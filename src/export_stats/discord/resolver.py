"""Resolve display names and guild membership for channels.

Names come from three partial sources, in priority order: the channel's own
metadata file, the global messages/index.json, and the bare channel ID as a
last resort for guild channels. Raw snowflake IDs are never surfaced as DM
names; those stay None so consumers can show a generic label.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from export_stats.discord.models import ChannelMeta, Guild, Message, ParseResult
from export_stats.discord.parser import UNKNOWN_CHANNEL_NAME

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[c~]?\d{15,}$")
_NON_DIGIT_PREFIX = re.compile(r"^\D+")

INDEX_ID_KEYS = ("id", "channel_id", "channelId")
INDEX_NAME_KEYS = ("name", "channel_name", "channelName")


def looks_like_id(value: Any) -> bool:
    """True if `value` is a raw platform ID rather than a display name."""
    if not isinstance(value, str):
        return False
    s = value.strip()
    return bool(_ID_PATTERN.match(s)) or (len(s) > 16 and s.isdigit())


def _last_segment(channel_path: str) -> str:
    return channel_path.rsplit("/", 1)[-1]


def _is_trusted_name(name: str | None) -> bool:
    return bool(name) and name != UNKNOWN_CHANNEL_NAME and not looks_like_id(name)


def register_meta(result: ParseResult, meta: ChannelMeta, channel_path: str) -> None:
    """Index a channel's metadata and record the names it vouches for."""
    result.meta_by_path[channel_path] = meta
    if meta.channel_id:
        result.meta_by_path[meta.channel_id] = meta
    last = _last_segment(channel_path)
    if last and last != channel_path:
        result.meta_by_path[last] = meta
    result.channels.append(meta)

    if meta.guild_id and meta.guild_name:
        result.guilds[meta.guild_id] = Guild(id=meta.guild_id, name=meta.guild_name)

    if not meta.guild_id and meta.channel_id and _is_trusted_name(meta.channel_name):
        result.channel_names[meta.channel_id] = meta.channel_name
        if last and last != meta.channel_id:
            result.channel_names[last] = meta.channel_name


def meta_for_path(result: ParseResult, channel_path: str) -> ChannelMeta | None:
    last = _last_segment(channel_path)
    return (
        result.meta_by_path.get(channel_path)
        or result.meta_by_path.get(last)
        or result.meta_by_path.get(f"messages/{last}")
    )


def resolve_message(
    result: ParseResult,
    message: Message,
    meta: ChannelMeta | None,
    channel_path: str,
) -> Message:
    """Fill in channel and guild identity on a freshly normalized message."""
    if meta is None:
        message.channel_id = _last_segment(channel_path)
        message.channel_name = result.channel_names.get(message.channel_id)
        return message

    message.channel_id = meta.channel_id or _last_segment(channel_path)
    message.guild_id = meta.guild_id
    message.guild_name = meta.guild_name
    message.avatar_url = meta.avatar_url

    if not meta.guild_id:
        if meta.channel_name and not looks_like_id(meta.channel_name):
            message.channel_name = meta.channel_name
        else:
            message.channel_name = result.channel_names.get(message.channel_id)
    else:
        message.channel_name = meta.channel_name or message.channel_id
    return message


def apply_channel_index(result: ParseResult, data: Any) -> int:
    """Merge a global channel index into the name overrides.

    Accepts a list of channel objects, {"channels": [...]}, or a flat
    id -> name (or id -> object) mapping. Returns the number of names set.
    """
    count = 0
    if isinstance(data, Mapping) and isinstance(data.get("channels"), list):
        data = data["channels"]

    if isinstance(data, list):
        for item in data:
            if not isinstance(item, Mapping):
                continue
            channel_id = next((item[k] for k in INDEX_ID_KEYS if item.get(k) is not None), None)
            name = next((item[k] for k in INDEX_NAME_KEYS if item.get(k) is not None), None)
            if channel_id and name is not None:
                result.channel_names[str(channel_id)] = str(name)
                count += 1
    elif isinstance(data, Mapping):
        for channel_id, value in data.items():
            if isinstance(value, str):
                name = value
            elif isinstance(value, Mapping):
                name = next(
                    (value[k] for k in INDEX_NAME_KEYS if value.get(k) is not None),
                    channel_id,
                )
            else:
                name = channel_id
            result.channel_names[str(channel_id)] = str(name)
            count += 1
    else:
        logger.debug("Ignoring channel index of type %s", type(data).__name__)
    return count


def display_name(
    result: ParseResult,
    channel_id: str | None,
    default: str | None,
    guild_id: str | None,
) -> str | None:
    """Final user-facing channel name, with index overrides applied."""
    name = None
    if channel_id:
        name = result.channel_names.get(channel_id)
        if name is None:
            stripped = _NON_DIGIT_PREFIX.sub("", channel_id)
            name = result.channel_names.get(stripped) if stripped else None
    if name is None:
        name = default
    if not guild_id and name and looks_like_id(name):
        return None
    return name

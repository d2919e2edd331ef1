"""Normalize raw export JSON into Message and ChannelMeta records.

Field names have changed between export revisions, so each canonical field
is looked up through an ordered alias table. New revisions only need new
entries here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any

from dateutil import parser as date_parser
from dateutil import tz as dateutil_tz

from export_stats.config import DEFAULT_TZ_OFFSET_HOURS
from export_stats.discord.models import ChannelMeta, Message, RecordKind

logger = logging.getLogger(__name__)

# Message fields
MESSAGE_ID_KEYS = ("ID", "id")
MESSAGE_TIMESTAMP_KEYS = ("Timestamp", "timestamp", "date")
MESSAGE_CONTENTS_KEYS = ("Contents", "content", "contents")
MESSAGE_ATTACHMENT_KEYS = ("Attachments", "attachments")

# Channel metadata fields
CHANNEL_ID_KEYS = ("Channel ID", "channel_id", "Channel Id", "ChannelId", "channelId")
CHANNEL_NAME_KEYS = ("Channel Name", "channel_name", "ChannelName")
GUILD_ID_KEYS = ("Guild ID", "guild_id", "GuildId")
GUILD_NAME_KEYS = ("Guild Name", "guild_name", "GuildName")
USER_IDS_KEYS = ("User IDs", "user_ids")
RECIPIENT_KEYS = ("Recipients", "recipients", "User IDs")
DM_NAME_KEYS = ("Name", "name", "display_name")
RECIPIENT_NAME_KEYS = ("username", "name", "global_name")
AVATAR_KEYS = ("icon_url", "avatar", "avatar_url")
RECIPIENT_AVATAR_KEYS = ("avatar", "avatar_url")

# Key groups that mark an object as channel metadata when all are present.
# The last group is the current package layout (Messages/c<id>/channel.json
# with lowercase "id"/"type", plus optional "name", "guild", "recipients").
CHANNEL_META_KEY_GROUPS = (
    ("Guild ID", "Channel Name"),
    ("Guild ID", "channel_name"),
    ("User IDs", "Channel ID"),
    ("User IDs", "channel_id"),
    ("id", "type"),
)
CURRENT_CHANNEL_ID_KEY = "id"
CURRENT_CHANNEL_MARKER_KEY = "type"

AVATAR_CDN_URL = "https://cdn.discordapp.com/avatars/{channel_id}/{avatar}.png"
UNKNOWN_CHANNEL_NAME = "Unknown"


def first_present(data: Mapping, keys: tuple[str, ...], default: Any = None) -> Any:
    """Value of the first key in `keys` that is present and not None."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _has_any(data: Mapping, keys: tuple[str, ...]) -> bool:
    return any(key in data for key in keys)


def _as_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def parse_json(text: str) -> Any:
    """Decode one file's text. Raises json.JSONDecodeError on bad input."""
    return json.loads(text)


# ----------------------------------------------------------------------
# Shape detection
# ----------------------------------------------------------------------

def is_message_array(data: Any) -> bool:
    """True for a non-empty list whose first item looks like a message."""
    if not isinstance(data, list) or not data:
        return False
    first = data[0]
    if not isinstance(first, Mapping):
        return False
    return _has_any(first, MESSAGE_CONTENTS_KEYS) or _has_any(first, MESSAGE_TIMESTAMP_KEYS)


def is_channel_meta(data: Any) -> bool:
    """True for an object carrying channel identity fields."""
    if not isinstance(data, Mapping):
        return False
    if _has_any(data, CHANNEL_ID_KEYS):
        return True
    return any(all(key in data for key in group) for group in CHANNEL_META_KEY_GROUPS)


def classify(data: Any) -> RecordKind:
    if is_message_array(data):
        return RecordKind.MESSAGES
    if is_channel_meta(data):
        return RecordKind.CHANNEL_META
    return RecordKind.UNKNOWN


# ----------------------------------------------------------------------
# Messages
# ----------------------------------------------------------------------

def parse_timestamp(
    value: Any,
    offset_hours: float = DEFAULT_TZ_OFFSET_HOURS,
    default_tz: tzinfo | None = None,
) -> datetime | None:
    """Parse a raw timestamp and apply the correction offset.

    Numbers are epoch milliseconds. Strings without a zone are taken as
    wall-clock time in `default_tz` (system local by default). Returns None
    for anything unparseable.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            ts = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        elif isinstance(value, str):
            ts = _parse_date_string(value.strip())
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=default_tz or dateutil_tz.tzlocal())
        else:
            return None
        return ts + timedelta(hours=offset_hours)
    except (ValueError, OverflowError, OSError) as e:
        logger.debug("Unparseable timestamp %r: %s", value, e)
        return None


# Two unrelated defaults; a string that parses differently under each is
# missing its date part (e.g. "10:30" or "Tuesday").
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def _parse_date_string(value: str) -> datetime:
    try:
        return date_parser.isoparse(value)
    except ValueError:
        pass
    a = date_parser.parse(value, default=_DEFAULT_A)
    b = date_parser.parse(value, default=_DEFAULT_B)
    if a != b:
        raise ValueError(f"no calendar date in {value!r}")
    return a


def normalize_attachments(value: Any) -> list[Any]:
    """Coerce a scalar, missing or list attachments value into a list."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        # Current exports join attachment URLs with spaces in one string.
        return value.split()
    return [value]


def normalize_message(
    raw: Mapping,
    offset_hours: float = DEFAULT_TZ_OFFSET_HOURS,
    default_tz: tzinfo | None = None,
) -> Message:
    """Map one raw message object onto the canonical Message shape."""
    contents = first_present(raw, MESSAGE_CONTENTS_KEYS, "")
    return Message(
        id=_as_id(first_present(raw, MESSAGE_ID_KEYS)),
        timestamp=parse_timestamp(
            first_present(raw, MESSAGE_TIMESTAMP_KEYS), offset_hours, default_tz
        ),
        contents=contents if isinstance(contents, str) else str(contents),
        attachments=normalize_attachments(first_present(raw, MESSAGE_ATTACHMENT_KEYS)),
    )


# ----------------------------------------------------------------------
# Channel metadata
# ----------------------------------------------------------------------

def normalize_channel_meta(raw: Mapping, path: str | None = None) -> ChannelMeta:
    """Map one raw channel metadata object onto ChannelMeta."""
    recipients = first_present(raw, RECIPIENT_KEYS)
    if isinstance(recipients, list):
        first_recipient = recipients[0] if recipients else None
    elif isinstance(recipients, Mapping):
        first_recipient = recipients
    else:
        first_recipient = None
    if not isinstance(first_recipient, Mapping):
        first_recipient = None

    channel_id = _as_id(first_present(raw, CHANNEL_ID_KEYS))
    if channel_id is None and CURRENT_CHANNEL_MARKER_KEY in raw:
        channel_id = _as_id(raw.get(CURRENT_CHANNEL_ID_KEY))

    guild = raw.get("guild") if isinstance(raw.get("guild"), Mapping) else {}
    guild_id = _as_id(first_present(raw, GUILD_ID_KEYS, guild.get("id")))
    guild_name = first_present(raw, GUILD_NAME_KEYS, guild.get("name"))

    dm_name = first_present(raw, DM_NAME_KEYS)
    if dm_name is None and first_recipient:
        dm_name = first_present(first_recipient, RECIPIENT_NAME_KEYS)
    channel_name = first_present(raw, CHANNEL_NAME_KEYS, dm_name)

    avatar = first_present(raw, AVATAR_KEYS)
    if avatar is None and first_recipient:
        avatar = first_present(first_recipient, RECIPIENT_AVATAR_KEYS)

    if isinstance(recipients, list):
        recipient_list = recipients
    elif first_recipient:
        recipient_list = [first_recipient]
    else:
        recipient_list = None

    return ChannelMeta(
        guild_id=guild_id,
        channel_id=channel_id,
        channel_name=str(channel_name) if channel_name is not None else UNKNOWN_CHANNEL_NAME,
        guild_name=str(guild_name) if guild_name is not None else None,
        user_ids=first_present(raw, USER_IDS_KEYS),
        avatar_url=avatar_url(avatar, channel_id),
        recipients=recipient_list,
        path=path,
    )


def avatar_url(avatar: Any, channel_id: str | None) -> str | None:
    """Absolute avatar URL from a URL or a bare avatar hash."""
    if not avatar or not isinstance(avatar, str):
        return None
    if avatar.startswith("http"):
        return avatar
    if channel_id:
        return AVATAR_CDN_URL.format(channel_id=channel_id, avatar=avatar)
    return None

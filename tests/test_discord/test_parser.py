"""Tests for Discord record normalization."""

from datetime import datetime, timezone

import pytest
from dateutil import tz

from export_stats.discord.models import RecordKind
from export_stats.discord.parser import (
    AVATAR_CDN_URL,
    CHANNEL_META_KEY_GROUPS,
    classify,
    is_channel_meta,
    is_message_array,
    normalize_attachments,
    normalize_channel_meta,
    normalize_message,
    parse_timestamp,
)


def test_is_message_array_accepts_known_aliases():
    assert is_message_array([{"Contents": "hi"}])
    assert is_message_array([{"content": "hi"}])
    assert is_message_array([{"Timestamp": "2024-01-01"}])
    assert is_message_array([{"date": "2024-01-01"}])


def test_is_message_array_rejects_other_shapes():
    assert not is_message_array([])
    assert not is_message_array({"Contents": "hi"})
    assert not is_message_array(["hello"])
    assert not is_message_array([{"text": "hi", "when": "now"}])
    # Aliases are case-sensitive.
    assert not is_message_array([{"CONTENTS": "hi"}])


def test_is_channel_meta():
    assert is_channel_meta({"Channel ID": "1"})
    assert is_channel_meta({"channelId": "1"})
    assert is_channel_meta({"Guild ID": "9", "Channel Name": "general"})
    assert is_channel_meta({"Guild ID": "9", "channel_name": "general"})
    assert is_channel_meta({"User IDs": ["1", "2"], "channel_id": "5"})
    assert is_channel_meta({"id": "5", "type": 1})
    assert not is_channel_meta({"id": "5"})
    assert not is_channel_meta({"type": 1, "name": "general"})
    assert not is_channel_meta({"Guild ID": "9"})
    assert not is_channel_meta({"User IDs": ["1"]})
    assert not is_channel_meta([{"Channel ID": "1"}])
    assert not is_channel_meta("Channel ID")


def test_classify_tags_each_shape():
    assert classify([{"Contents": "x"}]) is RecordKind.MESSAGES
    assert classify({"Channel ID": "1"}) is RecordKind.CHANNEL_META
    assert classify({"foo": "bar"}) is RecordKind.UNKNOWN
    assert classify(None) is RecordKind.UNKNOWN


def test_timestamp_shifted_five_hours_back():
    m = normalize_message({"ID": "1", "Timestamp": "2024-01-01T05:00:00Z", "Contents": "hi"})
    assert m.timestamp == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


def test_timestamp_offset_is_configurable():
    m = normalize_message({"Timestamp": "2024-01-01T05:00:00Z"}, offset_hours=0)
    assert m.timestamp == datetime(2024, 1, 1, 5, 0, tzinfo=timezone.utc)


def test_naive_timestamp_uses_default_zone():
    ts = parse_timestamp("2024-03-01 10:00:00", offset_hours=-5, default_tz=tz.UTC)
    assert ts == datetime(2024, 3, 1, 5, 0, tzinfo=timezone.utc)


def test_export_style_timestamp_with_offset():
    ts = parse_timestamp("2023-06-15 18:30:00.123000+00:00", offset_hours=0)
    assert ts == datetime(2023, 6, 15, 18, 30, 0, 123000, tzinfo=timezone.utc)


def test_numeric_timestamp_is_epoch_millis():
    ts = parse_timestamp(1704085200000, offset_hours=-5)
    assert ts == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["not a date", "", None, True, {"a": 1}])
def test_unparseable_timestamp_is_none(value):
    assert parse_timestamp(value) is None


@pytest.mark.parametrize("value", ["10:30", "Tuesday", "3pm", "January"])
def test_timestamp_without_calendar_date_is_none(value):
    assert parse_timestamp(value, offset_hours=0, default_tz=tz.UTC) is None


def test_free_form_timestamp_with_full_date_parses():
    ts = parse_timestamp("January 5 2024 10:00", offset_hours=0, default_tz=tz.UTC)
    assert ts == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)
    ts = parse_timestamp("5 Jan 2024", offset_hours=0, default_tz=tz.UTC)
    assert ts == datetime(2024, 1, 5, tzinfo=timezone.utc)


def test_normalize_message_defaults():
    m = normalize_message({"ID": 123, "Timestamp": "garbage"})
    assert m.id == "123"
    assert m.timestamp is None
    assert m.contents == ""
    assert m.attachments == []
    assert m.channel_id is None
    assert m.channel_name is None


def test_normalize_message_lowercase_aliases():
    m = normalize_message({"id": "7", "timestamp": "2024-01-01T12:00:00Z", "content": "yo"}, offset_hours=0)
    assert m.id == "7"
    assert m.contents == "yo"
    assert m.timestamp.hour == 12


def test_normalize_message_stringifies_non_text_contents():
    assert normalize_message({"Contents": 42}).contents == "42"


def test_normalize_attachments_shapes():
    assert normalize_attachments(None) == []
    assert normalize_attachments("") == []
    assert normalize_attachments(["a", "b"]) == ["a", "b"]
    assert normalize_attachments({"url": "x"}) == [{"url": "x"}]
    assert normalize_attachments("https://a/1.png https://a/2.png") == [
        "https://a/1.png",
        "https://a/2.png",
    ]


def test_channel_meta_explicit_name():
    meta = normalize_channel_meta(
        {"Guild ID": "9", "Guild Name": "Guild", "Channel ID": "1", "Channel Name": "general"}
    )
    assert meta.guild_id == "9"
    assert meta.guild_name == "Guild"
    assert meta.channel_id == "1"
    assert meta.channel_name == "general"
    assert meta.avatar_url is None


def test_channel_meta_dm_name_from_recipient():
    meta = normalize_channel_meta(
        {"Channel ID": "55", "recipients": [{"username": "alice", "avatar": "abc123"}]}
    )
    assert meta.channel_name == "alice"
    assert meta.recipients == [{"username": "alice", "avatar": "abc123"}]
    assert meta.avatar_url == AVATAR_CDN_URL.format(channel_id="55", avatar="abc123")
    assert meta.avatar_url == "https://cdn.discordapp.com/avatars/55/abc123.png"


def test_channel_meta_single_recipient_object():
    meta = normalize_channel_meta({"channel_id": "8", "recipients": {"global_name": "Bob"}})
    assert meta.channel_name == "Bob"
    assert meta.recipients == [{"global_name": "Bob"}]


def test_channel_meta_unknown_name():
    meta = normalize_channel_meta({"Channel ID": "1"})
    assert meta.channel_name == "Unknown"


def test_channel_meta_avatar_url_passthrough_and_missing_id():
    meta = normalize_channel_meta({"Channel ID": "1", "avatar": "https://img/x.png"})
    assert meta.avatar_url == "https://img/x.png"
    meta = normalize_channel_meta({"Guild ID": "9", "Channel Name": "x", "avatar": "hash"})
    assert meta.avatar_url is None


def test_channel_meta_current_export_shape():
    meta = normalize_channel_meta(
        {"id": "111", "type": 0, "name": "general", "guild": {"id": "900", "name": "My Server"}},
        path="messages/c111",
    )
    assert meta.channel_id == "111"
    assert meta.channel_name == "general"
    assert meta.guild_id == "900"
    assert meta.guild_name == "My Server"
    assert meta.path == "messages/c111"


def test_channel_meta_user_ids_without_recipient_objects():
    meta = normalize_channel_meta({"Channel ID": "3", "User IDs": ["10", "20"]})
    assert meta.user_ids == ["10", "20"]
    assert meta.recipients == ["10", "20"]
    assert meta.channel_name == "Unknown"


@pytest.mark.parametrize("group", CHANNEL_META_KEY_GROUPS)
def test_each_channel_meta_key_group_is_sufficient(group):
    data = {key: "1" for key in group}
    assert is_channel_meta(data)
    assert not is_channel_meta({group[0]: "1"})

"""Tests for export path classification."""

from export_stats.discord.models import RawFileEntry
from export_stats.discord.paths import channel_path_for, classify_files, is_index_path


async def _empty() -> str:
    return ""


def _entries(*paths):
    return [RawFileEntry(p, _empty) for p in paths]


def test_channel_path_for():
    assert channel_path_for("messages/c123/messages.json") == "messages/c123"
    assert channel_path_for("Messages/c123/channel.json") == "Messages/c123"
    assert channel_path_for("messages/a/b/messages.json") == "messages/a/b"
    assert channel_path_for("package/messages/c1/messages.json") == "messages/c1"
    assert channel_path_for("messages/index.json") is None
    assert channel_path_for("messages/c1/messages.csv") is None
    assert channel_path_for("account/user.json") is None


def test_classify_meta_files_are_also_message_candidates():
    files = classify_files(_entries(
        "messages/c1/channel.json",
        "messages/c1/messages.json",
        "messages/c2/METADATA.json",
        "messages/c2/messages.json",
    ))
    assert [f.path for f in files.meta_files] == [
        "messages/c1/channel.json",
        "messages/c2/METADATA.json",
    ]
    assert [f.path for f in files.message_files] == [
        "messages/c1/channel.json",
        "messages/c1/messages.json",
        "messages/c2/METADATA.json",
        "messages/c2/messages.json",
    ]
    assert files.message_files[1].channel_path == "messages/c1"


def test_classify_normalizes_separators():
    files = classify_files(_entries("\\messages\\c9\\messages.json"))
    assert files.message_files[0].path == "messages/c9/messages.json"
    assert files.message_files[0].channel_path == "messages/c9"


def test_classify_special_files():
    files = classify_files(_entries(
        "account/user.json",
        "account/other.json",
        "messages/index.json",
        "messages/c1/messages.json",
    ))
    assert files.account_file.path == "account/user.json"
    assert files.index_file.path == "messages/index.json"
    assert len(files.message_files) == 1


def test_bare_index_only_for_loose_lists():
    assert not is_index_path("index.json")
    assert is_index_path("index.json", loose=True)
    assert is_index_path("export/messages/index.json")
    assert classify_files(_entries("index.json")).index_file is None
    assert classify_files(_entries("index.json"), loose=True).index_file is not None


def test_fallback_to_any_messages_json():
    files = classify_files(_entries(
        "chats/friend/messages.json",
        "messages.json",
        "chats/friend/notes.json",
    ))
    assert [(f.path, f.channel_path) for f in files.message_files] == [
        ("chats/friend/messages.json", "chats/friend"),
        ("messages.json", "unknown"),
    ]
    assert files.meta_files == []


def test_no_fallback_when_messages_tree_present():
    files = classify_files(_entries("messages/c1/messages.json", "other/messages.json"))
    assert [f.path for f in files.message_files] == ["messages/c1/messages.json"]

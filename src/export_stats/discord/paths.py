"""Classify export file paths into metadata, transcript and special files."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from export_stats.discord.models import RawFileEntry

logger = logging.getLogger(__name__)

MESSAGES_ROOT = "messages"
ACCOUNT_ROOT = "account"
CHANNEL_META_NAMES = ("channel.json", "metadata.json")
FALLBACK_MESSAGE_NAME = "messages.json"
INDEX_NAME = "index.json"


@dataclass(frozen=True)
class ChannelFile:
    entry: RawFileEntry
    path: str  # normalized
    channel_path: str


@dataclass
class ClassifiedFiles:
    meta_files: list[ChannelFile] = field(default_factory=list)
    message_files: list[ChannelFile] = field(default_factory=list)
    index_file: RawFileEntry | None = None
    account_file: RawFileEntry | None = None


def normalize_path(path: str) -> str:
    return path.replace("\\", "/").lstrip("/")


def channel_path_for(path: str) -> str | None:
    """Channel path (directory under the messages root) for a normalized path.

    Returns None unless the path looks like messages/<channel...>/<file>.json.
    An export unpacked inside a wrapper folder is matched from its first
    `messages` segment onward.
    """
    if not path.lower().endswith(".json"):
        return None
    parts = [p for p in path.split("/") if p]
    lowered = [p.lower() for p in parts]
    if MESSAGES_ROOT not in lowered[:-1]:
        return None
    start = lowered.index(MESSAGES_ROOT)
    parts = parts[start:]
    if len(parts) < 3:
        return None
    return "/".join(parts[:-1])


def is_index_path(path: str, loose: bool = False) -> bool:
    lowered = normalize_path(path).lower()
    if lowered == f"{MESSAGES_ROOT}/{INDEX_NAME}":
        return True
    if lowered.endswith(f"/{MESSAGES_ROOT}/{INDEX_NAME}"):
        return True
    return loose and lowered == INDEX_NAME


def is_account_path(path: str) -> bool:
    lowered = normalize_path(path).lower()
    return lowered.startswith(f"{ACCOUNT_ROOT}/") and lowered.endswith(".json")


def classify_files(entries: Sequence[RawFileEntry], loose: bool = False) -> ClassifiedFiles:
    """Split entries into metadata candidates, message candidates and specials.

    Every channel file is a message candidate, including metadata-named ones,
    because some export revisions keep the transcript in channel.json.
    `loose` enables the bare `index.json` match used for scattered file lists.
    """
    result = ClassifiedFiles()

    for entry in entries:
        path = normalize_path(entry.path)
        if result.index_file is None and is_index_path(path, loose):
            result.index_file = entry
            continue
        if result.account_file is None and is_account_path(path):
            result.account_file = entry
        channel_path = channel_path_for(path)
        if channel_path is None:
            continue
        name = path.rsplit("/", 1)[-1].lower()
        item = ChannelFile(entry, path, channel_path)
        if name in CHANNEL_META_NAMES:
            result.meta_files.append(item)
        result.message_files.append(item)

    if not result.message_files:
        result.message_files = _fallback_message_files(entries)
        logger.debug(
            "No messages/ tree found, fallback matched %d %s files",
            len(result.message_files), FALLBACK_MESSAGE_NAME,
        )

    logger.debug(
        "Classified %d entries: %d metadata, %d message candidates, index=%s, account=%s",
        len(entries), len(result.meta_files), len(result.message_files),
        result.index_file.path if result.index_file else None,
        result.account_file.path if result.account_file else None,
    )
    return result


def _fallback_message_files(entries: Sequence[RawFileEntry]) -> list[ChannelFile]:
    files = []
    for entry in entries:
        path = normalize_path(entry.path)
        parts = [p for p in path.split("/") if p]
        if not parts or parts[-1].lower() != FALLBACK_MESSAGE_NAME:
            continue
        channel_path = "/".join(parts[:-1]) if len(parts) >= 2 else "unknown"
        files.append(ChannelFile(entry, path, channel_path))
    return files

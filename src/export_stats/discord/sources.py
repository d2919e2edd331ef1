"""Turn an archive, a loose file list or a directory into RawFileEntry items.

All three adapters yield `/`-joined relative paths of the same shape as the
archive's internal member names, so path classification never needs to know
which adapter produced them.
"""

from __future__ import annotations

import asyncio
import io
import logging
import os
import zipfile
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Union

from export_stats.discord.models import RawFileEntry
from export_stats.exceptions import ExportOpenError

logger = logging.getLogger(__name__)

ArchiveSource = Union[str, os.PathLike, bytes, IO[bytes]]


def decode_text(data: bytes) -> str:
    """Decode file bytes as UTF-8, tolerating a BOM and bad sequences."""
    return data.decode("utf-8-sig", errors="replace")


# ----------------------------------------------------------------------
# Archive
# ----------------------------------------------------------------------

@contextmanager
def open_archive(source: ArchiveSource) -> Iterator[list[RawFileEntry]]:
    """Open a ZIP export and yield one entry per non-directory member.

    The archive stays open for the duration of the `with` block; entries
    must be read inside it.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        zf = zipfile.ZipFile(source)
    except (zipfile.BadZipFile, OSError, ValueError) as e:
        raise ExportOpenError(f"Could not open export archive: {e}") from e

    try:
        entries = []
        for info in zf.infolist():
            if info.is_dir():
                continue
            entries.append(RawFileEntry(info.filename, _zip_reader(zf, info)))
        logger.debug("Archive opened with %d file entries", len(entries))
        yield entries
    finally:
        zf.close()


def _zip_reader(zf: zipfile.ZipFile, info: zipfile.ZipInfo):
    async def read() -> str:
        data = await asyncio.to_thread(zf.read, info)
        return decode_text(data)
    return read


# ----------------------------------------------------------------------
# Loose file list
# ----------------------------------------------------------------------

def file_list_entries(items: Iterable[Any]) -> list[RawFileEntry]:
    """Build entries from (relative_path, content) pairs.

    Each item is either a 2-tuple or a mapping with a `path` (or
    `relative_path`) key and a `content` (or `file`) key. Content may be
    text, bytes, a filesystem path or a binary file object. Items of any
    other shape are skipped.
    """
    entries = []
    for item in items:
        pair = _coerce_pair(item)
        if pair is None:
            logger.debug("Skipping unrecognized file list item: %r", item)
            continue
        path, content = pair
        entries.append(RawFileEntry(path, _content_reader(content)))
    return entries


def _coerce_pair(item: Any) -> tuple[str, Any] | None:
    if isinstance(item, Mapping):
        path = item.get("path", item.get("relative_path"))
        content = item.get("content", item.get("file"))
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        path, content = item
    else:
        return None
    if not isinstance(path, str) or not path or content is None:
        return None
    return path, content


def _content_reader(content: Any):
    async def read() -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, (bytes, bytearray)):
            return decode_text(bytes(content))
        if isinstance(content, os.PathLike):
            data = await asyncio.to_thread(Path(content).read_bytes)
            return decode_text(data)
        if hasattr(content, "read"):
            data = await asyncio.to_thread(content.read)
            return data if isinstance(data, str) else decode_text(data)
        raise TypeError(f"Unsupported file content type: {type(content).__name__}")
    return read


# ----------------------------------------------------------------------
# Directory tree
# ----------------------------------------------------------------------

def directory_entries(root: str | os.PathLike) -> list[RawFileEntry]:
    """Walk `root` depth-first, names sorted, paths relative to `root`.

    Symlinked directories are not followed; symlinked files are read.
    """
    root = Path(root)
    if not root.exists():
        raise ExportOpenError(f"Export directory not found: {root}")
    if not root.is_dir():
        raise ExportOpenError(f"Export path is not a directory: {root}")
    try:
        children = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise ExportOpenError(f"Could not open export directory {root}: {e}") from e

    entries: list[RawFileEntry] = []
    _collect(children, "", entries)
    logger.debug("Collected %d files under %s", len(entries), root)
    return entries


def _collect(children: list[Path], base: str, out: list[RawFileEntry]) -> None:
    for child in children:
        rel = f"{base}/{child.name}" if base else child.name
        if child.is_symlink() and child.is_dir():
            # Linked directories can point back up the tree.
            logger.debug("Not following directory symlink %s", rel)
            continue
        if child.is_dir():
            try:
                grandchildren = sorted(child.iterdir(), key=lambda p: p.name)
            except OSError as e:
                logger.warning("Skipping unreadable directory %s: %s", rel, e)
                continue
            _collect(grandchildren, rel, out)
        elif child.is_file():
            out.append(RawFileEntry(rel, _content_reader(child)))

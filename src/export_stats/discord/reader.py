"""Read a Discord data export into a normalized corpus and summary."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from datetime import tzinfo
from pathlib import Path
from typing import Any

from export_stats import config
from export_stats.discord.models import ExportData, ParseResult, RawFileEntry, RecordKind
from export_stats.discord.parser import (
    classify,
    is_channel_meta,
    is_message_array,
    normalize_channel_meta,
    normalize_message,
    parse_json,
)
from export_stats.discord.paths import ClassifiedFiles, classify_files
from export_stats.discord.resolver import (
    apply_channel_index,
    meta_for_path,
    register_meta,
    resolve_message,
)
from export_stats.discord.sources import (
    ArchiveSource,
    directory_entries,
    file_list_entries,
    open_archive,
)
from export_stats.discord.stats import build_summary
from export_stats.exceptions import ExportFormatError
from export_stats.progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

# Progress milestones (percent)
_META_START, _META_SPAN = 5, 5
_MESSAGES_START, _MESSAGES_SPAN = 10, 75
_BUILD_STATS = 85
_FINALIZE = 95


class DiscordExportReader:
    """Parse a Discord data export from an archive, file list or directory."""

    def __init__(
        self,
        offset_hours: float | None = None,
        tz: tzinfo | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.offset_hours = config.tz_offset_hours() if offset_hours is None else offset_hours
        self.tz = tz or config.local_timezone()
        self.on_progress = on_progress
        self.skipped_files: list[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def parse_archive(self, source: ArchiveSource) -> ExportData:
        """Parse a ZIP export given as a path, bytes or binary file object."""
        progress = ProgressReporter(self.on_progress)
        progress(0, "Opening archive…")
        with open_archive(source) as entries:
            return await self._parse(entries, progress, loose=False)

    async def parse_files(self, items: Sequence[Any]) -> ExportData:
        """Parse a loose list of (relative_path, content) items."""
        progress = ProgressReporter(self.on_progress)
        progress(0, "Reading files…")
        return await self._parse(file_list_entries(items), progress, loose=True)

    async def parse_directory(self, root: str | os.PathLike) -> ExportData:
        """Parse an unpacked export directory."""
        progress = ProgressReporter(self.on_progress)
        progress(0, "Opening folder…")
        return await self._parse(directory_entries(root), progress, loose=True)

    async def parse_entries(self, entries: Sequence[RawFileEntry], loose: bool = False) -> ExportData:
        """Parse already-adapted file entries."""
        progress = ProgressReporter(self.on_progress)
        progress(0, "Reading files…")
        return await self._parse(entries, progress, loose=loose)

    def load_archive(self, source: ArchiveSource) -> ExportData:
        return asyncio.run(self.parse_archive(source))

    def load_files(self, items: Sequence[Any]) -> ExportData:
        return asyncio.run(self.parse_files(items))

    def load_directory(self, root: str | os.PathLike) -> ExportData:
        return asyncio.run(self.parse_directory(root))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _parse(
        self,
        entries: Sequence[RawFileEntry],
        progress: ProgressReporter,
        loose: bool,
    ) -> ExportData:
        self.skipped_files = []
        progress(5, "Scanning files…")
        files = classify_files(entries, loose=loose)
        result = ParseResult()

        await self._read_metadata(files, result, progress)
        await self._read_messages(files, result, progress)

        progress(_BUILD_STATS, "Building stats…")
        if files.account_file is not None:
            result.account = await self._load_json(files.account_file)
        if files.index_file is not None:
            index = await self._load_json(files.index_file)
            if index is not None:
                applied = apply_channel_index(result, index)
                logger.debug("Applied %d channel names from %s", applied, files.index_file.path)

        summary = build_summary(result, tz=self.tz)
        progress(_FINALIZE, "Finalizing…")
        logger.info(
            "Parsed %d messages across %d channels (%d files skipped)",
            summary.total_messages, len(summary.by_channel), len(self.skipped_files),
        )
        data = ExportData(
            summary=summary,
            messages=result.messages,
            channels=result.channels,
            guilds=list(result.guilds.values()),
            account=result.account,
        )
        progress.finish("Done")
        return data

    async def _read_metadata(
        self, files: ClassifiedFiles, result: ParseResult, progress: ProgressReporter
    ) -> None:
        total = len(files.meta_files)
        for i, item in enumerate(files.meta_files, start=1):
            data = await self._load_json(item.entry)
            if data is not None and is_channel_meta(data):
                meta = normalize_channel_meta(data, path=item.channel_path)
                register_meta(result, meta, item.channel_path)
            elif data is not None:
                logger.debug("Not channel metadata: %s", item.path)
            if i % 5 == 0 or i == total:
                progress.step(_META_START, _META_SPAN, i, total, "Reading metadata…")
        logger.debug("Registered %d channel metadata files", len(result.channels))

    async def _read_messages(
        self, files: ClassifiedFiles, result: ParseResult, progress: ProgressReporter
    ) -> None:
        total = len(files.message_files)
        progress(_MESSAGES_START, "Reading messages…")
        for i, item in enumerate(files.message_files, start=1):
            data = await self._load_json(item.entry)
            if data is not None and is_message_array(data):
                meta = meta_for_path(result, item.channel_path)
                for raw in data:
                    if not isinstance(raw, Mapping):
                        continue
                    message = normalize_message(raw, self.offset_hours, self.tz)
                    result.messages.append(
                        resolve_message(result, message, meta, item.channel_path)
                    )
            elif data is not None and classify(data) is RecordKind.UNKNOWN:
                logger.debug("Not a message transcript: %s", item.path)
            if i % 10 == 0 or i == total:
                progress.step(_MESSAGES_START, _MESSAGES_SPAN, i, total, "Reading messages…")

    async def _load_json(self, entry: RawFileEntry) -> Any:
        """Read and decode one file; None (and a log line) if it fails."""
        try:
            text = await entry.read()
            return parse_json(text)
        except Exception as e:
            logger.warning("Skipping unreadable file %s: %s", entry.path, e)
            self.skipped_files.append(entry.path)
            return None


def parse_export(source: Any, **kwargs: Any) -> ExportData:
    """Parse an export, picking the adapter from the shape of `source`.

    `source` may be a directory, a ZIP file path, raw ZIP bytes, a binary
    file object or a list of (relative_path, content) items. Keyword
    arguments go to DiscordExportReader.
    """
    reader = DiscordExportReader(**kwargs)
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        if path.is_dir():
            return reader.load_directory(path)
        return reader.load_archive(path)
    if isinstance(source, (bytes, bytearray)) or hasattr(source, "read"):
        return reader.load_archive(source)
    if isinstance(source, (list, tuple)):
        return reader.load_files(source)
    raise ExportFormatError(
        f"Unsupported export source of type {type(source).__name__}. "
        "Expected a directory, a ZIP archive or a list of (path, content) items."
    )

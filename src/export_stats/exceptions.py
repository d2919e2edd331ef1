"""Unified exception hierarchy for export-stats."""


class ExportStatsError(Exception):
    """Base exception for all export-stats errors."""


# Export ingestion
class ExportError(ExportStatsError):
    """Base exception for data export ingestion."""


class ExportOpenError(ExportError):
    """The export archive or directory could not be opened at all."""


class ExportFormatError(ExportError):
    """The given input is not a recognizable export source."""

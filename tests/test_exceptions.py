"""Tests for exception hierarchy."""

from export_stats.exceptions import (
    ExportError,
    ExportFormatError,
    ExportOpenError,
    ExportStatsError,
)


def test_all_inherit_from_base():
    for exc_class in [ExportError, ExportOpenError, ExportFormatError]:
        assert issubclass(exc_class, ExportStatsError)


def test_export_hierarchy():
    assert issubclass(ExportOpenError, ExportError)
    assert issubclass(ExportFormatError, ExportError)


def test_exception_message():
    e = ExportOpenError("test error")
    assert str(e) == "test error"

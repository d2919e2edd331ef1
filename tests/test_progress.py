"""Tests for progress reporting."""

from unittest.mock import MagicMock

from export_stats.progress import ProgressReporter


def test_reports_are_clamped_and_monotonic():
    calls = []
    progress = ProgressReporter(lambda p, m: calls.append(p))
    progress(10, "a")
    progress(5, "b")
    progress(250, "c")
    assert calls == [10, 10, 100]


def test_step_maps_onto_range():
    calls = []
    progress = ProgressReporter(lambda p, m: calls.append(p))
    progress.step(10, 80, 1, 4, "x")
    progress.step(10, 80, 0, 0, "y")
    assert calls == [30, 90]


def test_callback_failure_is_swallowed():
    callback = MagicMock(side_effect=ValueError("boom"))
    progress = ProgressReporter(callback)
    progress(50, "half")
    progress.finish()
    assert callback.call_count == 2
    assert progress.percent == 100


def test_no_callback():
    progress = ProgressReporter()
    progress.finish()
    assert progress.percent == 100
    assert progress.calls == 0

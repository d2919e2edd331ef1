"""Coarse percent-complete reporting for long-running parses."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class ProgressReporter:
    """Forward progress milestones to an optional callback.

    Percentages are clamped to 0..100 and never go backwards. Callback
    failures are logged and swallowed so they cannot interrupt a parse.
    """

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self.percent = 0
        self.calls = 0

    def report(self, percent: float, message: str) -> None:
        value = max(self.percent, min(100, max(0, int(percent))))
        self.percent = value
        if self._callback is None:
            return
        self.calls += 1
        try:
            self._callback(value, message)
        except Exception as e:
            logger.debug("Progress callback failed at %s%%: %s", value, e)

    __call__ = report

    def step(self, start: int, span: int, done: int, total: int, message: str) -> None:
        """Report position `done` of `total` mapped onto [start, start + span]."""
        if total <= 0:
            self.report(start + span, message)
            return
        self.report(start + (span * done) // total, message)

    def finish(self, message: str = "Done") -> None:
        self.report(100, message)

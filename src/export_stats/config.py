"""Environment-driven defaults shared by the export readers."""

from __future__ import annotations

import logging
import os
from datetime import tzinfo

from dateutil import tz as dateutil_tz

logger = logging.getLogger(__name__)

# Vendor timestamps in the observed exports run 5 hours ahead of local time.
DEFAULT_TZ_OFFSET_HOURS = -5.0


def tz_offset_hours() -> float:
    """Timestamp correction in hours, from EXPORT_STATS_TZ_OFFSET_HOURS."""
    raw = os.environ.get("EXPORT_STATS_TZ_OFFSET_HOURS")
    if raw is None or not raw.strip():
        return DEFAULT_TZ_OFFSET_HOURS
    try:
        return float(raw)
    except ValueError:
        logger.warning(
            "Ignoring invalid EXPORT_STATS_TZ_OFFSET_HOURS=%r, using %s",
            raw, DEFAULT_TZ_OFFSET_HOURS,
        )
        return DEFAULT_TZ_OFFSET_HOURS


def local_timezone() -> tzinfo:
    """Zone used for local-date bucketing, from EXPORT_STATS_TZ.

    Falls back to the system local zone when unset or unknown.
    """
    name = os.environ.get("EXPORT_STATS_TZ", "").strip()
    if name:
        zone = dateutil_tz.gettz(name)
        if zone is not None:
            return zone
        logger.warning("Unknown timezone EXPORT_STATS_TZ=%r, using system local", name)
    return dateutil_tz.tzlocal()

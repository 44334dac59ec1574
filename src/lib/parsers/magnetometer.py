"""
Local magnetometer minute files ("DataMin").

Canonical: [CS-001] IAGA-2002 style minute values

Files are named ``<sss><dd><mon>.<yy>m`` (station, day, month abbreviation,
two-digit year), e.g. ``chi05nov.24m``. Data lines start with
``DD MM YYYY HH MM``; the horizontal component H is the seventh column.
Header lines, fill codes (88888, 99999) and anything unparseable are
skipped.
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime

from src.lib.logging_utils import log_expected_warning, sanitize_for_log
from src.lib.timeseries.models import (
    PointSeries,
    iso_from_ms,
    to_epoch_ms,
    to_finite_float,
)

logger = logging.getLogger(__name__)

MONTH_ABBREVIATIONS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_FILENAME_PATTERN = re.compile(
    r"^([a-z]{3})(\d{2})([a-z]{3})\.(\d{2})m$", re.IGNORECASE
)
_DATA_LINE_PATTERN = re.compile(r"^\s*\d{2}\s+\d{2}\s+\d{4}\s+\d{2}\s+\d{2}")

# DD MM YYYY HH MM <doy> H ...
_MIN_COLUMNS = 7
_H_COLUMN = 6

# Fill codes written by the loggers when a minute is missing
DATAMIN_SENTINELS = (88888.0, 99999.0, 99999.99)
DATAMIN_SENTINEL_FLOOR = 90000.0


@dataclass(frozen=True)
class DataMinFile:
    """Identity of one station-day minute file, derived from its name."""

    station: str
    year: int
    month: int
    day: int
    filename: str
    timestamp_ms: int

    @property
    def iso_date(self) -> str:
        return iso_from_ms(self.timestamp_ms)[:10]


def parse_datamin_filename(filename: str) -> DataMinFile | None:
    """
    Parse a DataMin filename.

    Example:
        >>> parse_datamin_filename("chi05nov.24m").iso_date
        '2024-11-05'

    Returns:
        DataMinFile | None: None when the name does not follow the pattern
    """
    match = _FILENAME_PATTERN.match(filename)
    if not match:
        return None

    station_raw, day_str, month_raw, year_str = match.groups()
    month = MONTH_ABBREVIATIONS.get(month_raw.lower())
    if month is None:
        return None

    year = 2000 + int(year_str)
    day = int(day_str)

    try:
        start_of_day = datetime(year, month, day, tzinfo=UTC)
    except ValueError:
        return None

    return DataMinFile(
        station=station_raw.upper(),
        year=year,
        month=month,
        day=day,
        filename=filename,
        timestamp_ms=to_epoch_ms(start_of_day),
    )


def _is_sentinel(value: float) -> bool:
    return value in DATAMIN_SENTINELS or abs(value) >= DATAMIN_SENTINEL_FLOOR


def parse_datamin_text(text: str, *, source: str | None = None) -> PointSeries:
    """
    Extract (timestamp, H) points from the contents of a DataMin file.

    Args:
        text: File contents
        source: Filename, used only for logging

    Returns:
        PointSeries: Ascending H values; empty if nothing parsed
    """
    latest: dict[int, float] = {}
    skipped = 0

    for line in text.splitlines():
        if not _DATA_LINE_PATTERN.match(line):
            continue

        parts = line.split()
        if len(parts) < _MIN_COLUMNS:
            skipped += 1
            continue

        value = to_finite_float(parts[_H_COLUMN])
        if value is None or _is_sentinel(value):
            skipped += 1
            continue

        try:
            day, month, year, hour, minute = (int(p) for p in parts[:5])
            moment = datetime(year, month, day, hour, minute, tzinfo=UTC)
        except ValueError:
            skipped += 1
            continue

        latest[to_epoch_ms(moment)] = value

    series = PointSeries.from_pairs(sorted(latest.items()))

    if not series:
        log_expected_warning(
            logger,
            "DataMin text produced no points",
            extra={"source": sanitize_for_log(source or "")},
        )
    else:
        logger.debug(
            "Parsed DataMin text",
            extra={
                "source": sanitize_for_log(source or ""),
                "points": len(series),
                "skipped": skipped,
            },
        )

    return series

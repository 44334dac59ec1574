"""
Electric field mill files (".efm").

Files are named ``cinc_efm-MMDDYYYY.efm`` and hold one reading per line:
``HH:MM[:SS],value[,station]``. The date comes from the filename; lines
only carry the time of day. A file may interleave several stations.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.lib.logging_utils import log_expected_warning, sanitize_for_log
from src.lib.timeseries.models import (
    PointSeries,
    iso_from_ms,
    to_epoch_ms,
    to_finite_float,
)

logger = logging.getLogger(__name__)

_FILENAME_PATTERN = re.compile(
    r"^cinc_efm-(\d{2})(\d{2})(\d{4})\.efm$", re.IGNORECASE
)
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


@dataclass(frozen=True)
class EfmFile:
    """Identity of one electric-field day file."""

    year: int
    month: int
    day: int
    filename: str
    timestamp_ms: int

    @property
    def iso_date(self) -> str:
        return iso_from_ms(self.timestamp_ms)[:10]


@dataclass
class EfmParseResult:
    """Points for the requested station plus the stations seen in the file."""

    series: PointSeries
    stations: list[str] = field(default_factory=list)
    matched_stations: list[str] = field(default_factory=list)


def natural_sort_key(text: str) -> list[int | str]:
    """Sort key that orders "ST2" before "ST10"."""
    chunks = re.split(r"(\d+)", text)
    return [int(chunk) if chunk.isdigit() else chunk for chunk in chunks]


def parse_efm_filename(filename: str) -> EfmFile | None:
    """
    Parse an electric-field filename.

    Example:
        >>> parse_efm_filename("cinc_efm-03152024.efm").iso_date
        '2024-03-15'
    """
    match = _FILENAME_PATTERN.match(filename)
    if not match:
        return None

    month, day, year = (int(part) for part in match.groups())
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None

    try:
        start_of_day = datetime(year, month, day, tzinfo=UTC)
    except ValueError:
        return None

    return EfmFile(
        year=year,
        month=month,
        day=day,
        filename=filename,
        timestamp_ms=to_epoch_ms(start_of_day),
    )


def parse_efm_text(
    text: str, file_info: EfmFile, *, station: str | None = None
) -> EfmParseResult:
    """
    Extract electric-field points from the contents of an .efm file.

    Args:
        text: File contents
        file_info: Parsed filename, supplies the calendar date
        station: Keep only lines for this station (all lines when empty)

    Returns:
        EfmParseResult: Points plus every station seen and the ones kept
    """
    station_filter = (station or "").strip()

    latest: dict[int, float] = {}
    stations: set[str] = set()
    matched: set[str] = set()

    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed:
            continue

        parts = [part.strip() for part in trimmed.split(",")]
        if len(parts) < 2:
            continue

        time_part, value_part = parts[0], parts[1]
        station_part = parts[2] if len(parts) > 2 else ""

        if station_part:
            stations.add(station_part)

        if station_filter and station_part != station_filter:
            continue

        time_match = _TIME_PATTERN.match(time_part)
        if not time_match:
            continue

        value = to_finite_float(value_part)
        if value is None:
            continue

        hour, minute = int(time_match.group(1)), int(time_match.group(2))
        second = int(time_match.group(3) or 0)

        try:
            moment = datetime(
                file_info.year,
                file_info.month,
                file_info.day,
                hour,
                minute,
                second,
                tzinfo=UTC,
            )
        except ValueError:
            continue

        latest[to_epoch_ms(moment)] = value
        if station_part:
            matched.add(station_part)

    series = PointSeries.from_pairs(sorted(latest.items()))

    if not series:
        log_expected_warning(
            logger,
            "EFM text produced no points",
            extra={
                "source": sanitize_for_log(file_info.filename),
                "station": sanitize_for_log(station_filter),
            },
        )

    return EfmParseResult(
        series=series,
        stations=sorted(stations, key=natural_sort_key),
        matched_stations=sorted(matched, key=natural_sort_key),
    )

"""
Time-series data models.

Canonical References:
- [CS-001] IAGA-2002: Exchange format for geomagnetic minute data
- [CS-002] Kyoto WDC for Geomagnetism: Dst index format
- [CS-003] JSON chart payload consumed by the dashboard frontend

Points are (UTC epoch milliseconds, finite float) pairs. A PointSeries is
always ascending with unique timestamps; when a timestamp repeats while
building one, the later observation wins.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# Dst/Kp feeds use |v| >= 9999 for "no data"
NO_DATA_SENTINEL = 9999


def is_no_data(value: float, sentinel: float = NO_DATA_SENTINEL) -> bool:
    """Return True for sentinel readings that mean "no data"."""
    return abs(value) >= sentinel


def to_finite_float(raw: Any) -> float | None:
    """Coerce a raw reading to a finite float, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


def to_epoch_ms(raw: Any) -> int | None:
    """
    Coerce a raw timestamp to UTC epoch milliseconds.

    Accepts epoch milliseconds (int, float or numeric string), datetime/date
    objects (naive values are taken as UTC) and ISO-8601 strings. Fractional
    milliseconds are truncated.

    Returns:
        int | None: Epoch milliseconds, or None if the value cannot be parsed
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, datetime):
        dt = raw if raw.tzinfo is not None else raw.replace(tzinfo=UTC)
        return (dt - _EPOCH) // _ONE_MS

    if isinstance(raw, date):
        return (datetime(raw.year, raw.month, raw.day, tzinfo=UTC) - _EPOCH) // _ONE_MS

    if isinstance(raw, int | float):
        return int(raw) if math.isfinite(raw) else None

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        numeric = to_finite_float(text)
        if numeric is not None:
            return int(numeric)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return to_epoch_ms(parsed)

    return None


def iso_from_ms(timestamp_ms: int) -> str:
    """Render epoch milliseconds as ISO-8601 with millisecond precision."""
    dt = _EPOCH + timedelta(milliseconds=timestamp_ms)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


class Point(BaseModel):
    """
    A single timestamped reading.

    Canonical: [CS-001] "Values are reported per UTC minute"
    """

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int = Field(description="UTC epoch milliseconds")
    value: float = Field(allow_inf_nan=False, description="Finite sensor reading")

    @property
    def iso(self) -> str:
        """ISO-8601 label for the point's timestamp."""
        return iso_from_ms(self.timestamp_ms)

    def as_pair(self) -> list[Any]:
        """Return the point as a [timestamp_ms, value] chart pair."""
        return [self.timestamp_ms, self.value]


@dataclass(frozen=True)
class PointSeries:
    """Ascending, de-duplicated sequence of points."""

    points: tuple[Point, ...] = ()

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> PointSeries:
        """Sort points and collapse duplicate timestamps (last wins)."""
        latest: dict[int, Point] = {}
        for point in points:
            latest[point.timestamp_ms] = point
        return cls(points=tuple(latest[ts] for ts in sorted(latest)))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Any]) -> PointSeries:
        """
        Build a series from raw (timestamp, value) pairs.

        Pairs whose timestamp cannot be parsed or whose value is not a
        finite number are dropped.
        """
        latest: dict[int, float] = {}
        for pair in pairs:
            try:
                raw_ts, raw_value = pair[0], pair[1]
            except (TypeError, IndexError, KeyError):
                continue
            timestamp_ms = to_epoch_ms(raw_ts)
            value = to_finite_float(raw_value)
            if timestamp_ms is None or value is None:
                continue
            latest[timestamp_ms] = value
        return cls(
            points=tuple(
                Point(timestamp_ms=ts, value=latest[ts]) for ts in sorted(latest)
            )
        )

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __getitem__(self, index: int) -> Point:
        return self.points[index]

    @property
    def timestamps(self) -> list[int]:
        return [p.timestamp_ms for p in self.points]

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]

    @property
    def start(self) -> Point | None:
        return self.points[0] if self.points else None

    @property
    def end(self) -> Point | None:
        return self.points[-1] if self.points else None

    def to_pairs(self) -> list[list[Any]]:
        """Return the series as [timestamp_ms, value] chart pairs."""
        return [p.as_pair() for p in self.points]


@dataclass
class ResampleResult:
    """Outcome of the downsample-or-not decision."""

    points: list[Point]
    total_points: int
    bucket_ms: int
    downsampled: bool = False


@dataclass
class SeriesWindow:
    """A resampled window of a series plus the ranges it was cut from."""

    points: list[Point]
    total_points: int
    bucket_ms: int
    downsampled: bool
    requested_range: TimeRange | None = None
    available_range: TimeRange | None = None
    sources: list[str] = field(default_factory=list)


# =============================================================================
# Chart payload models - Canonical: [CS-003]
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TimeRange(_CamelModel):
    """Inclusive ISO-8601 range."""

    start: str
    end: str


class BucketInfo(_CamelModel):
    """Describes how a returned series was bucketed."""

    size: str = Field(description="Human duration, e.g. '5m'")
    ms: int = Field(description="Bucket width in milliseconds")
    downsampled: bool
    returned: int = Field(description="Points in the response")
    original: int = Field(description="Points before resampling")


class SeriesData(_CamelModel):
    """A named data column aligned with the payload labels."""

    name: str
    data: list[float | None]


class ChartMeta(_CamelModel):
    """Metadata block of a chart payload."""

    points: int
    original_points: int = Field(alias="originalPoints")
    bucket: BucketInfo | None = None
    range: TimeRange | None = None
    station: str | None = None
    source: str | None = None
    requested_range: TimeRange | None = Field(default=None, alias="requestedRange")
    available_range: TimeRange | None = Field(default=None, alias="availableRange")
    files: list[str] = Field(default_factory=list)


class ChartPayload(_CamelModel):
    """Labels + series + meta, the JSON shape served to chart clients."""

    labels: list[str]
    series: list[SeriesData]
    meta: ChartMeta

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase aliases the frontend expects."""
        return self.model_dump(by_alias=True, exclude_none=True)

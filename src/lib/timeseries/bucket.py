"""
Bucket width selection and UTC alignment utilities.

Canonical References:
- [CS-009] Prometheus Docs: Time-Series Alignment
- [CS-010] VLDB 2015 (Facebook): Gorilla paper

Bucket widths always come from a fixed ladder of "nice" durations so chart
axes show round intervals (5m, 6h, 7d) rather than arbitrary fractions.
"""

import math
from datetime import UTC, datetime, timedelta
from typing import Any

from src.lib.timeseries.models import (
    DAY_MS,
    HOUR_MS,
    MINUTE_MS,
    to_epoch_ms,
)

BUCKET_LADDER_MS: tuple[int, ...] = (
    MINUTE_MS,
    2 * MINUTE_MS,
    5 * MINUTE_MS,
    10 * MINUTE_MS,
    15 * MINUTE_MS,
    30 * MINUTE_MS,
    HOUR_MS,
    2 * HOUR_MS,
    3 * HOUR_MS,
    6 * HOUR_MS,
    12 * HOUR_MS,
    DAY_MS,
    2 * DAY_MS,
    7 * DAY_MS,
    14 * DAY_MS,
    30 * DAY_MS,
)

DEFAULT_TARGET_POINTS = 4000
DEFAULT_DAILY_BUCKET_MS = 1000


def pick_bucket_width(
    range_start_ms: float,
    range_end_ms: float,
    total_points: int,
    target_points: int = DEFAULT_TARGET_POINTS,
) -> int:
    """
    Choose a ladder bucket width for a range and a point budget.

    Canonical: [CS-009] "Step should be a round multiple of the scrape interval"

    Args:
        range_start_ms: Range start, epoch milliseconds
        range_end_ms: Range end, epoch milliseconds
        total_points: Number of raw points in the range
        target_points: Desired maximum number of points

    Returns:
        int: The smallest ladder width >= the raw spacing, the largest ladder
        width when the span is too wide, or one minute for degenerate input
    """
    if not (math.isfinite(range_start_ms) and math.isfinite(range_end_ms)):
        return MINUTE_MS

    span_ms = range_end_ms - range_start_ms
    if span_ms <= 0 or total_points <= 0 or target_points <= 0:
        return MINUTE_MS

    raw_spacing = max(int(span_ms // target_points), MINUTE_MS)

    for width in BUCKET_LADDER_MS:
        if raw_spacing <= width:
            return width

    return BUCKET_LADDER_MS[-1]


def floor_to_bucket(timestamp_ms: int, bucket_ms: int) -> int:
    """
    Floor an epoch-millisecond timestamp to its bucket boundary.

    Canonical: [CS-009] "Align time buckets to wall-clock boundaries"

    Raises:
        ValueError: If bucket_ms is not positive
    """
    if bucket_ms <= 0:
        raise ValueError(f"bucket_ms must be positive, got {bucket_ms}")
    return (timestamp_ms // bucket_ms) * bucket_ms


def _is_positive_finite(value: Any) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def daily_bucket_key(
    timestamp: Any, bucket_size_ms: int = DEFAULT_DAILY_BUCKET_MS
) -> int | None:
    """
    Milliseconds since UTC midnight, floored to the bucket width.

    Non-positive bucket widths fall back to the one-second default.

    Returns:
        int | None: Key in [0, 86_400_000), or None for unparseable timestamps
    """
    timestamp_ms = to_epoch_ms(timestamp)
    if timestamp_ms is None:
        return None

    size = bucket_size_ms
    if not _is_positive_finite(size):
        size = DEFAULT_DAILY_BUCKET_MS

    offset_ms = timestamp_ms % DAY_MS
    return int((offset_ms // size) * size)


def utc_day_of(timestamp_ms: int) -> int:
    """Epoch milliseconds of the UTC midnight starting the timestamp's day."""
    return timestamp_ms - (timestamp_ms % DAY_MS)


def utc_day_start(value: datetime) -> datetime:
    """Clamp a datetime to 00:00:00.000 UTC of its day."""
    dt = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    return dt.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def utc_day_end(value: datetime) -> datetime:
    """Clamp a datetime to 23:59:59.999 UTC of its day."""
    return utc_day_start(value) + timedelta(days=1, milliseconds=-1)


def parse_date_query(value: str | None, *, is_end: bool = False) -> datetime | None:
    """
    Parse a date or datetime query value as UTC.

    A bare YYYY-MM-DD becomes the start of that day, or its last second when
    is_end is set. Anything unparseable yields None.

    Example:
        >>> parse_date_query("2024-03-05", is_end=True)
        datetime.datetime(2024, 3, 5, 23, 59, 59, tzinfo=datetime.timezone.utc)
    """
    if not value:
        return None

    text = value.strip()
    if len(text) == 10 and text[4] == "-" and text[7] == "-":
        text = f"{text}T{'23:59:59' if is_end else '00:00:00'}Z"

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)

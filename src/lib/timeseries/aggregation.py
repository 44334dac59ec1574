"""
Bucket aggregation and the downsample-or-not policy.

Canonical References:
- [CS-011] Netflix Tech Blog: Downsampling time-series for display
- [CS-012] ACM Queue 2017: Time-Series Databases aggregation patterns

Each bucket reports the mean of its values at the timestamp of its
earliest point, not at the bucket's left edge. Chart clients rely on that
placement, so it must not be "fixed" to the boundary.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from src.lib.logging_utils import log_expected_warning
from src.lib.timeseries.bucket import (
    DEFAULT_TARGET_POINTS,
    floor_to_bucket,
    pick_bucket_width,
)
from src.lib.timeseries.models import MINUTE_MS, Point, ResampleResult

logger = logging.getLogger(__name__)


@dataclass
class _BucketAccumulator:
    total: float = 0.0
    count: int = 0
    min_time: int | None = None


def aggregate_points(points: Iterable[Point], bucket_ms: int) -> list[Point]:
    """
    Average points into fixed-width buckets.

    Canonical: [CS-012] "Mean per window is the default rollup for gauges"

    Args:
        points: Points to aggregate (any order)
        bucket_ms: Bucket width in milliseconds

    Returns:
        list[Point]: One point per non-empty bucket, ascending by timestamp.
        A non-positive bucket width returns the input unchanged.
    """
    items = list(points)
    if not items:
        return []

    if bucket_ms <= 0:
        return items

    buckets: dict[int, _BucketAccumulator] = {}

    for point in items:
        if not math.isfinite(point.value):
            continue

        key = floor_to_bucket(point.timestamp_ms, bucket_ms)
        entry = buckets.setdefault(key, _BucketAccumulator())
        entry.total += point.value
        entry.count += 1
        if entry.min_time is None or point.timestamp_ms < entry.min_time:
            entry.min_time = point.timestamp_ms

    aggregated = []
    for bucket_start, entry in buckets.items():
        if entry.count <= 0:
            continue

        average = entry.total / entry.count
        if not math.isfinite(average):
            continue

        timestamp = entry.min_time if entry.min_time is not None else bucket_start
        aggregated.append(Point(timestamp_ms=timestamp, value=average))

    aggregated.sort(key=lambda p: p.timestamp_ms)
    return aggregated


def resample(
    points: Iterable[Point],
    range_start_ms: float,
    range_end_ms: float,
    target_points: int = DEFAULT_TARGET_POINTS,
) -> ResampleResult:
    """
    Downsample a series for display only when it is worth doing.

    Aggregation runs only when the chosen bucket is wider than one minute and
    the series holds more points than the budget; otherwise the raw points
    pass through unchanged.

    Args:
        points: Ascending raw points
        range_start_ms: Start of the displayed range
        range_end_ms: End of the displayed range
        target_points: Point budget (default 4000)

    Returns:
        ResampleResult: Points to display plus the bucket decision
    """
    raw = list(points)
    total_points = len(raw)
    bucket_ms = pick_bucket_width(
        range_start_ms, range_end_ms, total_points, target_points
    )

    if bucket_ms <= MINUTE_MS or total_points <= target_points:
        return ResampleResult(
            points=raw, total_points=total_points, bucket_ms=bucket_ms
        )

    aggregated = aggregate_points(raw, bucket_ms)
    if not aggregated:
        log_expected_warning(
            logger,
            "Aggregation produced no buckets, returning raw series",
            extra={"total_points": total_points, "bucket_ms": bucket_ms},
        )
        return ResampleResult(
            points=raw, total_points=total_points, bucket_ms=bucket_ms
        )

    logger.debug(
        "Series downsampled",
        extra={
            "total_points": total_points,
            "returned": len(aggregated),
            "bucket_ms": bucket_ms,
        },
    )

    return ResampleResult(
        points=aggregated,
        total_points=total_points,
        bucket_ms=bucket_ms,
        downsampled=len(aggregated) != total_points,
    )

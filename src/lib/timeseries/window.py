"""
Range selection over an in-memory series.

The file-backed loaders hand over every point from the day files that
overlap a request. select_window() trims that to the requested range,
widened to whole UTC days, and applies the downsample-or-not policy.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from src.lib.timeseries.aggregation import resample
from src.lib.timeseries.bucket import (
    DEFAULT_TARGET_POINTS,
    utc_day_end,
    utc_day_start,
)
from src.lib.timeseries.models import (
    MINUTE_MS,
    Point,
    SeriesWindow,
    TimeRange,
    iso_from_ms,
    to_epoch_ms,
)

logger = logging.getLogger(__name__)


def _time_range(start_ms: int, end_ms: int) -> TimeRange:
    return TimeRange(start=iso_from_ms(start_ms), end=iso_from_ms(end_ms))


def select_window(
    points: Iterable[Point],
    range_start: datetime,
    range_end: datetime,
    target_points: int = DEFAULT_TARGET_POINTS,
    *,
    clamp_to_days: bool = True,
    sources: list[str] | None = None,
) -> SeriesWindow:
    """
    Cut a series to a range and resample it for display.

    Args:
        points: Candidate points, any order
        range_start: Requested range start
        range_end: Requested range end
        target_points: Point budget passed to the resampler
        clamp_to_days: Widen the range to whole UTC days (default True)
        sources: Names of the files or feeds the points came from

    Returns:
        SeriesWindow: Resampled points with requested and available ranges.
        An inverted range yields an empty window rather than an error.
    """
    if clamp_to_days:
        range_start = utc_day_start(range_start)
        range_end = utc_day_end(range_end)

    start_ms = to_epoch_ms(range_start)
    end_ms = to_epoch_ms(range_end)

    candidates = sorted(points, key=lambda p: p.timestamp_ms)
    available_range = (
        _time_range(candidates[0].timestamp_ms, candidates[-1].timestamp_ms)
        if candidates
        else None
    )

    if start_ms is None or end_ms is None or end_ms < start_ms:
        logger.debug(
            "Empty window for inverted or invalid range",
            extra={"start_ms": start_ms, "end_ms": end_ms},
        )
        return SeriesWindow(
            points=[],
            total_points=0,
            bucket_ms=MINUTE_MS,
            downsampled=False,
            requested_range=None,
            available_range=available_range,
            sources=list(sources or []),
        )

    selected = [p for p in candidates if start_ms <= p.timestamp_ms <= end_ms]
    result = resample(selected, start_ms, end_ms, target_points)

    return SeriesWindow(
        points=result.points,
        total_points=result.total_points,
        bucket_ms=result.bucket_ms,
        downsampled=result.downsampled,
        requested_range=_time_range(start_ms, end_ms),
        available_range=available_range,
        sources=list(sources or []),
    )

"""
Chart payload assembly.

Canonical: [CS-003] "labels + series + meta" JSON consumed by the dashboard

Turns a SeriesWindow into the labels/series/meta structure the chart
clients read. Labels are ISO-8601 strings; series data is aligned with
them by index.
"""

from src.lib.timeseries.gaps import format_duration
from src.lib.timeseries.models import (
    BucketInfo,
    ChartMeta,
    ChartPayload,
    SeriesData,
    SeriesWindow,
    TimeRange,
)


def build_bucket_info(window: SeriesWindow) -> BucketInfo | None:
    """Describe the bucket decision, or None when no width was chosen."""
    if not window.bucket_ms:
        return None
    return BucketInfo(
        size=format_duration(window.bucket_ms),
        ms=window.bucket_ms,
        downsampled=window.downsampled,
        returned=len(window.points),
        original=window.total_points,
    )


def build_chart_payload(
    window: SeriesWindow,
    *,
    name: str,
    station: str | None = None,
    source: str | None = None,
) -> ChartPayload:
    """
    Build the chart payload for a single named series.

    Args:
        window: Resampled series window
        name: Series name shown in the legend (e.g. "H", "E_z", "Dst")
        station: Station code, when the series belongs to one
        source: Free-form origin tag (e.g. "local-directory")

    Returns:
        ChartPayload: Serialize with to_json_dict() for the camelCase shape
    """
    labels = [point.iso for point in window.points]
    values = [point.value for point in window.points]

    data_range = TimeRange(start=labels[0], end=labels[-1]) if labels else None

    meta = ChartMeta(
        points=len(labels),
        original_points=window.total_points,
        bucket=build_bucket_info(window),
        range=data_range,
        station=station,
        source=source,
        requested_range=window.requested_range,
        available_range=window.available_range,
        files=list(window.sources),
    )

    return ChartPayload(
        labels=labels,
        series=[SeriesData(name=name, data=values)],
        meta=meta,
    )

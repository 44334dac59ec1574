"""
Time-series library for geomagnetic and space-weather sensor data.

This module provides utilities for:
- Bucket width selection and downsampling ([CS-001])
- Null-gap rendering for chart clients ([CS-003])
- Daily typical-value baselines and deviations
- Chart payload assembly ([CS-003])
"""

from src.lib.timeseries.aggregation import aggregate_points, resample
from src.lib.timeseries.baseline import (
    build_daily_baseline,
    compute_deviation,
    compute_median,
    compute_mode,
)
from src.lib.timeseries.bucket import (
    BUCKET_LADDER_MS,
    daily_bucket_key,
    floor_to_bucket,
    pick_bucket_width,
)
from src.lib.timeseries.gaps import (
    duration_string_to_ms,
    format_duration,
    inject_null_gaps,
)
from src.lib.timeseries.models import (
    ChartPayload,
    Point,
    PointSeries,
    ResampleResult,
    SeriesWindow,
)
from src.lib.timeseries.payload import build_chart_payload
from src.lib.timeseries.window import select_window

__all__ = [
    "BUCKET_LADDER_MS",
    "Point",
    "PointSeries",
    "ResampleResult",
    "SeriesWindow",
    "ChartPayload",
    "pick_bucket_width",
    "floor_to_bucket",
    "daily_bucket_key",
    "aggregate_points",
    "resample",
    "select_window",
    "inject_null_gaps",
    "duration_string_to_ms",
    "format_duration",
    "compute_median",
    "compute_mode",
    "build_daily_baseline",
    "compute_deviation",
    "build_chart_payload",
]

"""
Bucket aggregation and downsample policy tests.

Canonical Reference: [CS-011] Downsampling for display, [CS-012] Rollup patterns
"""

import pytest

from src.lib.timeseries.aggregation import aggregate_points, resample
from src.lib.timeseries.models import DAY_MS, HOUR_MS, MINUTE_MS, Point


def make_points(pairs: list[tuple[int, float]]) -> list[Point]:
    return [Point(timestamp_ms=ts, value=value) for ts, value in pairs]


class TestAggregatePoints:
    """
    Canonical: [CS-012] "Mean per window is the default rollup for gauges"
    """

    def test_mean_reported_at_earliest_timestamp(self) -> None:
        result = aggregate_points(make_points([(0, 1), (500, 3)]), 1000)
        assert result == [Point(timestamp_ms=0, value=2.0)]

    def test_bucket_timestamp_is_first_point_not_left_edge(self) -> None:
        result = aggregate_points(make_points([(1500, 4), (1200, 2), (1900, 6)]), 1000)
        assert result == [Point(timestamp_ms=1200, value=4.0)]

    def test_output_is_ascending_for_unsorted_input(self) -> None:
        points = make_points([(5000, 1), (0, 2), (2500, 3), (100, 4)])
        result = aggregate_points(points, 1000)
        assert [p.timestamp_ms for p in result] == [0, 2500, 5000]
        assert [p.value for p in result] == [3.0, 3.0, 1.0]

    def test_buckets_are_half_open(self) -> None:
        result = aggregate_points(make_points([(999, 1), (1000, 9)]), 1000)
        assert [(p.timestamp_ms, p.value) for p in result] == [(999, 1.0), (1000, 9.0)]

    def test_empty_input(self) -> None:
        assert aggregate_points([], 1000) == []

    @pytest.mark.parametrize("bucket_ms", [0, -60_000])
    def test_non_positive_width_returns_input(self, bucket_ms: int) -> None:
        points = make_points([(0, 1), (10, 2)])
        result = aggregate_points(points, bucket_ms)
        assert result == points
        assert result is not points

    def test_aggregating_twice_is_a_no_op(self) -> None:
        points = make_points([(i * 20_000, float(i)) for i in range(30)])
        once = aggregate_points(points, MINUTE_MS)
        assert aggregate_points(once, MINUTE_MS) == once


class TestResample:
    def test_one_day_of_minutes_is_not_downsampled(self, minute_points) -> None:
        start = minute_points[0].timestamp_ms
        result = resample(minute_points, start, start + DAY_MS, 4000)

        assert result.bucket_ms == MINUTE_MS
        assert result.downsampled is False
        assert result.total_points == 1440
        assert result.points == minute_points

    def test_week_of_minutes_is_downsampled_to_five_minutes(self) -> None:
        points = make_points([(i * MINUTE_MS, float(i)) for i in range(7 * 1440)])
        result = resample(points, 0, 7 * DAY_MS, 4000)

        assert result.bucket_ms == 5 * MINUTE_MS
        assert result.downsampled is True
        assert result.total_points == 10_080
        assert len(result.points) == 2016
        assert result.points[0] == Point(timestamp_ms=0, value=2.0)
        assert result.points[1] == Point(timestamp_ms=5 * MINUTE_MS, value=7.0)

    def test_under_budget_passes_through_with_bucket_reported(self) -> None:
        points = make_points([(i * HOUR_MS, 1.0) for i in range(100)])
        result = resample(points, 0, 7 * DAY_MS, 200)

        assert result.bucket_ms == HOUR_MS
        assert result.downsampled is False
        assert result.points == points

    def test_aggregation_without_merges_is_not_marked_downsampled(self) -> None:
        points = make_points([(k * 30 * DAY_MS, float(k)) for k in range(5)])
        result = resample(points, 0, 150 * DAY_MS, 4)

        assert result.bucket_ms == 30 * DAY_MS
        assert len(result.points) == 5
        assert result.downsampled is False

    def test_empty_series(self) -> None:
        result = resample([], 0, DAY_MS)
        assert result.points == []
        assert result.total_points == 0
        assert result.bucket_ms == MINUTE_MS
        assert result.downsampled is False

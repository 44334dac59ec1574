"""Null-gap injection and duration string tests."""

import pytest

from src.lib.timeseries.gaps import (
    duration_string_to_ms,
    format_duration,
    inject_null_gaps,
)

MINUTE = 60_000


class TestInjectNullGaps:
    def test_regular_spacing_gets_no_markers(self) -> None:
        points = [[i * MINUTE, float(i)] for i in range(10)]
        assert inject_null_gaps(points, MINUTE) == points

    def test_single_marker_for_triple_gap(self) -> None:
        points = [[0, 1.0], [3 * MINUTE, 2.0]]
        assert inject_null_gaps(points, MINUTE) == [
            [0, 1.0],
            [MINUTE, None],
            [3 * MINUTE, 2.0],
        ]

    def test_gap_exactly_at_threshold_is_not_a_gap(self) -> None:
        points = [[0, 1.0], [2 * MINUTE, 2.0]]
        assert inject_null_gaps(points, MINUTE) == points

    def test_custom_multiplier(self) -> None:
        points = [[0, 1.0], [3 * MINUTE, 2.0]]
        assert inject_null_gaps(points, MINUTE, gap_multiplier=5) == points

    def test_marker_must_land_before_next_point(self) -> None:
        # gap exceeds the 30 s threshold, but 0 + step lands on the next point
        points = [[0, 1.0], [MINUTE, 2.0]]
        assert inject_null_gaps(points, MINUTE, gap_multiplier=0.5) == points

    def test_dict_points_use_x(self) -> None:
        points = [{"x": 0, "y": 1}, {"x": 10 * MINUTE, "y": 2}]
        result = inject_null_gaps(points, MINUTE)
        assert result == [
            {"x": 0, "y": 1},
            [MINUTE, None],
            {"x": 10 * MINUTE, "y": 2},
        ]

    def test_non_numeric_timestamps_are_skipped(self) -> None:
        points = [["2024-01-01", 1.0], [10 * MINUTE, 2.0], [20 * MINUTE, 3.0]]
        result = inject_null_gaps(points, MINUTE)
        assert result == [
            ["2024-01-01", 1.0],
            [10 * MINUTE, 2.0],
            [11 * MINUTE, None],
            [20 * MINUTE, 3.0],
        ]

    @pytest.mark.parametrize("step", [0, -1, float("nan"), float("inf"), None, "1m"])
    def test_invalid_step_returns_copy(self, step) -> None:
        points = [[0, 1.0], [10 * MINUTE, 2.0]]
        result = inject_null_gaps(points, step)
        assert result == points
        assert result is not points

    @pytest.mark.parametrize("bad", [None, "abc", 42, {"x": 1}])
    def test_non_sequence_input_returns_empty(self, bad) -> None:
        assert inject_null_gaps(bad, MINUTE) == []

    def test_input_is_not_mutated(self) -> None:
        points = [[0, 1.0], [5 * MINUTE, 2.0]]
        inject_null_gaps(points, MINUTE)
        assert points == [[0, 1.0], [5 * MINUTE, 2.0]]


class TestDurationStringToMs:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("250ms", 250),
            ("30s", 30_000),
            ("5m", 300_000),
            ("1.5h", 5_400_000),
            ("2d", 172_800_000),
            ("  10M ", 600_000),
            ("1H", 3_600_000),
        ],
    )
    def test_valid_durations(self, text: str, expected: float) -> None:
        assert duration_string_to_ms(text) == expected

    @pytest.mark.parametrize(
        "text", ["", "   ", "5", "m", "5 m", "-5m", "5w", "5minutes", ".5h", None, 5]
    )
    def test_invalid_durations_return_none(self, text) -> None:
        assert duration_string_to_ms(text) is None

    @pytest.mark.parametrize("text", ["\u0665m", "\uff15s", "1\u0660h"])
    def test_non_ascii_digits_are_rejected(self, text: str) -> None:
        assert duration_string_to_ms(text) is None


class TestFormatDuration:
    @pytest.mark.parametrize(
        "ms,expected",
        [
            (MINUTE, "1m"),
            (5 * MINUTE, "5m"),
            (90_000, "90s"),
            (3_600_000, "1h"),
            (6 * 3_600_000, "6h"),
            (86_400_000, "1d"),
            (7 * 86_400_000, "7d"),
            (1, "1s"),
            (1500, "2s"),
            (2500, "3s"),
        ],
    )
    def test_largest_exact_unit(self, ms: float, expected: str) -> None:
        assert format_duration(ms) == expected

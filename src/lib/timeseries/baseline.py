"""
Daily-periodic baseline (typical value) estimation.

Canonical References:
- [CS-013] Mayaud, "Derivation, Meaning, and Use of Geomagnetic Indices"
           (quiet-day curves as the reference for disturbance indices)
- [CS-014] INTERMAGNET Technical Manual: baseline and quiet-time levels

For Developers:
    The baseline answers "what does this sensor usually read at this time
    of day?". Reference points are keyed by their UTC time-of-day bucket and
    collapsed in two voting passes:

    1. Per bucket, per UTC day: mode of the values rounded to
       rounding_decimals (median breaks ties). One number per day.
    2. Per bucket: mode of those daily numbers (median breaks ties).

    A storm on a single day therefore contributes one vote out of many and
    cannot drag the typical value. Targets are resolved against the sorted
    bucket table by exact match, clamping at the edges, or linear
    interpolation between the bracketing buckets.

    Nothing in here raises on bad data: unparseable timestamps and
    non-finite values are skipped, and a target with nothing to resolve
    against gets None.
"""

import logging
import math
from bisect import bisect_left
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from src.lib.logging_utils import log_expected_warning
from src.lib.timeseries.bucket import (
    DEFAULT_DAILY_BUCKET_MS,
    daily_bucket_key,
    utc_day_of,
)
from src.lib.timeseries.models import Point, to_epoch_ms, to_finite_float

logger = logging.getLogger(__name__)

DEFAULT_ROUNDING_DECIMALS = 3


def _is_finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def round_half_up(value: float, decimals: int) -> float:
    """Round away from zero on exact ties, e.g. 2.5 -> 3 and -0.0005 -> -0.001."""
    quantum = Decimal(1).scaleb(-decimals)
    try:
        return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Magnitude exceeds the decimal context precision; nothing to round
        return value


def compute_median(values: Iterable[float]) -> float | None:
    """Median of the finite values, or None if there are none."""
    ordered = sorted(v for v in values if _is_finite(v))
    if not ordered:
        return None

    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def compute_mode(
    values: Iterable[float], rounding_decimals: int = DEFAULT_ROUNDING_DECIMALS
) -> float | None:
    """
    Most frequent value after rounding, with ties broken by the median.

    Args:
        values: Raw readings; non-finite entries are ignored
        rounding_decimals: Decimal places used to bucket near-equal values.
            Anything other than a non-negative int falls back to 3.

    Returns:
        float | None: The winning rounded value, or None with no finite input
    """
    decimals = rounding_decimals
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        decimals = DEFAULT_ROUNDING_DECIMALS

    counts: dict[float, int] = {}
    for value in values:
        if not _is_finite(value):
            continue
        rounded = round_half_up(value, decimals)
        counts[rounded] = counts.get(rounded, 0) + 1

    if not counts:
        return None

    max_count = max(counts.values())
    candidates = [value for value, count in counts.items() if count == max_count]

    if len(candidates) == 1:
        return candidates[0]
    return compute_median(candidates)


def typical_value(
    values: Sequence[float], rounding_decimals: int = DEFAULT_ROUNDING_DECIMALS
) -> float | None:
    """Mode over rounding, falling back to the median."""
    mode = compute_mode(values, rounding_decimals)
    return mode if mode is not None else compute_median(values)


@dataclass(frozen=True)
class BaselineTable:
    """
    Sorted time-of-day -> typical value lookup, built once per request.

    Attributes:
        keys: Ascending daily bucket keys (ms since UTC midnight)
        values: Typical value for each key
        fallback: Used when the table is empty or a key is unusable
    """

    keys: tuple[int, ...]
    values: tuple[float, ...]
    fallback: float | None = None

    def __len__(self) -> int:
        return len(self.keys)

    def _fallback(self) -> float | None:
        return self.fallback if _is_finite(self.fallback) else None

    def lookup(self, bucket_key: int | None) -> float | None:
        """
        Resolve a bucket key to a baseline value.

        Exact matches return the stored value; keys outside the table clamp
        to the nearest edge; keys in between are linearly interpolated.
        """
        if not self.keys:
            return self._fallback()

        if bucket_key is None:
            return self._fallback()

        if len(self.keys) == 1:
            return self.values[0]

        if bucket_key <= self.keys[0]:
            return self.values[0]

        last = len(self.keys) - 1
        if bucket_key >= self.keys[last]:
            return self.values[last]

        upper = bisect_left(self.keys, bucket_key)
        if self.keys[upper] == bucket_key:
            return self.values[upper]

        lower = upper - 1
        lower_key, upper_key = self.keys[lower], self.keys[upper]
        lower_value, upper_value = self.values[lower], self.values[upper]

        if not _is_finite(lower_value) and not _is_finite(upper_value):
            return self._fallback()
        if not _is_finite(lower_value):
            return upper_value
        if not _is_finite(upper_value):
            return lower_value

        span = upper_key - lower_key
        if span <= 0:
            return lower_value

        ratio = (bucket_key - lower_key) / span
        return lower_value + (upper_value - lower_value) * ratio


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def build_baseline_table(
    reference_timestamps: Sequence[Any],
    reference_values: Sequence[Any],
    bucket_size_ms: int = DEFAULT_DAILY_BUCKET_MS,
    rounding_decimals: int = DEFAULT_ROUNDING_DECIMALS,
) -> BaselineTable:
    """
    Build the time-of-day lookup table from a reference history.

    Args:
        reference_timestamps: Epoch ms, datetimes or ISO strings
        reference_values: Readings aligned with reference_timestamps
        bucket_size_ms: Time-of-day bucket width (default 1 second)
        rounding_decimals: Vote precision (default 3 decimals)

    Returns:
        BaselineTable: Possibly empty; never raises on malformed data
    """
    # bucket key -> UTC day -> values seen that day in that bucket
    values_by_bucket: dict[int, dict[int, list[float]]] = {}
    raw_values: list[float] = []

    for index, raw_timestamp in enumerate(reference_timestamps):
        if index >= len(reference_values):
            break

        value = to_finite_float(reference_values[index])
        if value is None:
            continue

        timestamp_ms = to_epoch_ms(raw_timestamp)
        if timestamp_ms is None:
            continue

        bucket_key = daily_bucket_key(timestamp_ms, bucket_size_ms)
        if bucket_key is None:
            continue

        raw_values.append(value)
        days = values_by_bucket.setdefault(bucket_key, {})
        days.setdefault(utc_day_of(timestamp_ms), []).append(value)

    typical_by_bucket: dict[int, float] = {}
    all_daily_aggregates: list[float] = []

    for bucket_key, days in values_by_bucket.items():
        daily_aggregates = []
        for day_values in days.values():
            aggregate = typical_value(day_values, rounding_decimals)
            if _is_finite(aggregate):
                daily_aggregates.append(aggregate)

        if not daily_aggregates:
            continue

        typical = typical_value(daily_aggregates, rounding_decimals)
        if not _is_finite(typical):
            continue

        all_daily_aggregates.extend(daily_aggregates)
        typical_by_bucket[bucket_key] = typical

    fallback = typical_value(all_daily_aggregates, rounding_decimals)
    if fallback is None:
        fallback = typical_value(raw_values, rounding_decimals)

    ordered = sorted(typical_by_bucket.items())
    return BaselineTable(
        keys=tuple(key for key, _ in ordered),
        values=tuple(value for _, value in ordered),
        fallback=fallback,
    )


def build_daily_baseline(
    *,
    reference_timestamps: Sequence[Any] = (),
    reference_values: Sequence[Any] = (),
    target_timestamps: Sequence[Any] = (),
    bucket_size_ms: int = DEFAULT_DAILY_BUCKET_MS,
    rounding_decimals: int = DEFAULT_ROUNDING_DECIMALS,
) -> list[list[Any]]:
    """
    Build a baseline series aligned with the target timestamps.

    Args:
        reference_timestamps: History timestamps (epoch ms, datetime or ISO)
        reference_values: History readings, aligned by index
        target_timestamps: Timestamps to produce baseline values for
        bucket_size_ms: Time-of-day bucket width (default 1000 ms)
        rounding_decimals: Vote precision (default 3)

    Returns:
        list: [epoch_ms, value | None] per parseable target, in target order.
        Targets whose timestamp cannot be parsed are left out. Returns []
        if any of the three inputs is not a sequence.

    Example:
        >>> build_daily_baseline(
        ...     reference_timestamps=[0, 86_400_000],
        ...     reference_values=[5, 5],
        ...     target_timestamps=[172_800_000],
        ... )
        [[172800000, 5.0]]
    """
    if not (
        _is_sequence(reference_timestamps)
        and _is_sequence(reference_values)
        and _is_sequence(target_timestamps)
    ):
        return []

    table = build_baseline_table(
        reference_timestamps, reference_values, bucket_size_ms, rounding_decimals
    )

    if not table and table.fallback is None:
        log_expected_warning(
            logger,
            "Baseline has no usable reference data",
            extra={
                "reference_points": len(reference_timestamps),
                "targets": len(target_timestamps),
            },
        )

    baseline = []
    for raw_timestamp in target_timestamps:
        timestamp_ms = to_epoch_ms(raw_timestamp)
        if timestamp_ms is None:
            continue

        value = table.lookup(daily_bucket_key(timestamp_ms, bucket_size_ms))
        baseline.append([timestamp_ms, value if _is_finite(value) else None])

    return baseline


def compute_deviation(
    points: Iterable[Point], baseline: Iterable[Sequence[Any]]
) -> list[list[Any]]:
    """
    Subtract the baseline from a series (e.g. delta-H for magnetometers).

    Args:
        points: Observed points
        baseline: [epoch_ms, value | None] pairs as built by build_daily_baseline

    Returns:
        list: [epoch_ms, observed - baseline] per point, None where the
        baseline has no value for that timestamp
    """
    by_time: dict[int, float | None] = {}
    for entry in baseline:
        if len(entry) >= 2 and isinstance(entry[0], int):
            by_time[entry[0]] = entry[1]

    deviation = []
    for point in points:
        reference = by_time.get(point.timestamp_ms)
        if _is_finite(reference):
            deviation.append([point.timestamp_ms, point.value - reference])
        else:
            deviation.append([point.timestamp_ms, None])
    return deviation

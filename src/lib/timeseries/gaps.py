"""
Gap markers and duration strings for chart rendering.

Line charts interpolate across missing samples unless they are told where
the data stops. inject_null_gaps() places a single null-valued point right
after the last sample before a gap, which is enough for the renderer to
break the line.
"""

import math
import re
from collections.abc import Sequence
from typing import Any

UNIT_TO_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}

DEFAULT_GAP_MULTIPLIER = 2

_DURATION_PATTERN = re.compile(
    r"^(\d+(?:\.\d+)?)(ms|s|m|h|d)$", re.IGNORECASE | re.ASCII
)


def duration_string_to_ms(text: Any) -> float | None:
    """
    Parse "<number><unit>" (unit one of ms, s, m, h, d) into milliseconds.

    Returns None for anything that does not match exactly.

    Example:
        >>> duration_string_to_ms("5m")
        300000.0
        >>> duration_string_to_ms("5 minutes") is None
        True
    """
    if not isinstance(text, str):
        return None

    trimmed = text.strip()
    if not trimmed:
        return None

    match = _DURATION_PATTERN.match(trimmed)
    if not match:
        return None

    value = float(match.group(1))
    unit = match.group(2).lower()

    if not math.isfinite(value):
        return None

    return value * UNIT_TO_MS[unit]


def format_duration(ms: float) -> str:
    """
    Render a bucket width as a compact duration using the largest exact unit.

    Sub-second widths round up to "1s".

    Example:
        >>> format_duration(7_200_000)
        '2h'
        >>> format_duration(90_000)
        '90s'
    """
    # Half-up rounding, not banker's rounding
    seconds = max(1, math.floor(ms / 1000 + 0.5))
    if seconds % 86400 == 0:
        return f"{seconds // 86400}d"
    if seconds % 3600 == 0:
        return f"{seconds // 3600}h"
    if seconds % 60 == 0:
        return f"{seconds // 60}m"
    return f"{seconds}s"


def _point_timestamp(point: Any) -> float | None:
    if isinstance(point, list | tuple):
        raw = point[0] if point else None
    elif isinstance(point, dict):
        raw = point.get("x")
    else:
        raw = None

    if isinstance(raw, bool) or not isinstance(raw, int | float):
        return None
    return raw if math.isfinite(raw) else None


def inject_null_gaps(
    points: Sequence[Any],
    step_ms: float,
    gap_multiplier: float = DEFAULT_GAP_MULTIPLIER,
) -> list[Any]:
    """
    Insert [timestamp, None] markers where consecutive points are too far apart.

    Args:
        points: [timestamp_ms, value] pairs or {"x": timestamp_ms, ...} dicts
        step_ms: Expected spacing between points
        gap_multiplier: A gap is any spacing above step_ms * gap_multiplier

    Returns:
        list: A new list with at most one marker per gap, placed at
        current + step_ms and only when that lands before the next point.
        Invalid input comes back as an unmodified copy.
    """
    if not isinstance(points, Sequence) or isinstance(points, str | bytes):
        return []

    if (
        isinstance(step_ms, bool)
        or not isinstance(step_ms, int | float)
        or not math.isfinite(step_ms)
        or step_ms <= 0
    ):
        return list(points)

    threshold = step_ms * gap_multiplier
    result = []

    for index, current in enumerate(points):
        result.append(current)

        if index + 1 >= len(points):
            continue

        current_ts = _point_timestamp(current)
        next_ts = _point_timestamp(points[index + 1])
        if current_ts is None or next_ts is None:
            continue

        if next_ts - current_ts > threshold:
            null_ts = current_ts + step_ms
            if null_ts < next_ts:
                result.append([null_ts, None])

    return result

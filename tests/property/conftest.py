"""Hypothesis strategies for property testing.

Provides reusable composite strategies for generating series data
shaped like the station feeds: epoch-millisecond timestamps with
finite readings.
"""

from hypothesis import strategies as st

from src.lib.timeseries.bucket import BUCKET_LADDER_MS
from src.lib.timeseries.models import DAY_MS, MINUTE_MS, Point

# 2000-01-01 .. 2040-01-01, the range station archives actually cover
MIN_TIMESTAMP_MS = 946_684_800_000
MAX_TIMESTAMP_MS = 2_208_988_800_000


def timestamps_ms():
    """Epoch-millisecond timestamps inside the supported archive range."""
    return st.integers(min_value=MIN_TIMESTAMP_MS, max_value=MAX_TIMESTAMP_MS)


def bucket_widths():
    """One of the ladder bucket widths."""
    return st.sampled_from(BUCKET_LADDER_MS)


@st.composite
def point_lists(draw, min_size=0, max_size=200):
    """Generate points with unique, unordered timestamps.

    Values are integral so bucket sums stay exact in float arithmetic.

    Returns:
        list[Point]: Points in arbitrary order
    """
    stamps = draw(
        st.lists(timestamps_ms(), min_size=min_size, max_size=max_size, unique=True)
    )
    values = draw(
        st.lists(
            st.integers(min_value=-50_000, max_value=50_000),
            min_size=len(stamps),
            max_size=len(stamps),
        )
    )
    return [
        Point(timestamp_ms=ts, value=value)
        for ts, value in zip(stamps, values, strict=True)
    ]


@st.composite
def time_ranges(draw, max_span_ms=400 * DAY_MS):
    """Generate (start_ms, end_ms) with a positive span.

    Returns:
        tuple[int, int]: Range bounds with end > start
    """
    start = draw(timestamps_ms())
    span = draw(st.integers(min_value=1, max_value=max_span_ms))
    return start, start + span


@st.composite
def regular_series(draw, max_size=100):
    """Generate [timestamp, value] pairs on an exact, regular step.

    Returns:
        tuple[list[list], int]: The pairs and their step in milliseconds
    """
    step = draw(st.sampled_from([MINUTE_MS, 5 * MINUTE_MS, 3_600_000]))
    start = draw(timestamps_ms())
    count = draw(st.integers(min_value=0, max_value=max_size))
    pairs = [[start + i * step, float(i)] for i in range(count)]
    return pairs, step

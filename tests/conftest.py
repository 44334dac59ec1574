"""
Pytest Configuration and Shared Fixtures
=========================================

Common fixtures used across all test modules.

For On-Call Engineers:
    Expected degradations (empty parses, missing baseline data) log at
    DEBUG under pytest; see src/lib/logging_utils.log_expected_warning.

For Developers:
    - Import fixtures by name in test files (pytest auto-discovers conftest.py)
    - Nothing here touches the network or the file system; sample files
      are inline strings
    - Add new shared fixtures here, test-specific fixtures in test files
"""

import logging
import os
from datetime import UTC, datetime, timedelta

import pytest

from src.lib.timeseries.models import MINUTE_MS, Point

SERIES_ENV_VARS = (
    "SERIES_TARGET_POINTS",
    "SERIES_GAP_MULTIPLIER",
    "BASELINE_BUCKET_MS",
    "BASELINE_ROUNDING_DECIMALS",
    "DEFAULT_STATION",
    "DEFAULT_WINDOW_DAYS",
)


@pytest.fixture(autouse=True)
def reset_env_vars():
    """
    Reset environment variables before each test.

    Ensures tests don't pollute each other's environment and that a
    developer's shell exports don't leak into config tests.
    """
    # Store original env
    original_env = os.environ.copy()
    for name in SERIES_ENV_VARS:
        os.environ.pop(name, None)

    yield

    # Restore original env
    os.environ.clear()
    os.environ.update(original_env)


def epoch_ms(iso: str) -> int:
    """Parse an ISO8601 timestamp to epoch milliseconds."""
    dt = datetime.fromisoformat(iso.replace("Z", "+00:00"))
    return (dt - datetime(1970, 1, 1, tzinfo=UTC)) // timedelta(milliseconds=1)


@pytest.fixture
def minute_points():
    """
    One day of one-minute readings starting 2024-11-05T00:00:00Z.

    Values ramp 0, 1, 2, ... so bucket means are easy to check by hand.
    """
    start = epoch_ms("2024-11-05T00:00:00Z")
    return [
        Point(timestamp_ms=start + i * MINUTE_MS, value=float(i)) for i in range(1440)
    ]


@pytest.fixture
def sample_datamin_text():
    """
    DataMin minute file excerpt for station CHI on 2024-11-05.

    Matches the column layout: DD MM YYYY HH MM DOY H D Z F.
    """
    return "\n".join(
        [
            " Chillan magnetometer, minute values",
            " DD MM YYYY HH MM DOY        H         D         Z         F",
            "05 11 2024 00 00 310  22950.10  -1234.50  -8765.40  24567.80",
            "05 11 2024 00 01 310  22951.30  -1234.40  -8765.20  24568.10",
            "05 11 2024 00 02 310  ********  -1234.40  -8765.20  24568.10",
            "05 11 2024 00 03 310  22949.90  -1234.60  -8765.50  24567.60",
        ]
    )


@pytest.fixture
def sample_efm_text():
    """Electric field mill file with two interleaved stations."""
    return "\n".join(
        [
            "12:00:00,0.52,ST2",
            "12:00:00,0.48,ST10",
            "12:00:01,0.55,ST2",
            "12:00:01,0.47,ST10",
            "bad line",
            "12:00:02,not-a-number,ST2",
        ]
    )


# =============================================================================
# Log Validation Helpers
# =============================================================================
#
# Philosophy:
# - Production code logs normally (never test-aware, except for
#   log_expected_warning downgrading expected degradations to DEBUG)
# - Tests explicitly assert on expected logs using caplog


def assert_info_logged(caplog, pattern: str):
    """
    Helper to assert an INFO log was captured.

    Args:
        caplog: pytest caplog fixture
        pattern: String pattern to search for in log messages

    Raises:
        AssertionError: If no INFO log matches the pattern
    """
    assert any(
        pattern in record.message
        for record in caplog.records
        if record.levelno == logging.INFO
    ), f"Expected INFO log matching '{pattern}' not found"


def assert_debug_logged(caplog, pattern: str):
    """
    Helper to assert a DEBUG log was captured.

    Expected warnings are emitted at DEBUG while pytest runs, so this is
    the helper to use for degraded-input paths.

    Example:
        def test_empty_reference(caplog):
            caplog.set_level(logging.DEBUG)
            build_daily_baseline(target_timestamps=[0])
            assert_debug_logged(caplog, "no usable reference data")
    """
    assert any(
        pattern in record.message
        for record in caplog.records
        if record.levelno == logging.DEBUG
    ), f"Expected DEBUG log matching '{pattern}' not found"

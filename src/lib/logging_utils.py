"""
Logging Utilities
=================

Shared logging utilities for the geomagnetic series library.

For On-Call Engineers:
    Parsers and the baseline estimator degrade silently on bad input
    (skipped lines, empty reference windows). Those paths log through
    log_expected_warning() so they show up at WARNING in deployment but
    stay at DEBUG while pytest runs.

For Developers:
    Use log_expected_warning() for conditions that are expected during
    normal operation (sparse feeds, empty days, unparseable lines).

    Use sanitize_for_log() before putting raw file content, filenames or
    station identifiers into a log record. Upstream text files are not
    trusted input.

    Note: The test detection is independent of any environment variable.
"""

import logging
import re
import sys
from typing import Any

# Maximum length for logged raw input to prevent log flooding
MAX_LOG_INPUT_LENGTH = 200


def _is_running_in_pytest() -> bool:
    """Check if code is running inside pytest."""
    return "pytest" in sys.modules


def log_expected_warning(logger: logging.Logger, message: str, **kwargs) -> None:
    """
    Log warnings that are expected during normal operation.

    When running in pytest, these are logged at DEBUG level to prevent
    log pollution when testing degraded-input paths.

    In actual deployment (not tests), these are logged at WARNING level.

    Args:
        logger: The logger instance to use
        message: The warning message
        **kwargs: Additional arguments (e.g., extra={})

    Examples:
        - A feed text that produced no valid points
        - A baseline request with no reference data
        - A filename that does not match the expected pattern
    """
    if _is_running_in_pytest():
        logger.debug(message, **kwargs)
    else:
        logger.warning(message, **kwargs)


def is_running_tests() -> bool:
    """Check if running in pytest."""
    return _is_running_in_pytest()


def sanitize_for_log(value: Any, max_length: int = MAX_LOG_INPUT_LENGTH) -> str:
    """
    Sanitize a value for safe logging by removing CRLF and limiting length.

    Args:
        value: Value to sanitize (will be converted to string)
        max_length: Maximum length of output (default: 200)

    Returns:
        Sanitized string safe for logging

    Example:
        >>> sanitize_for_log("DST2411*05\\nRRX")
        'DST2411*05 RRX'
    """
    text = str(value)

    # Remove CRLF characters to prevent log injection
    text = text.replace("\r", " ").replace("\n", " ").replace("\t", " ")

    # Remove other control characters
    text = re.sub(r"[\x00-\x1f\x7f-\x9f]", " ", text)

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text

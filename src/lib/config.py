"""
Series Configuration
====================

Parses and validates series/baseline tuning from environment variables.

For On-Call Engineers:
    Environment variables (all optional):
    - SERIES_TARGET_POINTS: Point budget for chart series (default 4000)
    - SERIES_GAP_MULTIPLIER: Gap threshold as a multiple of the step (default 2)
    - BASELINE_BUCKET_MS: Time-of-day bucket width for baselines (default 1000)
    - BASELINE_ROUNDING_DECIMALS: Vote precision for baselines (default 3)
    - DEFAULT_STATION: Magnetometer station code (default CHI)
    - DEFAULT_WINDOW_DAYS: Days shown when no range is requested (default 1)

    If the service fails at startup with ConfigurationError, the message
    names the offending variable.

For Developers:
    - Use get_config() to load all configuration
    - Configuration is validated on load
    - The core functions take these values as plain arguments; nothing in
      src.lib.timeseries reads the environment directly
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TARGET_POINTS = 4000
DEFAULT_GAP_MULTIPLIER = 2.0
DEFAULT_BASELINE_BUCKET_MS = 1000
DEFAULT_BASELINE_ROUNDING_DECIMALS = 3
DEFAULT_STATION = "CHI"
DEFAULT_WINDOW_DAYS = 1


@dataclass(frozen=True)
class SeriesConfig:
    """
    Tuning parameters consumed by the resampler, gap renderer and baseline.

    All fields are validated on instantiation.
    """

    target_points: int = DEFAULT_TARGET_POINTS
    gap_multiplier: float = DEFAULT_GAP_MULTIPLIER
    baseline_bucket_ms: int = DEFAULT_BASELINE_BUCKET_MS
    baseline_rounding_decimals: int = DEFAULT_BASELINE_ROUNDING_DECIMALS
    default_station: str = DEFAULT_STATION
    default_window_days: int = DEFAULT_WINDOW_DAYS

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate all configuration values.

        Raises:
            ConfigurationError: If any validation fails
        """
        if self.target_points <= 0:
            raise ConfigurationError(
                f"SERIES_TARGET_POINTS must be positive, got {self.target_points}"
            )

        if self.gap_multiplier <= 0:
            raise ConfigurationError(
                f"SERIES_GAP_MULTIPLIER must be positive, got {self.gap_multiplier}"
            )

        if self.baseline_bucket_ms <= 0:
            raise ConfigurationError(
                f"BASELINE_BUCKET_MS must be positive, got {self.baseline_bucket_ms}"
            )

        if self.baseline_rounding_decimals < 0:
            raise ConfigurationError(
                "BASELINE_ROUNDING_DECIMALS cannot be negative, "
                f"got {self.baseline_rounding_decimals}"
            )

        if not self.default_station or not self.default_station.isalpha():
            raise ConfigurationError(
                f"DEFAULT_STATION must be a station code, got {self.default_station!r}"
            )

        if self.default_window_days < 1:
            raise ConfigurationError(
                "DEFAULT_WINDOW_DAYS must be at least 1, "
                f"got {self.default_window_days}"
            )


def _read_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _read_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def get_config() -> SeriesConfig:
    """
    Load and validate configuration from environment variables.

    Returns:
        SeriesConfig with all settings

    Raises:
        ConfigurationError: If a variable is set to an invalid value

    Example:
        >>> config = get_config()
        >>> config.target_points
        4000
    """
    config = SeriesConfig(
        target_points=_read_int("SERIES_TARGET_POINTS", DEFAULT_TARGET_POINTS),
        gap_multiplier=_read_float("SERIES_GAP_MULTIPLIER", DEFAULT_GAP_MULTIPLIER),
        baseline_bucket_ms=_read_int("BASELINE_BUCKET_MS", DEFAULT_BASELINE_BUCKET_MS),
        baseline_rounding_decimals=_read_int(
            "BASELINE_ROUNDING_DECIMALS", DEFAULT_BASELINE_ROUNDING_DECIMALS
        ),
        default_station=os.environ.get("DEFAULT_STATION", DEFAULT_STATION)
        .strip()
        .upper(),
        default_window_days=_read_int("DEFAULT_WINDOW_DAYS", DEFAULT_WINDOW_DAYS),
    )

    logger.info(
        "Configuration loaded",
        extra={
            "target_points": config.target_points,
            "gap_multiplier": config.gap_multiplier,
            "baseline_bucket_ms": config.baseline_bucket_ms,
            "baseline_rounding_decimals": config.baseline_rounding_decimals,
            "default_station": config.default_station,
        },
    )

    return config


class ConfigurationError(Exception):
    """
    Raised when configuration is invalid.

    On-Call Note:
        The message names the environment variable to fix.
    """

    pass

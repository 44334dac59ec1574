"""
Unit Tests for Series Configuration
===================================

Tests configuration parsing and validation.

For On-Call Engineers:
    These tests verify:
    - Defaults when no environment variables are set
    - Integer/float parsing of tuning variables
    - Error messages name the offending variable

For Developers:
    - Use monkeypatch to set environment variables
    - Test both valid and invalid configurations
"""

import logging

import pytest

from src.lib.config import ConfigurationError, SeriesConfig, get_config
from tests.conftest import assert_info_logged


@pytest.fixture
def valid_env_vars(monkeypatch):
    """Set up valid environment variables for testing."""
    monkeypatch.setenv("SERIES_TARGET_POINTS", "2000")
    monkeypatch.setenv("SERIES_GAP_MULTIPLIER", "3.5")
    monkeypatch.setenv("BASELINE_BUCKET_MS", "60000")
    monkeypatch.setenv("BASELINE_ROUNDING_DECIMALS", "1")
    monkeypatch.setenv("DEFAULT_STATION", " pil ")
    monkeypatch.setenv("DEFAULT_WINDOW_DAYS", "3")


class TestGetConfig:
    """Tests for get_config function."""

    def test_defaults(self):
        """Test defaults with no environment variables set."""
        config = get_config()

        assert config == SeriesConfig()
        assert config.target_points == 4000
        assert config.gap_multiplier == 2.0
        assert config.baseline_bucket_ms == 1000
        assert config.baseline_rounding_decimals == 3
        assert config.default_station == "CHI"
        assert config.default_window_days == 1

    def test_reads_environment(self, valid_env_vars):
        """Test every variable is picked up."""
        config = get_config()

        assert config.target_points == 2000
        assert config.gap_multiplier == 3.5
        assert config.baseline_bucket_ms == 60000
        assert config.baseline_rounding_decimals == 1
        assert config.default_station == "PIL"
        assert config.default_window_days == 3

    def test_blank_values_use_defaults(self, monkeypatch):
        """Test whitespace-only values fall back to defaults."""
        monkeypatch.setenv("SERIES_TARGET_POINTS", "   ")

        assert get_config().target_points == 4000

    def test_logs_loaded_config(self, caplog):
        """Test the loaded configuration is logged."""
        caplog.set_level(logging.INFO)

        get_config()

        assert_info_logged(caplog, "Configuration loaded")

    @pytest.mark.parametrize(
        "name,value,message",
        [
            ("SERIES_TARGET_POINTS", "many", "SERIES_TARGET_POINTS must be an integer"),
            ("SERIES_TARGET_POINTS", "0", "SERIES_TARGET_POINTS must be positive"),
            ("SERIES_GAP_MULTIPLIER", "x2", "SERIES_GAP_MULTIPLIER must be a number"),
            ("SERIES_GAP_MULTIPLIER", "-1", "SERIES_GAP_MULTIPLIER must be positive"),
            ("BASELINE_BUCKET_MS", "0", "BASELINE_BUCKET_MS must be positive"),
            ("BASELINE_ROUNDING_DECIMALS", "-2", "cannot be negative"),
            ("DEFAULT_STATION", "C1", "DEFAULT_STATION must be a station code"),
            ("DEFAULT_WINDOW_DAYS", "0", "DEFAULT_WINDOW_DAYS must be at least 1"),
        ],
    )
    def test_invalid_values_raise(self, monkeypatch, name, value, message):
        """Test invalid values raise ConfigurationError naming the variable."""
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigurationError, match=message):
            get_config()


class TestSeriesConfig:
    """Tests for SeriesConfig validation."""

    def test_is_frozen(self):
        """Test configuration cannot be mutated after load."""
        config = SeriesConfig()

        with pytest.raises(AttributeError):
            config.target_points = 1

    def test_empty_station_rejected(self):
        """Test an empty station code is rejected."""
        with pytest.raises(ConfigurationError, match="DEFAULT_STATION"):
            SeriesConfig(default_station="")

"""Tests for config schema validation."""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from frostwatch.config.schema import CacheConfig, FrostConfig, MonitorConfig, OpsConfig


class TestMonitorConfig:
    def test_defaults(self):
        m = MonitorConfig()
        assert m.threshold_temp_c == 0.0
        assert m.warning_window_hours == 6.0
        assert m.tzinfo == ZoneInfo("UTC")

    def test_named_timezone(self):
        assert MonitorConfig(timezone="Europe/Berlin").tzinfo == ZoneInfo("Europe/Berlin")

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError, match="unknown timezone"):
            MonitorConfig(timezone="Mars/Olympus")

    def test_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            MonitorConfig(warning_window_hours=0)


class TestBounds:
    def test_negative_radius(self):
        with pytest.raises(ValidationError):
            CacheConfig(radius_m=-1)

    def test_zero_radius_allowed(self):
        assert CacheConfig(radius_m=0).radius_m == 0

    def test_summary_hour_range(self):
        with pytest.raises(ValidationError):
            OpsConfig(morning_summary_hour=24)

    def test_extra_section_forbidden(self):
        with pytest.raises(ValidationError):
            FrostConfig(alerts={})

    def test_nested_dicts(self):
        config = FrostConfig(cache={"ttl_seconds": 60}, ops={"max_workers": 2})
        assert config.cache.ttl_seconds == 60
        assert config.ops.max_workers == 2
        assert config.telegram.enabled is False

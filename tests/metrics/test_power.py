"""Tests for cycling power metrics and device data sanitizing."""

import logging
from datetime import datetime

import pytest

from adaptive_training.metrics.power import (
    NormalizedMetrics,
    calculate_intensity_factor,
    calculate_normalized_power,
    calculate_tss,
    calculate_variability_index,
    estimate_normalized_power,
    is_power_sentinel,
    normalize_activity,
)
from adaptive_training.models.activity import Activity


def make_ride(**overrides) -> Activity:
    fields = {
        "id": "ride-1",
        "start_time": datetime(2024, 6, 3, 8, 0),
        "duration_sec": 3600,
        "avg_power": 250,
        "max_power": 480,
    }
    fields.update(overrides)
    return Activity(**fields)


class TestPowerSentinel:
    """Tests for device error code detection."""

    def test_65535_is_sentinel(self):
        assert is_power_sentinel(65535) is True

    def test_threshold_is_inclusive(self):
        assert is_power_sentinel(2500) is True
        assert is_power_sentinel(2499) is False

    def test_missing_max_power_is_not_sentinel(self):
        assert is_power_sentinel(None) is False


class TestEstimateNormalizedPower:
    """Tests for NP estimation from summary fields."""

    def test_boost_from_max_power(self):
        """250W avg / 480W max gives a 9.2% boost."""
        assert estimate_normalized_power(250, 480) == 273.0

    def test_boost_is_capped(self):
        """A huge max/avg ratio is capped at +25%."""
        assert estimate_normalized_power(100, 2000) == 125.0

    def test_max_below_average_never_reduces_np(self):
        assert estimate_normalized_power(200, 150) == 200.0

    def test_sentinel_max_uses_default_multiplier(self):
        assert estimate_normalized_power(200, 65535) == 216.0

    def test_variability_tier_multiplier(self):
        assert estimate_normalized_power(200, None, variability="steady") == 206.0
        assert estimate_normalized_power(200, None, variability="variable") == 230.0
        assert estimate_normalized_power(200, None, variability="highly_variable") == 240.0

    def test_unknown_tier_falls_back_to_moderate(self):
        assert estimate_normalized_power(200, None, variability="chaotic") == 216.0

    def test_no_average_power(self):
        assert estimate_normalized_power(None, 480) is None
        assert estimate_normalized_power(0, 480) is None


class TestNormalizedPowerStream:
    """Tests for NP from a power stream."""

    def test_steady_power(self):
        """Steady power should give NP equal to average power."""
        np = calculate_normalized_power([200] * 1800)
        assert abs(np - 200) < 0.5

    def test_variable_power_higher_than_average(self):
        samples = []
        for _ in range(30):
            samples.extend([100] * 30)
            samples.extend([300] * 30)

        np = calculate_normalized_power(samples)
        assert np > sum(samples) / len(samples)

    def test_empty_stream(self):
        assert calculate_normalized_power([]) is None

    def test_too_few_samples(self):
        assert calculate_normalized_power([200, 210]) is None

    def test_short_stream_uses_whole_window(self):
        np = calculate_normalized_power([200] * 10)
        assert abs(np - 200) < 0.5


class TestDerivedMetrics:
    """Tests for IF, VI and TSS."""

    def test_intensity_factor(self):
        assert calculate_intensity_factor(273, 250) == 1.09

    def test_intensity_factor_missing_inputs(self):
        assert calculate_intensity_factor(None, 250) is None
        assert calculate_intensity_factor(273, None) is None
        assert calculate_intensity_factor(273, 0) is None

    def test_variability_index(self):
        assert calculate_variability_index(273, 250) == 1.09
        assert calculate_variability_index(273, None) is None

    def test_one_hour_at_ftp_is_100(self):
        assert calculate_tss(3600, 250, 1.0, 250) == 100

    def test_halves_round_up(self):
        assert calculate_intensity_factor(25, 200) == 0.13
        assert calculate_tss(3600, 100, 0.25, 200) == 13

    def test_tss_missing_inputs(self):
        assert calculate_tss(3600, 250, 1.0, None) is None
        assert calculate_tss(0, 250, 1.0, 250) is None
        assert calculate_tss(3600, None, 1.0, 250) is None


class TestNormalizeActivity:
    """Tests for producing comparable NP/IF/TSS for an activity."""

    def test_estimates_from_average_and_max(self):
        """One hour at 250W avg / 480W max with FTP 250."""
        metrics = normalize_activity(make_ride(), ftp=250)

        assert metrics.normalized_power == 273.0
        assert metrics.intensity_factor == 1.09
        assert metrics.tss == 119
        assert metrics.corrupted is False
        assert metrics.source == "estimated"

    def test_sentinel_discards_device_values(self, caplog):
        """A 65535W max marks device NP/IF/TSS as corrupted."""
        ride = make_ride(
            avg_power=200,
            max_power=65535,
            device_normalized_power=900,
            device_intensity_factor=3.6,
            device_tss=1200,
        )

        with caplog.at_level(logging.WARNING):
            metrics = normalize_activity(ride, ftp=250)

        assert metrics.corrupted is True
        assert metrics.normalized_power == 216.0
        assert metrics.intensity_factor == 0.86
        assert metrics.tss == 74
        assert metrics.source == "estimated"
        assert "sentinel" in caplog.text

    def test_trusted_device_values_are_kept(self):
        ride = make_ride(
            avg_power=220,
            max_power=600,
            device_normalized_power=240,
            device_intensity_factor=0.96,
            device_tss=95,
        )

        metrics = normalize_activity(ride, ftp=250)

        assert metrics.normalized_power == 240
        assert metrics.intensity_factor == 0.96
        assert metrics.tss == 95
        assert metrics.source == "device"

    def test_no_ftp_leaves_if_and_tss_unknown(self):
        metrics = normalize_activity(make_ride(), ftp=None)

        assert metrics.normalized_power == 273.0
        assert metrics.intensity_factor is None
        assert metrics.tss is None
        assert metrics.source is None

    def test_no_power_data(self):
        ride = make_ride(avg_power=None, max_power=None)
        metrics = normalize_activity(ride, ftp=250)

        assert metrics == NormalizedMetrics()

    def test_to_dict(self):
        data = normalize_activity(make_ride(), ftp=250).to_dict()
        assert data["tss"] == 119
        assert data["corrupted"] is False

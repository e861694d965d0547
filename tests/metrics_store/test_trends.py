"""
Tests for TrendCalculator.
"""

from datetime import timedelta

import pytest

from metrics_store import MetricsConfig, TrendCalculator, TrendDirection
from metrics_store.trends import classify_change, round_half_up


DEP = "dep-1"


@pytest.fixture
def calculator(store):
    return TrendCalculator(store)


def record_series(store, clock, values):
    """Record values oldest first, one minute apart, ending now."""
    now = clock.now()
    for offset, value in enumerate(reversed(values)):
        store.record(DEP, "response_time", value, "ms", timestamp=now - timedelta(minutes=offset))


class TestCalculateTrend:
    """Tests for calculate_trend()."""

    def test_no_samples_is_stable(self, calculator):
        result = calculator.calculate_trend(DEP, "response_time")
        assert result.trend == TrendDirection.STABLE
        assert result.change == 0.0

    def test_single_sample_is_stable(self, store, calculator, clock):
        record_series(store, clock, [50])
        result = calculator.calculate_trend(DEP, "response_time")
        assert result.to_dict() == {"trend": "stable", "change": 0.0}

    def test_upward_trend(self, store, calculator, clock):
        record_series(store, clock, [100, 120])

        result = calculator.calculate_trend(DEP, "response_time")

        assert result.trend == TrendDirection.UP
        assert result.change == 20.0

    def test_downward_trend(self, store, calculator, clock):
        record_series(store, clock, [100, 80])

        result = calculator.calculate_trend(DEP, "response_time")

        assert result.trend == TrendDirection.DOWN
        assert result.change == -20.0

    def test_reference_is_midpoint_of_newest_first_window(self, store, calculator, clock):
        # newest first: [150, 100, 50, 10]; index 2 -> 50
        record_series(store, clock, [10, 50, 100, 150])

        result = calculator.calculate_trend(DEP, "response_time")

        assert result.change == 200.0
        assert result.sample_count == 4

    def test_change_within_threshold_is_stable(self, store, calculator, clock):
        record_series(store, clock, [100, 104])
        result = calculator.calculate_trend(DEP, "response_time")
        assert result.trend == TrendDirection.STABLE
        assert result.change == 4.0

    def test_exact_threshold_is_stable(self, store, calculator, clock):
        record_series(store, clock, [100, 105])
        assert calculator.calculate_trend(DEP, "response_time").is_stable

    def test_change_rounded_to_two_decimals(self, store, calculator, clock):
        record_series(store, clock, [3, 4])
        assert calculator.calculate_trend(DEP, "response_time").change == 33.33

    def test_zero_reference_has_no_percentage(self, store, calculator, clock):
        record_series(store, clock, [0, 5])

        result = calculator.calculate_trend(DEP, "response_time")

        assert result.change is None
        assert result.trend == TrendDirection.UP

    def test_zero_reference_and_zero_latest_is_stable(self, store, calculator, clock):
        record_series(store, clock, [0, 0])

        result = calculator.calculate_trend(DEP, "response_time")

        assert result.change is None
        assert result.trend == TrendDirection.STABLE

    def test_configurable_threshold(self, store, clock):
        calculator = TrendCalculator(store, config=MetricsConfig(trend_threshold_pct=25))
        record_series(store, clock, [100, 120])

        assert calculator.threshold_pct == 25
        assert calculator.calculate_trend(DEP, "response_time").is_stable

    def test_only_requested_type_is_used(self, store, calculator, clock):
        record_series(store, clock, [100, 120])
        store.record(DEP, "cpu_usage", 1, "percent")

        assert calculator.calculate_trend(DEP, "response_time").change == 20.0

    def test_respects_time_range(self, store, calculator, clock):
        store.record(DEP, "response_time", 100, "ms", timestamp=clock.now() - timedelta(hours=3))
        store.record(DEP, "response_time", 120, "ms")

        assert calculator.calculate_trend(DEP, "response_time", time_range="1h").change == 0.0
        assert calculator.calculate_trend(DEP, "response_time", time_range="24h").change == 20.0


class TestHelpers:
    """Tests for rounding and classification helpers."""

    def test_round_half_up(self):
        assert round_half_up(0.125) == 0.13
        assert round_half_up(-0.125) == -0.12
        assert round_half_up(20.0) == 20.0

    def test_classify_change(self):
        assert classify_change(5.01, 5.0) == TrendDirection.UP
        assert classify_change(-5.01, 5.0) == TrendDirection.DOWN
        assert classify_change(-5.0, 5.0) == TrendDirection.STABLE

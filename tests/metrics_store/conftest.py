"""Shared fixtures for metrics_store tests."""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from metrics_store import MetricsConfig, MetricStore


# Wednesday
NOW = datetime(2026, 3, 4, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return MockClock(NOW)


@pytest.fixture
def config():
    return MetricsConfig()


@pytest.fixture
def store(config, clock):
    return MetricStore(config=config, clock=clock)

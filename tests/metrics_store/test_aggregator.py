"""
Tests for Aggregator bucketing and summaries.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import (
    InvalidGroupByError,
    InvalidMetricError,
    InvalidTimeRangeError,
    ValidationError,
)
from metrics_store import Aggregator, GroupBy, MetricService, MetricType
from metrics_store.aggregator import truncate_timestamp


DEP = "dep-1"


@pytest.fixture
def aggregator(store):
    return Aggregator(store)


def at(clock, minutes_ago):
    return clock.now() - timedelta(minutes=minutes_ago)


# ============================================================
# BUCKETS
# ============================================================

class TestAggregate:
    """Tests for aggregate()."""

    def test_two_samples_in_one_hour_bucket(self, store, aggregator, clock):
        # 12:05 and 12:20 with the clock at 12:30
        store.record(DEP, "response_time", 10, "ms", timestamp=at(clock, 25))
        store.record(DEP, "response_time", 20, "ms", timestamp=at(clock, 10))

        buckets = aggregator.aggregate(DEP, time_range="24h", group_by="hour")

        assert len(buckets) == 1
        bucket = buckets[0]
        assert bucket.avg == 15.0
        assert bucket.min == 10.0
        assert bucket.max == 20.0
        assert bucket.count == 2
        assert bucket.latest == 20.0
        assert bucket.interval == "2026-03-04 12:00"

    def test_latest_is_chronological_not_maximum(self, store, aggregator, clock):
        store.record(DEP, "latency", 30, "ms", timestamp=at(clock, 20))
        store.record(DEP, "latency", 10, "ms", timestamp=at(clock, 5))

        bucket = aggregator.aggregate(DEP)[0]
        assert bucket.max == 30.0
        assert bucket.latest == 10.0

    def test_separate_buckets_per_type_and_service(self, store, aggregator):
        store.record(DEP, "latency", 1, "ms", service="frontend")
        store.record(DEP, "latency", 2, "ms", service="backend")
        store.record(DEP, "cpu_usage", 3, "percent", service="backend")

        keys = [(b.type, b.service) for b in aggregator.aggregate(DEP)]
        assert keys == [
            (MetricType.CPU_USAGE, MetricService.BACKEND),
            (MetricType.LATENCY, MetricService.BACKEND),
            (MetricType.LATENCY, MetricService.FRONTEND),
        ]

    def test_sorted_by_bucket_start_first(self, store, aggregator, clock):
        store.record(DEP, "cpu_usage", 1, "percent", timestamp=at(clock, 5))
        store.record(DEP, "latency", 2, "ms", timestamp=at(clock, 65))

        buckets = aggregator.aggregate(DEP)
        assert [b.interval for b in buckets] == ["2026-03-04 11:00", "2026-03-04 12:00"]
        assert buckets[0].type == MetricType.LATENCY

    def test_day_grouping(self, store, aggregator, clock):
        store.record(DEP, "latency", 4, "ms", timestamp=at(clock, 60 * 13))
        store.record(DEP, "latency", 8, "ms", timestamp=at(clock, 5))

        buckets = aggregator.aggregate(DEP, time_range="7d", group_by="day")

        assert [b.interval for b in buckets] == ["2026-03-03", "2026-03-04"]
        assert [b.count for b in buckets] == [1, 1]

    def test_week_grouping_starts_on_sunday(self, store, aggregator):
        store.record(DEP, "latency", 4, "ms")

        bucket = aggregator.aggregate(DEP, time_range="7d", group_by=GroupBy.WEEK)[0]

        assert bucket.bucket_start == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert bucket.interval == "2026-W09"

    def test_empty_window(self, aggregator):
        assert aggregator.aggregate(DEP) == []

    def test_rejects_unknown_group_by(self, aggregator):
        with pytest.raises(InvalidGroupByError) as exc_info:
            aggregator.aggregate(DEP, group_by="minute")
        assert exc_info.value.field_name == "groupBy"
        assert isinstance(exc_info.value, ValidationError)
        assert not isinstance(exc_info.value, InvalidTimeRangeError)

    def test_rejects_unknown_time_range(self, aggregator):
        with pytest.raises(InvalidTimeRangeError):
            aggregator.aggregate(DEP, time_range="90d")

    def test_bucket_to_dict(self, store, aggregator):
        store.record(DEP, "uptime", 99.5, "percent")
        data = aggregator.aggregate(DEP)[0].to_dict()

        assert data["type"] == "uptime"
        assert data["service"] == "overall"
        assert data["count"] == 1


class TestTruncateTimestamp:
    """Tests for bucket boundaries."""

    def test_sunday_is_its_own_week_start(self):
        sunday = datetime(2026, 3, 1, 18, 45, tzinfo=timezone.utc)
        assert truncate_timestamp(sunday, GroupBy.WEEK) == datetime(
            2026, 3, 1, tzinfo=timezone.utc
        )

    def test_saturday_belongs_to_previous_sunday(self):
        saturday = datetime(2026, 3, 7, 23, 59, tzinfo=timezone.utc)
        assert truncate_timestamp(saturday, GroupBy.WEEK) == datetime(
            2026, 3, 1, tzinfo=timezone.utc
        )

    def test_hour(self):
        ts = datetime(2026, 3, 4, 9, 59, 59, 999, tzinfo=timezone.utc)
        assert truncate_timestamp(ts, GroupBy.HOUR) == datetime(
            2026, 3, 4, 9, tzinfo=timezone.utc
        )


# ============================================================
# SUMMARY
# ============================================================

class TestSummarize:
    """Tests for summarize()."""

    def test_summary_over_window(self, store, aggregator, clock):
        store.record(DEP, "error_rate", 1, "percent", timestamp=at(clock, 120))
        store.record(DEP, "error_rate", 5, "percent", timestamp=at(clock, 60))
        store.record(DEP, "error_rate", 3, "percent", timestamp=at(clock, 1))
        store.record(DEP, "latency", 100, "ms")

        summary = aggregator.summarize(DEP, "error_rate")

        assert summary.type == MetricType.ERROR_RATE
        assert summary.count == 3
        assert summary.avg == 3.0
        assert summary.min == 1.0
        assert summary.max == 5.0
        assert summary.latest == 3.0

    def test_empty_summary_is_none(self, aggregator):
        assert aggregator.summarize(DEP, "latency") is None

    def test_rejects_unknown_type(self, aggregator):
        with pytest.raises(InvalidMetricError):
            aggregator.summarize(DEP, "bogus")

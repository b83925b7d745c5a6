"""Tests for src/repository.py - queries, writes and live updates."""

from dataclasses import replace
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from src.models import Measurement
from src.repository import MeasurementRepository
from src.storage.base import StorageError
from src.time_windows import to_millis


def _insert_all(repository, measurements):
    return [repository.insert(m) for m in measurements]


class TestReads:
    """Tests for query results."""

    def test_all_measurements_newest_first(self, repository, spread_measurements):
        _insert_all(repository, spread_measurements)
        result = repository.all_measurements().get()
        assert [m.systolic for m in result] == [150, 135, 120]

    def test_latest(self, repository, spread_measurements):
        assert repository.latest().get() is None
        _insert_all(repository, spread_measurements)
        assert repository.latest().get().systolic == 150

    def test_total_count(self, repository, spread_measurements):
        assert repository.total_count().get() == 0
        _insert_all(repository, spread_measurements)
        assert repository.total_count().get() == 3

    def test_by_id_round_trip(self, repository, sample_measurement):
        record_id = repository.insert(sample_measurement)
        assert repository.by_id(record_id) == sample_measurement.with_id(record_id)

    def test_by_id_absent(self, repository):
        assert repository.by_id(123) is None

    def test_since_is_ascending(self, repository, spread_measurements, now):
        _insert_all(repository, reversed(spread_measurements))
        result = repository.since(to_millis(now - timedelta(days=7))).get()
        assert [m.systolic for m in result] == [135, 150]

    def test_initial_values_before_load(self, repository):
        assert repository.all_measurements().value == []
        assert repository.latest().value is None
        assert repository.total_count().value == 0


class TestWindows:
    """Tests for week/month/year convenience queries."""

    def test_week_window(self, repository, spread_measurements, now_millis):
        _insert_all(repository, spread_measurements)
        result = repository.week_window(now=now_millis).get()
        assert [m.systolic for m in result] == [135, 150]

    def test_month_window_includes_all(self, repository, spread_measurements, now_millis):
        _insert_all(repository, spread_measurements)
        result = repository.month_window(now=now_millis).get()
        assert [m.systolic for m in result] == [120, 135, 150]

    def test_year_window(self, repository, now, now_millis):
        old = Measurement(
            systolic=100, diastolic=65, pulse=60, timestamp=to_millis(now - timedelta(days=400))
        )
        recent = Measurement(
            systolic=110, diastolic=70, pulse=62, timestamp=to_millis(now - timedelta(days=300))
        )
        _insert_all(repository, [old, recent])

        result = repository.year_window(now=now_millis).get()

        assert [m.systolic for m in result] == [110]

    def test_window_defaults_to_clock(self, repository, now_millis, spread_measurements):
        _insert_all(repository, spread_measurements)
        with patch("src.repository.current_millis", return_value=now_millis):
            result = repository.week_window().get()
        assert len(result) == 2


class TestWrites:
    """Tests for insert/update/delete semantics."""

    def test_insert_then_all_contains_once(self, repository, sample_measurement):
        record_id = repository.insert(sample_measurement)
        ids = [m.id for m in repository.all_measurements().get()]
        assert ids.count(record_id) == 1

    def test_insert_existing_id_upserts(self, repository, sample_measurement):
        record_id = repository.insert(sample_measurement)
        repository.insert(replace(sample_measurement, id=record_id, systolic=133))

        assert repository.total_count().get() == 1
        assert repository.by_id(record_id).systolic == 133

    def test_update_missing_id_leaves_store_unchanged(self, repository, spread_measurements):
        _insert_all(repository, spread_measurements)
        before = repository.all_measurements().get()

        repository.update(spread_measurements[0].with_id(9999))

        assert repository.all_measurements().get() == before

    def test_delete(self, repository, sample_measurement):
        record_id = repository.insert(sample_measurement)
        repository.delete(repository.by_id(record_id))
        assert repository.by_id(record_id) is None

    def test_delete_missing_is_noop(self, repository, sample_measurement):
        repository.insert(sample_measurement)
        repository.delete_by_id(555)
        assert repository.total_count().get() == 1

    def test_delete_all(self, repository, spread_measurements):
        _insert_all(repository, spread_measurements)
        assert repository.delete_all() == 3
        assert repository.all_measurements().get() == []


class TestLiveUpdates:
    """Active queries follow every write."""

    def test_subscriber_sees_insert(self, repository, sample_measurement):
        query = repository.all_measurements()
        received = []
        query.subscribe(received.append)

        record_id = repository.insert(sample_measurement)

        assert received[0] == []
        assert [m.id for m in received[-1]] == [record_id]
        assert query.value == received[-1]

    def test_count_and_latest_follow_writes(self, repository, spread_measurements):
        count = repository.total_count()
        latest = repository.latest()
        count.subscribe(lambda _: None)
        latest.subscribe(lambda _: None)

        ids = _insert_all(repository, spread_measurements)
        assert count.value == 3
        assert latest.value.systolic == 150

        repository.delete_by_id(ids[2])
        assert count.value == 2
        assert latest.value.systolic == 135

        repository.delete_all()
        assert count.value == 0
        assert latest.value is None

    def test_update_visible_to_subscriber(self, repository, sample_measurement):
        record_id = repository.insert(sample_measurement)
        query = repository.all_measurements()
        query.subscribe(lambda _: None)

        repository.update(replace(sample_measurement, id=record_id, notes="edited"))

        assert query.value[0].notes == "edited"

    def test_inactive_query_not_reloaded(self, repository, sample_measurement):
        query = repository.all_measurements()
        repository.insert(sample_measurement)
        assert query.value == []
        assert query.is_active is False

    def test_unsubscribed_observer_not_called(self, repository, sample_measurement):
        query = repository.total_count()
        received = []
        unsubscribe = query.subscribe(received.append)
        unsubscribe()

        repository.insert(sample_measurement)

        assert received == [0]


class TestErrors:
    """Storage failures on reads and writes."""

    def test_read_failure_propagates(self):
        storage = MagicMock()
        storage.get_all.side_effect = StorageError("I/O error")
        repository = MeasurementRepository(storage)

        with pytest.raises(StorageError):
            repository.all_measurements().get()

    def test_write_failure_propagates(self, sample_measurement):
        storage = MagicMock()
        storage.insert.side_effect = StorageError("disk full")
        repository = MeasurementRepository(storage)

        with pytest.raises(StorageError):
            repository.insert(sample_measurement)

    def test_failed_refresh_after_write_keeps_write_and_other_queries(
        self, repository, storage, sample_measurement, now_millis, caplog
    ):
        broken = [repository.between(0, now_millis) for _ in range(3)]
        for query in broken:
            query.subscribe(lambda _: None)
        count = repository.total_count()
        latest = repository.latest()
        count.subscribe(lambda _: None)
        latest.subscribe(lambda _: None)

        with patch.object(storage, "get_between", side_effect=StorageError("I/O error")):
            record_id = repository.insert(sample_measurement)

        assert storage.get_by_id(record_id) is not None
        assert count.value == 1
        assert latest.value.id == record_id
        assert all(query.value == [] for query in broken)
        assert "Failed to refresh" in caplog.text


class TestEndToEnd:
    """Three measurements over 10 days, week range and its statistics."""

    def test_week_range_and_statistics(self, repository, spread_measurements, now):
        _insert_all(repository, spread_measurements)
        start = to_millis(now - timedelta(days=7))
        end = to_millis(now)

        in_range = repository.between(start, end).get()
        stats = repository.statistics(start, end)

        assert [m.systolic for m in in_range] == [150, 135]
        assert stats.avg_systolic == pytest.approx(142.5)
        assert stats.min_systolic == 135
        assert stats.max_systolic == 150

    def test_statistics_independent_of_insert_order(self, storage, spread_measurements, now):
        repository = MeasurementRepository(storage)
        _insert_all(repository, reversed(spread_measurements))
        stats = repository.statistics(0, to_millis(now))

        assert stats.avg_systolic == pytest.approx((120 + 135 + 150) / 3)
        assert stats.min_diastolic == 78
        assert stats.max_pulse == 80

    def test_statistics_empty_range(self, repository, spread_measurements, now):
        _insert_all(repository, spread_measurements)
        start = to_millis(now + timedelta(days=1))
        stats = repository.statistics(start, to_millis(now + timedelta(days=2)))
        assert stats.is_empty

"""Measurement repository.

Wraps a :class:`MeasurementStorage` backend with the queries the screens
need. Read queries are returned as :class:`LiveQuery` objects; after every
write the repository refreshes all active queries before returning, so a
write is complete only once observers have seen the new state.
"""

from __future__ import annotations

import logging
import weakref

from src.live import LiveQuery
from src.models import Measurement, Statistics, current_millis
from src.statistics import StatisticsAggregator
from src.storage.base import MeasurementStorage, StorageError
from src.time_windows import TimeWindow, window_start_millis

logger = logging.getLogger(__name__)


class MeasurementRepository:
    """Semantic queries and writes over a storage backend."""

    def __init__(self, storage: MeasurementStorage):
        """Initialize the repository.

        Args:
            storage: Backend implementing the measurement storage port
        """
        self.storage = storage
        self.aggregator = StatisticsAggregator(storage)
        self._queries: weakref.WeakSet[LiveQuery] = weakref.WeakSet()

    # ---- live queries ----

    def _track(self, query: LiveQuery) -> LiveQuery:
        self._queries.add(query)
        return query

    def all_measurements(self) -> LiveQuery[list[Measurement]]:
        """All measurements, newest first."""
        return self._track(LiveQuery(self.storage.get_all, [], name="all"))

    def latest(self) -> LiveQuery[Measurement | None]:
        return self._track(LiveQuery(self.storage.get_latest, None, name="latest"))

    def total_count(self) -> LiveQuery[int]:
        return self._track(LiveQuery(self.storage.count, 0, name="count"))

    def between(self, start: int, end: int) -> LiveQuery[list[Measurement]]:
        """Measurements with ``start <= timestamp <= end``, newest first."""
        query = LiveQuery(
            lambda: self.storage.get_between(start, end), [], name=f"between:{start}:{end}"
        )
        return self._track(query)

    def since(self, start: int) -> LiveQuery[list[Measurement]]:
        """Measurements with ``timestamp >= start``, oldest first (chart order)."""
        query = LiveQuery(lambda: self.storage.get_from(start), [], name=f"since:{start}")
        return self._track(query)

    def window(self, window: TimeWindow, now: int | None = None) -> LiveQuery[list[Measurement]]:
        """Measurements of the last week/month/year, oldest first.

        The window start is fixed when the query is created.
        """
        now = current_millis() if now is None else now
        return self.since(window_start_millis(now, window))

    def week_window(self, now: int | None = None) -> LiveQuery[list[Measurement]]:
        return self.window(TimeWindow.WEEK, now)

    def month_window(self, now: int | None = None) -> LiveQuery[list[Measurement]]:
        return self.window(TimeWindow.MONTH, now)

    def year_window(self, now: int | None = None) -> LiveQuery[list[Measurement]]:
        return self.window(TimeWindow.YEAR, now)

    # ---- one-shot reads ----

    def by_id(self, measurement_id: int) -> Measurement | None:
        return self.storage.get_by_id(measurement_id)

    def statistics(self, start: int, end: int) -> Statistics:
        return self.aggregator.statistics(start, end)

    def statistics_for(self, window: TimeWindow, now: int | None = None) -> Statistics:
        """Statistics from the window start up to ``now``."""
        now = current_millis() if now is None else now
        return self.statistics(window_start_millis(now, window), now)

    # ---- writes ----

    def insert(self, measurement: Measurement) -> int:
        """Store a measurement, replacing any record with the same id.

        Returns:
            Id of the stored record
        """
        record_id = self.storage.insert(measurement)
        logger.debug(f"Inserted measurement {record_id}: {measurement}")
        self._notify_changed()
        return record_id

    def update(self, measurement: Measurement) -> None:
        """Replace the record with the same id. Unknown ids are ignored."""
        self.storage.update(measurement)
        logger.debug(f"Updated measurement {measurement.id}")
        self._notify_changed()

    def delete(self, measurement: Measurement) -> None:
        self.delete_by_id(measurement.id)

    def delete_by_id(self, measurement_id: int) -> None:
        self.storage.delete_by_id(measurement_id)
        logger.debug(f"Deleted measurement {measurement_id}")
        self._notify_changed()

    def delete_all(self) -> int:
        deleted = self.storage.delete_all()
        logger.warning(f"Cleared all {deleted} measurements")
        self._notify_changed()
        return deleted

    def _notify_changed(self) -> None:
        """Refresh every active query after a completed write.

        The write has already been stored, so reload failures are logged
        and the affected query keeps its last good value.
        """
        for query in list(self._queries):
            if not query.is_active:
                continue
            try:
                query.refresh()
            except StorageError as e:
                logger.error(f"Failed to refresh {query!r} after write: {e}")

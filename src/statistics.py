"""Period statistics for blood pressure measurements.

Provides:
- compute_statistics: in-process average/min/max over a list of measurements
- StatisticsAggregator: range statistics delegated to the storage backend
- PeriodStatistics: week/month/year statistics kept current after writes
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from src.live import LiveValue
from src.models import Measurement, Statistics, current_millis
from src.storage.base import MeasurementStorage
from src.time_windows import TimeWindow

if TYPE_CHECKING:
    from src.repository import MeasurementRepository

logger = logging.getLogger(__name__)


def compute_statistics(measurements: Iterable[Measurement]) -> Statistics:
    """Average/min/max of systolic, diastolic and pulse.

    Args:
        measurements: Measurements to aggregate, in any order

    Returns:
        Statistics, with every field None when there are no measurements
    """
    return Statistics.from_measurements(measurements)


class StatisticsAggregator:
    """Computes statistics for a ``[start, end]`` millisecond range."""

    def __init__(self, storage: MeasurementStorage, native: bool = True):
        """Initialize the aggregator.

        Args:
            storage: Storage backend
            native: Let the backend aggregate (e.g. SQL AVG/MIN/MAX) instead of
                loading the range and aggregating in-process
        """
        self.storage = storage
        self.native = native

    def statistics(self, start: int, end: int) -> Statistics:
        if self.native:
            return self.storage.aggregate(start, end)
        return compute_statistics(self.storage.get_between(start, end))


class PeriodStatistics:
    """Week, month and year statistics for a display session.

    ``reload()`` recomputes all three periods in a worker thread. A reload
    started while an earlier one is still pending cancels the earlier one,
    so only the latest result is published. The async write helpers run the
    write first and reload afterwards.
    """

    def __init__(self, repository: MeasurementRepository):
        self.repository = repository
        self.week: LiveValue[Statistics | None] = LiveValue(None)
        self.month: LiveValue[Statistics | None] = LiveValue(None)
        self.year: LiveValue[Statistics | None] = LiveValue(None)
        self._task: asyncio.Task | None = None

    def reload(self, now: int | None = None) -> asyncio.Task:
        """Schedule a recomputation on the running event loop."""
        if self._task is not None and not self._task.done():
            logger.debug("Superseding pending statistics reload")
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._load(now))
        return self._task

    async def wait(self) -> None:
        """Wait until the latest scheduled reload has finished.

        A reload superseded while waiting is followed by its replacement.
        """
        while self._task is not None:
            task = self._task
            try:
                await task
                return
            except asyncio.CancelledError:
                if task is self._task:
                    raise

    async def _load(self, now: int | None) -> None:
        now = current_millis() if now is None else now
        results = {}
        for window in TimeWindow:
            results[window] = await asyncio.to_thread(self.repository.statistics_for, window, now)

        self.week.set(results[TimeWindow.WEEK])
        self.month.set(results[TimeWindow.MONTH])
        self.year.set(results[TimeWindow.YEAR])
        logger.debug(f"Statistics reloaded for now={now}")

    async def insert(self, measurement: Measurement) -> int:
        record_id = await asyncio.to_thread(self.repository.insert, measurement)
        self.reload()
        return record_id

    async def update(self, measurement: Measurement) -> None:
        await asyncio.to_thread(self.repository.update, measurement)
        self.reload()

    async def delete(self, measurement: Measurement) -> None:
        await asyncio.to_thread(self.repository.delete, measurement)
        self.reload()

    async def delete_by_id(self, measurement_id: int) -> None:
        await asyncio.to_thread(self.repository.delete_by_id, measurement_id)
        self.reload()

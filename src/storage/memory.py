"""In-process measurement storage.

Keeps records in a dict keyed by id. Used for tests and for embedding the
engine where nothing needs to survive the process.
"""

import logging
import threading

from src.models import Measurement
from src.storage.base import MeasurementStorage

logger = logging.getLogger(__name__)


class InMemoryMeasurementStorage(MeasurementStorage):
    """Dict-backed storage with autoincrement ids."""

    def __init__(self) -> None:
        self._records: dict[int, Measurement] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def insert(self, measurement: Measurement) -> int:
        with self._lock:
            if measurement.id:
                record_id = measurement.id
                self._next_id = max(self._next_id, record_id + 1)
            else:
                record_id = self._next_id
                self._next_id += 1
            self._records[record_id] = measurement.with_id(record_id)
        logger.debug(f"Stored measurement {record_id}")
        return record_id

    def update(self, measurement: Measurement) -> None:
        with self._lock:
            if measurement.id in self._records:
                self._records[measurement.id] = measurement

    def delete_by_id(self, measurement_id: int) -> None:
        with self._lock:
            self._records.pop(measurement_id, None)

    def delete_all(self) -> int:
        with self._lock:
            deleted = len(self._records)
            self._records.clear()
        return deleted

    def get_by_id(self, measurement_id: int) -> Measurement | None:
        with self._lock:
            return self._records.get(measurement_id)

    def get_all(self) -> list[Measurement]:
        return self._sorted(self._snapshot(), newest_first=True)

    def get_between(self, start: int, end: int) -> list[Measurement]:
        records = [m for m in self._snapshot() if start <= m.timestamp <= end]
        return self._sorted(records, newest_first=True)

    def get_from(self, start: int) -> list[Measurement]:
        records = [m for m in self._snapshot() if m.timestamp >= start]
        return self._sorted(records, newest_first=False)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def _snapshot(self) -> list[Measurement]:
        with self._lock:
            return list(self._records.values())

    @staticmethod
    def _sorted(records: list[Measurement], newest_first: bool) -> list[Measurement]:
        # id breaks timestamp ties so ordering matches the SQLite backend
        return sorted(records, key=lambda m: (m.timestamp, m.id), reverse=newest_first)

"""Storage port for measurements.

The repository only talks to this interface. Backends assign ids, keep
records keyed by id and answer timestamp range queries.
"""

from abc import ABC, abstractmethod

from src.models import Measurement, Statistics


class StorageError(Exception):
    """Underlying persistence failure (I/O, corruption, constraint violation)."""


class MeasurementStorage(ABC):
    """Abstract base class for measurement storage backends.

    Range bounds are inclusive millisecond timestamps. Updating or deleting
    an id that does not exist is a no-op, never an error.
    """

    @abstractmethod
    def insert(self, measurement: Measurement) -> int:
        """Store a measurement.

        Args:
            measurement: Measurement to store. ``id == 0`` assigns a new id,
                any other id replaces the existing record (upsert).

        Returns:
            Id of the stored record
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, measurement: Measurement) -> None:
        """Replace the record with the same id, ignoring unknown ids."""
        raise NotImplementedError

    @abstractmethod
    def delete_by_id(self, measurement_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_all(self) -> int:
        """Remove every record.

        Returns:
            Number of deleted records
        """
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, measurement_id: int) -> Measurement | None:
        raise NotImplementedError

    @abstractmethod
    def get_all(self) -> list[Measurement]:
        """All records, newest first."""
        raise NotImplementedError

    @abstractmethod
    def get_between(self, start: int, end: int) -> list[Measurement]:
        """Records with ``start <= timestamp <= end``, newest first."""
        raise NotImplementedError

    @abstractmethod
    def get_from(self, start: int) -> list[Measurement]:
        """Records with ``timestamp >= start``, oldest first."""
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        raise NotImplementedError

    def get_latest(self) -> Measurement | None:
        """Most recent record, or None for an empty store."""
        records = self.get_all()
        return records[0] if records else None

    def aggregate(self, start: int, end: int) -> Statistics:
        """Average/min/max per field over ``[start, end]``.

        Backends that can aggregate natively should override this.
        """
        return Statistics.from_measurements(self.get_between(start, end))

"""Measurement storage backends.

Each backend implements the MeasurementStorage port consumed by the repository.
"""

from src.storage.base import MeasurementStorage, StorageError
from src.storage.memory import InMemoryMeasurementStorage
from src.storage.sqlite import SQLiteMeasurementStorage

__all__ = [
    "InMemoryMeasurementStorage",
    "MeasurementStorage",
    "SQLiteMeasurementStorage",
    "StorageError",
]

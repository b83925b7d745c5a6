"""Shared pytest fixtures for pressure-counter tests."""

from datetime import datetime, timedelta

import pytest

from src.models import Feeling, Measurement
from src.repository import MeasurementRepository
from src.storage.memory import InMemoryMeasurementStorage
from src.storage.sqlite import SQLiteMeasurementStorage
from src.time_windows import to_millis

NOW = datetime(2024, 3, 31, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time used across tests."""
    return NOW


@pytest.fixture
def now_millis() -> int:
    return to_millis(NOW)


@pytest.fixture
def sample_measurement() -> Measurement:
    """Create a sample measurement for testing."""
    return Measurement(
        systolic=120,
        diastolic=80,
        pulse=72,
        timestamp=to_millis(datetime(2024, 3, 30, 10, 30, 0)),
        notes="morning",
        feeling=Feeling.GOOD,
    )


@pytest.fixture
def high_bp_measurement() -> Measurement:
    """Create a high blood pressure measurement."""
    return Measurement(
        systolic=160,
        diastolic=100,
        pulse=85,
        timestamp=to_millis(datetime(2024, 3, 30, 20, 0, 0)),
        feeling=Feeling.BAD,
    )


@pytest.fixture
def spread_measurements() -> list[Measurement]:
    """Three measurements spanning 10 days before NOW, oldest first."""
    return [
        Measurement(
            systolic=120, diastolic=78, pulse=70, timestamp=to_millis(NOW - timedelta(days=10))
        ),
        Measurement(
            systolic=135, diastolic=85, pulse=74, timestamp=to_millis(NOW - timedelta(days=5))
        ),
        Measurement(
            systolic=150, diastolic=95, pulse=80, timestamp=to_millis(NOW - timedelta(days=1))
        ),
    ]


@pytest.fixture
def db_path(tmp_path) -> str:
    """Create a temporary database path for testing."""
    return str(tmp_path / "test_pressure.db")


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, db_path):
    """Every storage backend, so port behaviour is checked on both."""
    if request.param == "memory":
        return InMemoryMeasurementStorage()
    return SQLiteMeasurementStorage(db_path)


@pytest.fixture
def repository(storage) -> MeasurementRepository:
    return MeasurementRepository(storage)

"""SQLite storage backend for measurements.

Opens one connection per operation so the storage object can be shared
between the event loop and worker threads. Every ``sqlite3.Error`` is
re-raised as :class:`StorageError`.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path

from src.models import Feeling, Measurement, Statistics
from src.storage.base import MeasurementStorage, StorageError

logger = logging.getLogger(__name__)

_COLUMNS = "id, systolic, diastolic, pulse, timestamp, notes, feeling"


class SQLiteMeasurementStorage(MeasurementStorage):
    """Measurement storage in a single SQLite table."""

    def __init__(self, db_path: str = "data/pressure.db"):
        """Initialize the storage.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(sqlite3.connect(self.db_path)) as conn:
                conn.row_factory = sqlite3.Row
                with conn:
                    yield conn
        except sqlite3.Error as e:
            logger.error(f"SQLite error on {self.db_path}: {e}")
            raise StorageError(str(e)) from e

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS measurements (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    systolic INTEGER NOT NULL,
                    diastolic INTEGER NOT NULL,
                    pulse INTEGER NOT NULL,
                    timestamp INTEGER NOT NULL,
                    notes TEXT NOT NULL DEFAULT '',
                    feeling TEXT NOT NULL DEFAULT 'NORMAL'
                )
            """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_timestamp ON measurements(timestamp)")
        logger.debug(f"Database initialized at {self.db_path}")

    @staticmethod
    def _to_measurement(row: sqlite3.Row) -> Measurement:
        return Measurement(
            id=row["id"],
            systolic=row["systolic"],
            diastolic=row["diastolic"],
            pulse=row["pulse"],
            timestamp=row["timestamp"],
            notes=row["notes"] or "",
            feeling=Feeling.from_name(row["feeling"]),
        )

    def _select(self, where: str = "", params: tuple = (), order: str = "DESC") -> list[Measurement]:
        # where/order come from this module only, never from user input
        query = (
            f"SELECT {_COLUMNS} FROM measurements {where} "  # nosec B608
            f"ORDER BY timestamp {order}, id {order}"
        )
        with self._connect() as conn:
            return [self._to_measurement(row) for row in conn.execute(query, params).fetchall()]

    def insert(self, measurement: Measurement) -> int:
        values = (
            measurement.systolic,
            measurement.diastolic,
            measurement.pulse,
            measurement.timestamp,
            measurement.notes,
            measurement.feeling.name,
        )
        with self._connect() as conn:
            if measurement.id:
                conn.execute(
                    f"INSERT OR REPLACE INTO measurements ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (measurement.id, *values),
                )
                record_id = measurement.id
            else:
                cursor = conn.execute(
                    """
                    INSERT INTO measurements
                    (systolic, diastolic, pulse, timestamp, notes, feeling)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    values,
                )
                record_id = int(cursor.lastrowid)
        logger.debug(f"Stored measurement {record_id}")
        return record_id

    def update(self, measurement: Measurement) -> None:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE measurements SET
                    systolic = ?, diastolic = ?, pulse = ?,
                    timestamp = ?, notes = ?, feeling = ?
                WHERE id = ?
                """,
                (
                    measurement.systolic,
                    measurement.diastolic,
                    measurement.pulse,
                    measurement.timestamp,
                    measurement.notes,
                    measurement.feeling.name,
                    measurement.id,
                ),
            )
        if cursor.rowcount == 0:
            logger.debug(f"Update ignored, no measurement with id {measurement.id}")

    def delete_by_id(self, measurement_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM measurements WHERE id = ?", (measurement_id,))

    def delete_all(self) -> int:
        with self._connect() as conn:
            deleted = conn.execute("DELETE FROM measurements").rowcount
        return deleted

    def get_by_id(self, measurement_id: int) -> Measurement | None:
        records = self._select("WHERE id = ?", (measurement_id,))
        return records[0] if records else None

    def get_all(self) -> list[Measurement]:
        return self._select()

    def get_latest(self) -> Measurement | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM measurements ORDER BY timestamp DESC, id DESC LIMIT 1"
            ).fetchone()
        return self._to_measurement(row) if row else None

    def get_between(self, start: int, end: int) -> list[Measurement]:
        return self._select("WHERE timestamp >= ? AND timestamp <= ?", (start, end))

    def get_from(self, start: int) -> list[Measurement]:
        return self._select("WHERE timestamp >= ?", (start,), order="ASC")

    def count(self) -> int:
        with self._connect() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM measurements").fetchone()[0])

    def aggregate(self, start: int, end: int) -> Statistics:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT
                    AVG(systolic), AVG(diastolic), AVG(pulse),
                    MIN(systolic), MAX(systolic),
                    MIN(diastolic), MAX(diastolic),
                    MIN(pulse), MAX(pulse)
                FROM measurements
                WHERE timestamp >= ? AND timestamp <= ?
                """,
                (start, end),
            ).fetchone()
        return Statistics(*tuple(row))

"""CSV export of measurements.

One header row followed by one row per measurement, in the order given.
Date and time are separate columns in a fixed numeric format
(``dd.mm.yyyy`` and 24-hour ``HH:MM``, local time). Notes are always
quoted with embedded quotes doubled, since they are free text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from src.models import Measurement

logger = logging.getLogger(__name__)

CSV_HEADER = "Date,Time,Systolic,Diastolic,Pulse,PulsePressure,Feeling,Notes"

DATE_FORMAT = "%d.%m.%Y"
TIME_FORMAT = "%H:%M"


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def format_row(measurement: Measurement) -> str:
    """Format a single measurement as a CSV row (no line terminator)."""
    measured_at = measurement.measured_at
    return ",".join(
        [
            measured_at.strftime(DATE_FORMAT),
            measured_at.strftime(TIME_FORMAT),
            str(measurement.systolic),
            str(measurement.diastolic),
            str(measurement.pulse),
            str(measurement.pulse_pressure),
            measurement.feeling.label,
            _quote(measurement.notes),
        ]
    )


def export_to_csv(measurements: Iterable[Measurement], line_terminator: str = "\n") -> str:
    """Serialize measurements to CSV text.

    Args:
        measurements: Measurements in the order they should appear
        line_terminator: "\\n" or "\\r\\n"; every row ends with it, including the last

    Returns:
        CSV document as a string
    """
    lines = [CSV_HEADER]
    lines.extend(format_row(m) for m in measurements)
    return "".join(line + line_terminator for line in lines)


def export_file_name(now: datetime | None = None) -> str:
    """Default export file name, e.g. ``pressure_data_2024-03-31_18-05.csv``."""
    now = now or datetime.now()
    return f"pressure_data_{now:%Y-%m-%d_%H-%M}.csv"


def write_csv(path: str | Path, measurements: Iterable[Measurement]) -> Path:
    """Write measurements to a UTF-8 CSV file.

    Args:
        path: Target file; parent directories are created
        measurements: Measurements to export

    Returns:
        Path of the written file
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    records = list(measurements)
    content = export_to_csv(records)
    # newline="" keeps the terminators exactly as produced
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    logger.info(f"Exported {len(records)} measurements to {target}")
    return target

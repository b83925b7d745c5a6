"""History grouping and chart helpers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime

from src.models import Measurement

# Default chart bounds per field (mmHg / bpm)
CHART_BOUNDS: dict[str, tuple[float, float]] = {
    "systolic": (80, 180),
    "diastolic": (50, 120),
    "pulse": (40, 140),
    "pulse_pressure": (0, 100),
}


def group_by_day(measurements: Iterable[Measurement]) -> list[tuple[date, list[Measurement]]]:
    """Group measurements by local calendar day, most recent day first.

    Measurements keep their input order inside each day.
    """
    groups: dict[date, list[Measurement]] = {}
    for measurement in measurements:
        groups.setdefault(measurement.measured_at.date(), []).append(measurement)
    return sorted(groups.items(), key=lambda item: item[0], reverse=True)


def chart_series(
    measurements: Iterable[Measurement], field: str = "systolic"
) -> list[tuple[datetime, int]]:
    """Chronological (time, value) points for one field.

    Args:
        measurements: Measurements in any order
        field: systolic, diastolic, pulse or pulse_pressure

    Returns:
        Points sorted by timestamp ascending
    """
    if field not in CHART_BOUNDS:
        raise ValueError(f"Unknown chart field: {field}")

    ordered = sorted(measurements, key=lambda m: m.timestamp)
    return [(m.measured_at, getattr(m, field)) for m in ordered]


def axis_bounds(
    values: Sequence[float],
    floor: float,
    ceiling: float,
    padding: float = 10,
) -> tuple[float, float]:
    """Y axis range that hugs the data, clamped to ``[floor, ceiling]``."""
    if not values:
        return (floor, ceiling)
    lower = max(min(values) - padding, floor)
    upper = min(max(values) + padding, ceiling)
    return (lower, upper)


def field_axis_bounds(measurements: Iterable[Measurement], field: str) -> tuple[float, float]:
    """Axis range for a field using its default chart bounds."""
    floor, ceiling = CHART_BOUNDS[field]
    values = [value for _, value in chart_series(measurements, field)]
    return axis_bounds(values, floor, ceiling)

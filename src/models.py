"""Data models for Pressure Counter."""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


def current_millis() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


class Feeling(Enum):
    """Subjective state reported with a measurement."""

    GREAT = ("😊", "Great")
    GOOD = ("🙂", "Good")
    NORMAL = ("😐", "Normal")
    BAD = ("😞", "Bad")
    TERRIBLE = ("😫", "Terrible")

    def __init__(self, emoji: str, label: str):
        self.emoji = emoji
        self.label = label

    @classmethod
    def from_name(cls, value: str | None) -> Feeling:
        """Parse a stored enum token, falling back to NORMAL."""
        if not value:
            return cls.NORMAL
        try:
            return cls[value.strip().upper()]
        except KeyError:
            return cls.NORMAL


class PressureCategory(Enum):
    """Coarse blood pressure category used for display."""

    HYPOTENSION = ("#2196F3", "Hypotension")
    NORMAL = ("#4CAF50", "Normal")
    ELEVATED = ("#FFEB3B", "Elevated")
    HYPERTENSION_STAGE_1 = ("#FF9800", "Hypertension stage 1")
    HYPERTENSION_STAGE_2 = ("#F44336", "Hypertension stage 2")
    HYPERTENSIVE_CRISIS = ("#9C27B0", "Hypertensive crisis")

    def __init__(self, color: str, label: str):
        self.color = color
        self.label = label


def classify_pressure(systolic: int, diastolic: int) -> PressureCategory:
    """Classify a reading. Bands are checked in order, first match wins.

    Note that the bands overlap: 125/85 is stage 1 rather than elevated
    because the elevated band requires diastolic < 80, and 200/70 is a
    crisis only because it misses the 140-179 systolic range of stage 2.
    """
    if systolic < 90 or diastolic < 60:
        return PressureCategory.HYPOTENSION
    elif systolic < 120 and diastolic < 80:
        return PressureCategory.NORMAL
    elif 120 <= systolic <= 129 and diastolic < 80:
        return PressureCategory.ELEVATED
    elif 130 <= systolic <= 139 or 80 <= diastolic <= 89:
        return PressureCategory.HYPERTENSION_STAGE_1
    elif 140 <= systolic <= 179 or 90 <= diastolic <= 119:
        return PressureCategory.HYPERTENSION_STAGE_2
    else:
        return PressureCategory.HYPERTENSIVE_CRISIS


@dataclass(frozen=True)
class Measurement:
    """Blood pressure and pulse measurement.

    Values are not range-checked here; any integers are accepted.
    """

    systolic: int  # mmHg - systolic pressure
    diastolic: int  # mmHg - diastolic pressure
    pulse: int  # bpm - heart rate
    timestamp: int | None = None  # ms since epoch, None means "now"
    notes: str = ""
    feeling: Feeling = Feeling.NORMAL
    id: int = 0  # 0 = not persisted yet

    def __post_init__(self) -> None:
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", current_millis())
        if self.notes is None:
            object.__setattr__(self, "notes", "")

    @property
    def pulse_pressure(self) -> int:
        """Difference between systolic and diastolic pressure (not clamped)."""
        return self.systolic - self.diastolic

    @property
    def pressure_category(self) -> PressureCategory:
        return classify_pressure(self.systolic, self.diastolic)

    @property
    def measured_at(self) -> datetime:
        """Measurement time as a naive local datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000)

    def with_id(self, new_id: int) -> Measurement:
        return replace(self, id=new_id)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "pulse": self.pulse,
            "pulse_pressure": self.pulse_pressure,
            "category": self.pressure_category.name,
            "feeling": self.feeling.name,
            "notes": self.notes,
        }

    def __str__(self) -> str:
        """Human-readable representation."""
        return (
            f"BP: {self.systolic}/{self.diastolic} mmHg, "
            f"Pulse: {self.pulse} bpm, "
            f"Category: {self.pressure_category.label}"
        )


@dataclass(frozen=True)
class Statistics:
    """Aggregates over a time range. Every field is None when the range is empty."""

    avg_systolic: float | None = None
    avg_diastolic: float | None = None
    avg_pulse: float | None = None
    min_systolic: int | None = None
    max_systolic: int | None = None
    min_diastolic: int | None = None
    max_diastolic: int | None = None
    min_pulse: int | None = None
    max_pulse: int | None = None

    @classmethod
    def empty(cls) -> Statistics:
        return cls()

    @classmethod
    def from_measurements(cls, measurements: Iterable[Measurement]) -> Statistics:
        """Compute aggregates in-process over the given measurements."""
        items = list(measurements)
        if not items:
            return cls.empty()

        systolic = [m.systolic for m in items]
        diastolic = [m.diastolic for m in items]
        pulse = [m.pulse for m in items]
        count = len(items)

        return cls(
            avg_systolic=sum(systolic) / count,
            avg_diastolic=sum(diastolic) / count,
            avg_pulse=sum(pulse) / count,
            min_systolic=min(systolic),
            max_systolic=max(systolic),
            min_diastolic=min(diastolic),
            max_diastolic=max(diastolic),
            min_pulse=min(pulse),
            max_pulse=max(pulse),
        )

    @property
    def is_empty(self) -> bool:
        return self.avg_systolic is None

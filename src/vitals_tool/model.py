"""Modelos tipados para lecturas de signos vitales y resultados derivados."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

HEART_RATE = "Heart Rate"
BLOOD_PRESSURE = "Blood Pressure"
TEMPERATURE = "Temperature"
BMI = "BMI"
OXYGEN_SATURATION = "Oxygen Saturation"
RESPIRATORY_RATE = "Respiratory Rate"

VITAL_TYPES: tuple[str, ...] = (
    HEART_RATE,
    BLOOD_PRESSURE,
    TEMPERATURE,
    BMI,
    OXYGEN_SATURATION,
    RESPIRATORY_RATE,
)

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Reading:
    """One vital-sign measurement, classified at creation time."""

    id: str
    type: str
    value: str
    unit: str
    status: str
    timestamp: datetime
    notes: str | None = None


@dataclass(frozen=True)
class BloodPressure:
    """Systolic/diastolic pair (mmHg)."""

    systolic: float
    diastolic: float

    def __str__(self) -> str:
        return f"{_fmt(self.systolic)}/{_fmt(self.diastolic)}"


@dataclass(frozen=True)
class StatisticsResult:
    """Aggregates over a filtered reading series."""

    count: int = 0
    average: float | None = None
    min: float | None = None
    max: float | None = None
    trend: float | None = None


@dataclass(frozen=True)
class IdealWeightRange:
    """Weight interval for a healthy BMI at a given height."""

    min: float
    max: float
    unit: str = "kg"


def _fmt(number: float) -> str:
    # 120.0 -> "120"
    return str(int(number)) if float(number).is_integer() else str(number)

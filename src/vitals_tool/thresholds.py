"""Tabla de rangos de referencia (constante, inmutable, de todo el proceso)."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from vitals_tool.model import (
    BMI,
    HEART_RATE,
    OXYGEN_SATURATION,
    RESPIRATORY_RATE,
    TEMPERATURE,
)


@dataclass(frozen=True)
class Band:
    """Named numeric interval. ``None`` bounds are open."""

    label: str
    min: float | None = None
    max: float | None = None
    max_inclusive: bool = True

    def contains(self, value: float) -> bool:
        """Return True when ``value`` falls inside the band (NaN never does)."""
        if math.isnan(value):
            return False
        if self.min is not None and value < self.min:
            return False
        if self.max is not None:
            if self.max_inclusive:
                return value <= self.max
            return value < self.max
        return True


@dataclass(frozen=True)
class BloodPressureLimits:
    """Cut points (mmHg) for the blood pressure severity cascade."""

    crisis_systolic: float = 180
    crisis_diastolic: float = 120
    stage2_systolic: float = 140
    stage2_diastolic: float = 90
    stage1_systolic: tuple[float, float] = (130, 139)
    stage1_diastolic: tuple[float, float] = (80, 89)
    elevated_systolic: tuple[float, float] = (120, 129)
    normal_systolic_max: float = 119
    normal_diastolic_max: float = 79


@dataclass(frozen=True)
class ThresholdTable:
    """Ordered bands per vital type plus blood pressure limits.

    Bands are evaluated in the stored order and the first match wins.
    """

    bands: Mapping[str, tuple[Band, ...]]
    blood_pressure: BloodPressureLimits = field(default_factory=BloodPressureLimits)

    def __post_init__(self) -> None:
        frozen = MappingProxyType({k: tuple(v) for k, v in self.bands.items()})
        object.__setattr__(self, "bands", frozen)

    def bands_for(self, vital_type: str) -> tuple[Band, ...]:
        """Return the ordered bands for a vital type (empty if unknown)."""
        return self.bands.get(vital_type, ())


DEFAULT_THRESHOLDS = ThresholdTable(
    bands={
        HEART_RATE: (
            Band("Bradycardia", max=59),
            Band("Normal", min=60, max=100),
            Band("Tachycardia", min=101),
        ),
        # Fahrenheit
        TEMPERATURE: (
            Band("Hypothermia", max=97.0, max_inclusive=False),
            Band("Normal", min=97.0, max=99.5),
            Band("Low Grade Fever", min=99.6, max=102.0),
            Band("Moderate Fever", min=102.1, max=104.0),
            Band("High Fever", min=104.1),
        ),
        # De mayor a menor: el rango normal no tiene techo.
        OXYGEN_SATURATION: (
            Band("Normal Range", min=95),
            Band("Mild Hypoxemia", min=90, max=94),
            Band("Moderate Hypoxemia", min=85, max=89),
            Band("Severe Hypoxemia", max=84),
        ),
        RESPIRATORY_RATE: (
            Band("Bradypnea", max=11),
            Band("Normal", min=12, max=20),
            Band("Tachypnea", min=21),
        ),
        BMI: (
            Band("Underweight", max=18.4),
            Band("Healthy Weight", min=18.5, max=24.9),
            Band("Overweight", min=25.0, max=29.9),
            Band("Obese", min=30.0),
        ),
    }
)

"""Clasificación de signos vitales contra rangos de referencia y conversiones."""

from __future__ import annotations

from vitals_tool.model import (
    BLOOD_PRESSURE,
    BMI,
    HEART_RATE,
    OXYGEN_SATURATION,
    RESPIRATORY_RATE,
    TEMPERATURE,
    UNKNOWN,
    BloodPressure,
    IdealWeightRange,
)
from vitals_tool.thresholds import DEFAULT_THRESHOLDS, ThresholdTable

_HEIGHT_TO_M: dict[str, float] = {"cm": 0.01, "ft": 0.3048, "in": 0.0254}
_WEIGHT_TO_KG: dict[str, float] = {"kg": 1.0, "lbs": 0.453592}

HEALTHY_BMI_MIN = 18.5
HEALTHY_BMI_MAX = 24.9


class Classifier:
    """Maps raw measurements to status labels using an injected threshold table."""

    def __init__(self, thresholds: ThresholdTable = DEFAULT_THRESHOLDS) -> None:
        self._thresholds = thresholds

    @property
    def thresholds(self) -> ThresholdTable:
        return self._thresholds

    def _match(self, vital_type: str, value: object) -> str:
        number = _to_float(value)
        if number is None:
            return UNKNOWN
        for band in self._thresholds.bands_for(vital_type):
            if band.contains(number):
                return band.label
        return UNKNOWN

    def heart_rate(self, bpm: float) -> str:
        """Bradycardia / Normal / Tachycardia."""
        return self._match(HEART_RATE, bpm)

    def blood_pressure(self, systolic: float, diastolic: float) -> str:
        """Classify a systolic/diastolic pair.

        The checks run from most to least severe and the first one that
        holds wins, so the worse of the two numbers decides the label.
        Non-numeric input gives ``"Unknown"``.
        """
        sys_num = _to_float(systolic)
        dia_num = _to_float(diastolic)
        if sys_num is None or dia_num is None:
            return UNKNOWN
        systolic, diastolic = sys_num, dia_num
        lim = self._thresholds.blood_pressure
        if systolic >= lim.crisis_systolic or diastolic >= lim.crisis_diastolic:
            return "Hypertensive Crisis"
        if systolic >= lim.stage2_systolic or diastolic >= lim.stage2_diastolic:
            return "Stage 2 Hypertension"
        s_lo, s_hi = lim.stage1_systolic
        d_lo, d_hi = lim.stage1_diastolic
        if s_lo <= systolic <= s_hi or d_lo <= diastolic <= d_hi:
            return "Stage 1 Hypertension"
        e_lo, e_hi = lim.elevated_systolic
        if e_lo <= systolic <= e_hi and diastolic <= lim.normal_diastolic_max:
            return "Elevated"
        if (
            systolic <= lim.normal_systolic_max
            and diastolic <= lim.normal_diastolic_max
        ):
            return "Normal"
        return UNKNOWN

    def temperature(self, temp_f: float) -> str:
        """Classify a temperature already expressed in Fahrenheit."""
        return self._match(TEMPERATURE, temp_f)

    def oxygen_saturation(self, percent: float) -> str:
        return self._match(OXYGEN_SATURATION, percent)

    def respiratory_rate(self, breaths_per_min: float) -> str:
        return self._match(RESPIRATORY_RATE, breaths_per_min)

    def bmi(self, bmi: float) -> str:
        return self._match(BMI, bmi)

    def classify(self, vital_type: str, value: object, unit: str | None = None) -> str:
        """Classify a value in its stored form (e.g. ``"120/80"``, ``"98.6"``).

        Args:
            vital_type: One of the vital type tags.
            value: Number, numeric string or blood pressure pair.
            unit: Display unit; only temperatures use it (Celsius is converted).

        Returns:
            Status label, ``"Unknown"`` for unparseable values or unknown types.
        """
        if vital_type == BLOOD_PRESSURE:
            pair = parse_blood_pressure(value)
            if pair is None:
                return UNKNOWN
            return self.blood_pressure(pair.systolic, pair.diastolic)

        number = _to_float(value)
        if number is None:
            return UNKNOWN
        if vital_type == TEMPERATURE:
            if _normalize_temp_unit(unit) == "C":
                # Redondeo a 0.1 °F: 38.9 °C = 102.02 °F caería entre bandas.
                number = round(convert_temperature(number, "C", "F"), 1)
            return self.temperature(number)
        if vital_type == HEART_RATE:
            return self.heart_rate(number)
        if vital_type == OXYGEN_SATURATION:
            return self.oxygen_saturation(number)
        if vital_type == RESPIRATORY_RATE:
            return self.respiratory_rate(number)
        if vital_type == BMI:
            return self.bmi(number)
        return UNKNOWN


_DEFAULT = Classifier(DEFAULT_THRESHOLDS)


def classify_heart_rate(bpm: float) -> str:
    """Classify heart rate (bpm) with the default thresholds."""
    return _DEFAULT.heart_rate(bpm)


def classify_blood_pressure(systolic: float, diastolic: float) -> str:
    """Classify blood pressure (mmHg) with the default thresholds."""
    return _DEFAULT.blood_pressure(systolic, diastolic)


def classify_temperature(temp_f: float) -> str:
    """Classify a Fahrenheit temperature with the default thresholds."""
    return _DEFAULT.temperature(temp_f)


def classify_oxygen_saturation(percent: float) -> str:
    return _DEFAULT.oxygen_saturation(percent)


def classify_respiratory_rate(breaths_per_min: float) -> str:
    return _DEFAULT.respiratory_rate(breaths_per_min)


def classify_bmi(bmi: float) -> str:
    return _DEFAULT.bmi(bmi)


def classify(vital_type: str, value: object, unit: str | None = None) -> str:
    """Classify a stored value with the default thresholds."""
    return _DEFAULT.classify(vital_type, value, unit)


def height_to_meters(height: float, unit: str = "cm") -> float:
    """Convert cm/ft/in to meters; unknown units are read as cm."""
    return height * _HEIGHT_TO_M.get(unit, _HEIGHT_TO_M["cm"])


def weight_to_kg(weight: float, unit: str = "kg") -> float:
    """Convert kg/lbs to kilograms; unknown units are read as kg."""
    return weight * _WEIGHT_TO_KG.get(unit, 1.0)


def calculate_bmi(
    height: float,
    weight: float,
    height_unit: str = "cm",
    weight_unit: str = "kg",
) -> float:
    """Return unrounded BMI (kg/m²)."""
    meters = height_to_meters(height, height_unit)
    return weight_to_kg(weight, weight_unit) / (meters * meters)


def calculate_ideal_weight_range(
    height: float, height_unit: str = "cm"
) -> IdealWeightRange:
    """Weight interval (kg) giving a BMI between 18.5 and 24.9."""
    meters = height_to_meters(height, height_unit)
    squared = meters * meters
    return IdealWeightRange(
        min=round(HEALTHY_BMI_MIN * squared, 1),
        max=round(HEALTHY_BMI_MAX * squared, 1),
        unit="kg",
    )


def convert_temperature(value: float, from_unit: str, to_unit: str) -> float:
    """Convert between Celsius and Fahrenheit.

    Unrecognized unit pairs return ``value`` unchanged.
    """
    src = _normalize_temp_unit(from_unit)
    dst = _normalize_temp_unit(to_unit)
    if src == dst:
        return value
    if src == "C" and dst == "F":
        return value * 9 / 5 + 32
    if src == "F" and dst == "C":
        return (value - 32) * 5 / 9
    return value


def parse_blood_pressure(value: object) -> BloodPressure | None:
    """Parse ``"120/80"`` (or a BloodPressure / 2-tuple) into a pair."""
    if isinstance(value, BloodPressure):
        return value
    if isinstance(value, tuple | list) and len(value) == 2:
        parts = list(value)
    elif isinstance(value, str) and "/" in value:
        parts = value.split("/", 1)
    else:
        return None
    systolic = _to_float(parts[0])
    diastolic = _to_float(parts[1])
    if systolic is None or diastolic is None:
        return None
    return BloodPressure(systolic=systolic, diastolic=diastolic)


def _normalize_temp_unit(unit: str | None) -> str:
    if unit is None:
        return ""
    return unit.strip().lstrip("°").upper()


def _to_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None

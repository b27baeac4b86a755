"""Construcción de lecturas: validación de entrada, clasificación y unidades."""

from __future__ import annotations

import math
import uuid
from datetime import datetime

from dateutil import parser as date_parser
from dateutil import tz

from vitals_tool.classifier import (
    calculate_bmi,
    classify,
    parse_blood_pressure,
)
from vitals_tool.model import (
    BLOOD_PRESSURE,
    BMI,
    HEART_RATE,
    OXYGEN_SATURATION,
    RESPIRATORY_RATE,
    TEMPERATURE,
    VITAL_TYPES,
    BloodPressure,
    Reading,
)

UTC = tz.UTC

DISPLAY_UNITS: dict[str, str] = {
    HEART_RATE: "bpm",
    BLOOD_PRESSURE: "mmHg",
    TEMPERATURE: "°F",
    BMI: "kg/m²",
    OXYGEN_SATURATION: "%",
    RESPIRATORY_RATE: "breaths/min",
}


def parse_timestamp(value: datetime | str) -> datetime:
    """Parse an ISO-8601 string (or datetime) into an aware datetime.

    Naive values are taken as UTC.

    Raises:
        ValueError: If the string is not a valid timestamp.
    """
    dt = value if isinstance(value, datetime) else date_parser.isoparse(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def now_utc() -> datetime:
    return datetime.now(tz=UTC)


def new_reading(
    vital_type: str,
    value: object,
    unit: str | None = None,
    *,
    timestamp: datetime | str | None = None,
    notes: str | None = None,
) -> Reading:
    """Validate a raw measurement and build a classified Reading.

    Args:
        vital_type: One of ``VITAL_TYPES``.
        value: Number, numeric string, or for blood pressure ``"120/80"``,
            a 2-tuple or a ``BloodPressure``.
        unit: Input unit. Only temperature uses it (``C``/``F``, default F).
        timestamp: Measurement time; defaults to now (UTC).
        notes: Optional free text.

    Returns:
        New reading with id, display unit and status set.

    Raises:
        ValueError: Unknown type or non-positive/unparseable value.
    """
    if vital_type not in VITAL_TYPES:
        raise ValueError(f"Unknown vital type: {vital_type!r}")

    if vital_type == BLOOD_PRESSURE:
        pair = parse_blood_pressure(value)
        if pair is None:
            raise ValueError(f"Invalid blood pressure value: {value!r}")
        _require_positive(pair.systolic, "systolic")
        _require_positive(pair.diastolic, "diastolic")
        stored = str(pair)
        display_unit = DISPLAY_UNITS[BLOOD_PRESSURE]
    elif vital_type == TEMPERATURE:
        number = _require_positive(value, "temperature")
        temp_unit = _temperature_unit(unit)
        stored = f"{number:.1f}"
        display_unit = f"°{temp_unit}"
    elif vital_type == BMI:
        number = _require_positive(value, "BMI")
        stored = f"{number:.1f}"
        display_unit = DISPLAY_UNITS[BMI]
    else:
        number = _require_positive(value, vital_type)
        stored = _format_number(number)
        display_unit = DISPLAY_UNITS[vital_type]

    return Reading(
        id=uuid.uuid4().hex,
        type=vital_type,
        value=stored,
        unit=display_unit,
        status=classify(vital_type, stored, display_unit),
        timestamp=parse_timestamp(timestamp) if timestamp is not None else now_utc(),
        notes=notes or None,
    )


def heart_rate_reading(
    bpm: float, *, timestamp: datetime | str | None = None, notes: str | None = None
) -> Reading:
    return new_reading(HEART_RATE, bpm, timestamp=timestamp, notes=notes)


def blood_pressure_reading(
    systolic: float,
    diastolic: float,
    *,
    timestamp: datetime | str | None = None,
    notes: str | None = None,
) -> Reading:
    return new_reading(
        BLOOD_PRESSURE,
        BloodPressure(systolic=systolic, diastolic=diastolic),
        timestamp=timestamp,
        notes=notes,
    )


def temperature_reading(
    value: float,
    unit: str = "F",
    *,
    timestamp: datetime | str | None = None,
    notes: str | None = None,
) -> Reading:
    """Temperature keeps the entered unit; status is computed in Fahrenheit."""
    return new_reading(TEMPERATURE, value, unit, timestamp=timestamp, notes=notes)


def oxygen_reading(
    percent: float,
    *,
    timestamp: datetime | str | None = None,
    notes: str | None = None,
) -> Reading:
    return new_reading(OXYGEN_SATURATION, percent, timestamp=timestamp, notes=notes)


def respiratory_reading(
    breaths_per_min: float,
    *,
    timestamp: datetime | str | None = None,
    notes: str | None = None,
) -> Reading:
    return new_reading(
        RESPIRATORY_RATE, breaths_per_min, timestamp=timestamp, notes=notes
    )


def bmi_reading(
    height: float,
    weight: float,
    height_unit: str = "cm",
    weight_unit: str = "kg",
    *,
    timestamp: datetime | str | None = None,
) -> Reading:
    """Compute BMI and record height/weight in the notes."""
    _require_positive(height, "height")
    _require_positive(weight, "weight")
    bmi = calculate_bmi(height, weight, height_unit, weight_unit)
    notes = (
        f"Height: {_format_number(height)}{height_unit}, "
        f"Weight: {_format_number(weight)}{weight_unit}"
    )
    return new_reading(BMI, bmi, timestamp=timestamp, notes=notes)


def _require_positive(value: object, name: str) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {name} value: {value!r}") from exc
    if math.isnan(number) or number <= 0:
        raise ValueError(f"Invalid {name} value: {value!r}")
    return number


def _temperature_unit(unit: str | None) -> str:
    if unit is None:
        return "F"
    normalized = unit.strip().lstrip("°").upper()
    if normalized not in ("C", "F"):
        raise ValueError(f"Unsupported temperature unit: {unit!r}")
    return normalized


def _format_number(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)

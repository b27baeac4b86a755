from __future__ import annotations

import dataclasses
import math

import pytest

from vitals_tool.classifier import (
    Classifier,
    calculate_bmi,
    calculate_ideal_weight_range,
    classify,
    classify_blood_pressure,
    classify_bmi,
    classify_heart_rate,
    classify_oxygen_saturation,
    classify_respiratory_rate,
    classify_temperature,
    convert_temperature,
    parse_blood_pressure,
)
from vitals_tool.model import HEART_RATE, BloodPressure
from vitals_tool.thresholds import DEFAULT_THRESHOLDS, Band, ThresholdTable


@pytest.mark.parametrize(
    ("bpm", "expected"),
    [
        (40, "Bradycardia"),
        (59, "Bradycardia"),
        (60, "Normal"),
        (100, "Normal"),
        (101, "Tachycardia"),
        (180, "Tachycardia"),
    ],
)
def test_heart_rate_edges(bpm: float, expected: str) -> None:
    assert classify_heart_rate(bpm) == expected


def test_heart_rate_gap_and_nan_are_unknown() -> None:
    assert classify_heart_rate(59.5) == "Unknown"
    assert classify_heart_rate(math.nan) == "Unknown"


@pytest.mark.parametrize(
    ("systolic", "diastolic", "expected"),
    [
        (135, 95, "Stage 2 Hypertension"),
        (180, 70, "Hypertensive Crisis"),
        (110, 120, "Hypertensive Crisis"),
        (140, 70, "Stage 2 Hypertension"),
        (110, 90, "Stage 2 Hypertension"),
        (130, 70, "Stage 1 Hypertension"),
        (115, 85, "Stage 1 Hypertension"),
        (125, 80, "Stage 1 Hypertension"),
        (125, 79, "Elevated"),
        (120, 60, "Elevated"),
        (119, 79, "Normal"),
        (90, 60, "Normal"),
    ],
)
def test_blood_pressure_priority(
    systolic: float, diastolic: float, expected: str
) -> None:
    assert classify_blood_pressure(systolic, diastolic) == expected


def test_blood_pressure_gap_is_unknown() -> None:
    assert classify_blood_pressure(119.5, 70) == "Unknown"
    assert classify_blood_pressure(math.nan, math.nan) == "Unknown"


@pytest.mark.parametrize(
    ("temp_f", "expected"),
    [
        (96.9, "Hypothermia"),
        (97.0, "Normal"),
        (99.5, "Normal"),
        (99.6, "Low Grade Fever"),
        (102.0, "Low Grade Fever"),
        (102.1, "Moderate Fever"),
        (104.0, "Moderate Fever"),
        (104.1, "High Fever"),
    ],
)
def test_temperature_edges(temp_f: float, expected: str) -> None:
    assert classify_temperature(temp_f) == expected


def test_temperature_between_bands_is_unknown() -> None:
    assert classify_temperature(99.55) == "Unknown"


@pytest.mark.parametrize(
    ("percent", "expected"),
    [
        (100, "Normal Range"),
        (95, "Normal Range"),
        (94, "Mild Hypoxemia"),
        (90, "Mild Hypoxemia"),
        (89, "Moderate Hypoxemia"),
        (85, "Moderate Hypoxemia"),
        (84, "Severe Hypoxemia"),
        (70, "Severe Hypoxemia"),
    ],
)
def test_oxygen_saturation_edges(percent: float, expected: str) -> None:
    assert classify_oxygen_saturation(percent) == expected


@pytest.mark.parametrize(
    ("rate", "expected"),
    [(11, "Bradypnea"), (12, "Normal"), (20, "Normal"), (21, "Tachypnea")],
)
def test_respiratory_rate_edges(rate: float, expected: str) -> None:
    assert classify_respiratory_rate(rate) == expected


def test_calculate_bmi_metric() -> None:
    bmi = calculate_bmi(180, 80, "cm", "kg")
    assert bmi == pytest.approx(80 / 1.8**2)
    assert classify_bmi(bmi) == "Healthy Weight"


def test_calculate_bmi_imperial_units() -> None:
    bmi = calculate_bmi(6, 180, "ft", "lbs")
    expected = (180 * 0.453592) / (6 * 0.3048) ** 2
    assert bmi == pytest.approx(expected)
    assert calculate_bmi(70, 150, "in", "lbs") == pytest.approx(
        (150 * 0.453592) / (70 * 0.0254) ** 2
    )


def test_calculate_bmi_unknown_units_default_to_cm_kg() -> None:
    assert calculate_bmi(180, 80, "yards", "stone") == calculate_bmi(180, 80)


@pytest.mark.parametrize(
    ("bmi", "expected"),
    [
        (18.4, "Underweight"),
        (18.5, "Healthy Weight"),
        (24.9, "Healthy Weight"),
        (25.0, "Overweight"),
        (29.9, "Overweight"),
        (30.0, "Obese"),
    ],
)
def test_classify_bmi_edges(bmi: float, expected: str) -> None:
    assert classify_bmi(bmi) == expected


def test_ideal_weight_range_rounded_to_one_decimal() -> None:
    rng = calculate_ideal_weight_range(180, "cm")
    assert rng.min == 59.9
    assert rng.max == 80.7
    assert rng.unit == "kg"


def test_ideal_weight_range_feet() -> None:
    rng = calculate_ideal_weight_range(6, "ft")
    meters = 6 * 0.3048
    assert rng.min == round(18.5 * meters * meters, 1)
    assert rng.max == round(24.9 * meters * meters, 1)


def test_convert_temperature() -> None:
    assert convert_temperature(100, "F", "C") == pytest.approx(37.7777777)
    assert convert_temperature(37, "C", "F") == pytest.approx(98.6)
    assert convert_temperature(37, "°C", "°F") == pytest.approx(98.6)
    assert convert_temperature(98.6, "F", "F") == 98.6
    assert convert_temperature(300, "K", "C") == 300


@pytest.mark.parametrize("celsius", [-40.0, 0.0, 36.6, 41.3])
def test_convert_temperature_round_trip(celsius: float) -> None:
    back = convert_temperature(convert_temperature(celsius, "C", "F"), "F", "C")
    assert back == pytest.approx(celsius)


def test_classify_dispatches_stored_values() -> None:
    assert classify("Blood Pressure", "120/80") == "Stage 1 Hypertension"
    assert classify("Heart Rate", "72") == "Normal"
    assert classify("Temperature", "98.6", "°F") == "Normal"
    assert classify("Temperature", "37.0", "°C") == "Normal"
    assert classify("Oxygen Saturation", 97) == "Normal Range"
    assert classify("Respiratory Rate", "25") == "Tachypnea"
    assert classify("BMI", "24.7") == "Healthy Weight"


def test_classify_celsius_is_rounded_before_lookup() -> None:
    # 38.9 °C = 102.02 °F
    assert classify("Temperature", "38.9", "°C") == "Low Grade Fever"


def test_classify_invalid_input_is_unknown() -> None:
    assert classify("Heart Rate", "abc") == "Unknown"
    assert classify("Heart Rate", None) == "Unknown"
    assert classify("Blood Pressure", "120") == "Unknown"
    assert classify("Weight", 70) == "Unknown"


def test_classification_is_idempotent() -> None:
    assert classify_blood_pressure(135, 95) == classify_blood_pressure(135, 95)
    assert classify("Temperature", "100.4") == classify("Temperature", "100.4")


def test_parse_blood_pressure_variants() -> None:
    assert parse_blood_pressure("120/80") == BloodPressure(120, 80)
    assert parse_blood_pressure((130, 85)) == BloodPressure(130, 85)
    assert parse_blood_pressure("abc/80") is None
    assert parse_blood_pressure(120) is None


def test_classifier_uses_injected_thresholds() -> None:
    table = ThresholdTable(
        bands={
            HEART_RATE: (
                Band("Slow", max=49),
                Band("Normal", min=50, max=90),
                Band("Fast", min=91),
            )
        }
    )
    custom = Classifier(table)
    assert custom.heart_rate(55) == "Normal"
    assert custom.heart_rate(95) == "Fast"
    assert custom.temperature(98.6) == "Unknown"
    assert Classifier().heart_rate(55) == "Bradycardia"


@pytest.mark.parametrize("bad", ["abc", None, "", object(), True])
@pytest.mark.parametrize(
    "fn",
    [
        classify_heart_rate,
        classify_temperature,
        classify_oxygen_saturation,
        classify_respiratory_rate,
        classify_bmi,
    ],
)
def test_single_value_classifiers_return_unknown_for_non_numeric(
    fn: object, bad: object
) -> None:
    assert fn(bad) == "Unknown"  # type: ignore[operator]


def test_single_value_classifiers_accept_numeric_strings() -> None:
    assert classify_heart_rate("72") == "Normal"
    assert classify_bmi(" 31.0 ") == "Obese"


@pytest.mark.parametrize(
    ("systolic", "diastolic"),
    [("abc", 80), (120, "abc"), (None, 80), (120, None), (math.nan, 80)],
)
def test_blood_pressure_non_numeric_is_unknown(
    systolic: object, diastolic: object
) -> None:
    status = classify_blood_pressure(systolic, diastolic)  # type: ignore[arg-type]
    assert status == "Unknown"


def test_default_thresholds_are_read_only() -> None:
    with pytest.raises(TypeError):
        DEFAULT_THRESHOLDS.bands[HEART_RATE] = ()  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_THRESHOLDS.blood_pressure = None  # type: ignore[misc]

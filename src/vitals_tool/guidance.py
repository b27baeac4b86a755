"""Recomendaciones y severidad por estado (texto orientativo, no diagnóstico)."""

from __future__ import annotations

from dataclasses import dataclass

from vitals_tool.classifier import classify_bmi
from vitals_tool.model import (
    BLOOD_PRESSURE,
    HEART_RATE,
    OXYGEN_SATURATION,
    RESPIRATORY_RATE,
    TEMPERATURE,
)

DEFAULT_RECOMMENDATION = "Consult with a healthcare provider for proper evaluation."

_RECOMMENDATIONS: dict[str, dict[str, str]] = {
    HEART_RATE: {
        "Bradycardia": (
            "Consult with a healthcare provider. May be normal for athletes "
            "or could indicate underlying conditions."
        ),
        "Normal": "Maintain regular physical activity and healthy lifestyle.",
        "Tachycardia": (
            "Consider factors like stress, caffeine, or physical activity. "
            "Consult healthcare provider if persistent."
        ),
    },
    BLOOD_PRESSURE: {
        "Normal": "Maintain healthy diet, regular exercise, and stress management.",
        "Elevated": (
            "Lifestyle modifications recommended: reduce sodium, increase "
            "exercise, manage stress."
        ),
        "Stage 1 Hypertension": (
            "Consult healthcare provider. Lifestyle changes and possible "
            "medication may be needed."
        ),
        "Stage 2 Hypertension": (
            "Seek medical attention. Medication and lifestyle changes "
            "typically required."
        ),
        "Hypertensive Crisis": "Seek immediate medical attention.",
    },
    TEMPERATURE: {
        "Normal": "Temperature is within normal range.",
        "Low Grade Fever": (
            "Monitor symptoms, stay hydrated, rest. Consult healthcare "
            "provider if persistent."
        ),
        "Moderate Fever": (
            "Seek medical attention, especially if accompanied by other symptoms."
        ),
        "High Fever": "Seek immediate medical attention.",
        "Hypothermia": "Seek immediate medical attention.",
    },
    OXYGEN_SATURATION: {
        "Normal Range": "Oxygen levels are adequate.",
        "Mild Hypoxemia": "Monitor closely, consult healthcare provider.",
        "Moderate Hypoxemia": "Seek medical attention.",
        "Severe Hypoxemia": "Seek immediate medical attention.",
    },
    RESPIRATORY_RATE: {
        "Normal": "Respiratory rate is within normal range.",
        "Bradypnea": (
            "Monitor for other symptoms, consult healthcare provider if concerned."
        ),
        "Tachypnea": (
            "May indicate stress, fever, or respiratory issues. Consult "
            "healthcare provider if persistent."
        ),
    },
}

_BMI_CATEGORIES: dict[str, tuple[str, str]] = {
    "Underweight": (
        "#f59e0b",
        "Consider consulting with a healthcare provider about healthy weight "
        "gain strategies.",
    ),
    "Healthy Weight": (
        "#10b981",
        "Maintain your current healthy lifestyle with balanced diet and "
        "regular exercise.",
    ),
    "Overweight": (
        "#f59e0b",
        "Consider lifestyle changes including diet modification and increased "
        "physical activity.",
    ),
    "Obese": (
        "#ef4444",
        "Consult with a healthcare provider for a comprehensive weight "
        "management plan.",
    ),
}
_BMI_FALLBACK = ("#64748b", "Consult with a healthcare provider.")

NORMAL_STATUSES = frozenset({"Normal", "Healthy Weight", "Normal Range"})
WARNING_STATUSES = frozenset(
    {
        "Elevated",
        "Stage 1 Hypertension",
        "Overweight",
        "Underweight",
        "Low Grade Fever",
    }
)


@dataclass(frozen=True)
class BMICategory:
    """Display info for a BMI value."""

    status: str
    color: str
    recommendation: str


def recommendation(vital_type: str, status: str) -> str:
    """Return advice text for a (type, status) pair."""
    return _RECOMMENDATIONS.get(vital_type, {}).get(status, DEFAULT_RECOMMENDATION)


def bmi_category(bmi: float) -> BMICategory:
    """Classify ``bmi`` and attach color and advice."""
    status = classify_bmi(bmi)
    color, advice = _BMI_CATEGORIES.get(status, _BMI_FALLBACK)
    return BMICategory(status=status, color=color, recommendation=advice)


def status_severity(status: str | None) -> str:
    """Map a status label to ``normal``, ``warning`` or ``critical``.

    Anything not explicitly normal or warning (``Unknown`` included) is
    reported as critical.
    """
    if status in NORMAL_STATUSES:
        return "normal"
    if status in WARNING_STATUSES:
        return "warning"
    return "critical"

"""Análisis de series: filtros, última lectura, estadísticas y tendencia."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

import pandas as pd

from vitals_tool.classifier import parse_blood_pressure
from vitals_tool.guidance import status_severity
from vitals_tool.model import BLOOD_PRESSURE, VITAL_TYPES, Reading, StatisticsResult
from vitals_tool.readings import UTC, now_utc, parse_timestamp

FRAME_COLUMNS = ["id", "timestamp", "type", "value", "unit", "status", "notes"]


class NonNumericValueError(ValueError):
    """A reading value could not be parsed as a number."""

    def __init__(self, reading: Reading) -> None:
        super().__init__(
            f"Reading {reading.id} ({reading.type}) has non-numeric value "
            f"{reading.value!r}"
        )
        self.reading = reading


@dataclass(frozen=True)
class DashboardCard:
    """Latest value for one vital type."""

    type: str
    value: str
    unit: str
    status: str
    severity: str
    timestamp: datetime | None = None


def filter_by_type(readings: Iterable[Reading], vital_type: str) -> list[Reading]:
    """Keep readings of ``vital_type`` in input order."""
    return [r for r in readings if r.type == vital_type]


def filter_by_date_range(
    readings: Iterable[Reading],
    start: datetime | str,
    end: datetime | str,
) -> list[Reading]:
    """Keep readings with ``start <= timestamp <= end``."""
    lo = parse_timestamp(start)
    hi = parse_timestamp(end)
    return [r for r in readings if lo <= parse_timestamp(r.timestamp) <= hi]


def latest(readings: Iterable[Reading], vital_type: str) -> Reading | None:
    """Most recent reading of ``vital_type``.

    Among readings sharing the maximum timestamp, the first one wins.
    """
    candidates = filter_by_type(readings, vital_type)
    if not candidates:
        return None
    return max(candidates, key=lambda r: parse_timestamp(r.timestamp))


def recent(readings: Iterable[Reading], limit: int = 10) -> list[Reading]:
    """Newest-first slice of the history."""
    ordered = sorted(
        readings, key=lambda r: parse_timestamp(r.timestamp), reverse=True
    )
    return ordered[:limit]


def trend(values: Sequence[float]) -> float:
    """Least-squares slope of the values against their 0-based position.

    Readings are treated as equally spaced; the slope is the average change
    per successive reading, rounded to 2 decimals. Fewer than 2 values -> 0.
    """
    n = len(values)
    if n < 2:
        return 0
    sum_x = n * (n - 1) / 2
    sum_y = sum(values)
    sum_xy = sum(x * y for x, y in enumerate(values))
    sum_xx = sum(x * x for x in range(n))
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    return round(slope, 2)


def summarize(values: Sequence[float]) -> StatisticsResult:
    """Aggregate an already numeric series (empty -> all None)."""
    if not values:
        return StatisticsResult()
    series = pd.Series(values, dtype="float64")
    return StatisticsResult(
        count=len(values),
        average=round(float(series.mean()), 2),
        min=float(series.min()),
        max=float(series.max()),
        trend=trend(list(values)),
    )


def window(
    readings: Iterable[Reading],
    vital_type: str,
    window_days: int = 30,
    now: datetime | None = None,
) -> list[Reading]:
    """Readings of ``vital_type`` within ``[now - window_days, now]``."""
    end = parse_timestamp(now) if now is not None else now_utc()
    start = end - timedelta(days=window_days)
    return filter_by_type(filter_by_date_range(readings, start, end), vital_type)


def statistics(
    readings: Iterable[Reading],
    vital_type: str,
    window_days: int = 30,
    now: datetime | None = None,
) -> StatisticsResult:
    """Count/average/min/max/trend over the last ``window_days``.

    Raises:
        NonNumericValueError: If a reading in the window is not numeric
            (e.g. blood pressure; use ``blood_pressure_statistics``).
    """
    selected = window(readings, vital_type, window_days, now)
    return summarize([_numeric_value(r) for r in selected])


def blood_pressure_statistics(
    readings: Iterable[Reading],
    window_days: int = 30,
    now: datetime | None = None,
) -> dict[str, StatisticsResult]:
    """Separate statistics for the systolic and diastolic components."""
    systolic: list[float] = []
    diastolic: list[float] = []
    for reading in window(readings, BLOOD_PRESSURE, window_days, now):
        pair = parse_blood_pressure(reading.value)
        if pair is None:
            raise NonNumericValueError(reading)
        systolic.append(pair.systolic)
        diastolic.append(pair.diastolic)
    return {"systolic": summarize(systolic), "diastolic": summarize(diastolic)}


def search(
    readings: Iterable[Reading],
    query: str,
    fields: Sequence[str] = ("type", "notes"),
) -> list[Reading]:
    """Case-insensitive substring match over the given reading fields."""
    needle = query.lower()
    out: list[Reading] = []
    for reading in readings:
        for field in fields:
            field_value = getattr(reading, field, None)
            if field_value and needle in str(field_value).lower():
                out.append(reading)
                break
    return out


def readings_for_date(readings: Iterable[Reading], day: date) -> list[Reading]:
    """All readings within the calendar day ``day`` (UTC)."""
    start = datetime.combine(day, time.min, tzinfo=UTC)
    end = datetime.combine(day, time.max, tzinfo=UTC)
    return filter_by_date_range(readings, start, end)


def dashboard(readings: Sequence[Reading]) -> list[DashboardCard]:
    """One card per vital type with the latest value and its severity."""
    cards: list[DashboardCard] = []
    for vital_type in VITAL_TYPES:
        last = latest(readings, vital_type)
        if last is None:
            cards.append(
                DashboardCard(
                    type=vital_type,
                    value="--",
                    unit="",
                    status="No data",
                    severity="no-data",
                )
            )
            continue
        cards.append(
            DashboardCard(
                type=vital_type,
                value=last.value,
                unit=last.unit,
                status=last.status,
                severity=status_severity(last.status),
                timestamp=last.timestamp,
            )
        )
    return cards


def readings_to_frame(readings: Sequence[Reading]) -> pd.DataFrame:
    """Convert readings to a DataFrame sorted by timestamp."""
    rows = [
        {
            "id": r.id,
            "timestamp": parse_timestamp(r.timestamp).astimezone(UTC),
            "type": r.type,
            "value": r.value,
            "unit": r.unit,
            "status": r.status,
            "notes": r.notes,
        }
        for r in readings
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    if df.empty:
        return df
    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


def _numeric_value(reading: Reading) -> float:
    try:
        number = float(reading.value)
    except (TypeError, ValueError) as exc:
        raise NonNumericValueError(reading) from exc
    if math.isnan(number):
        raise NonNumericValueError(reading)
    return number

"""Exportación/importación: documento JSON versionado y CSV de historial."""

from __future__ import annotations

import csv
import json
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

import pandas as pd

from vitals_tool.analyzer import readings_to_frame
from vitals_tool.classifier import classify
from vitals_tool.model import Reading
from vitals_tool.readings import UTC, now_utc, parse_timestamp
from vitals_tool.storage import UserSettings, settings_from_mapping

EXPORT_VERSION = "1.0"

CSV_HEADERS = ["Date", "Time", "Type", "Value", "Unit", "Status", "Notes"]

_SETTINGS_KEYS: dict[str, str] = {
    "temperature_unit": "temperatureUnit",
    "weight_unit": "weightUnit",
    "height_unit": "heightUnit",
    "date_format": "dateFormat",
    "notifications": "notifications",
    "data_retention_days": "dataRetentionDays",
}

_DATE_FORMATS: dict[str, str] = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
}


class InvalidExportError(ValueError):
    """The export document does not have the expected shape."""


@dataclass(frozen=True)
class ExportDocument:
    """Parsed export snapshot."""

    readings: list[Reading]
    settings: UserSettings | None = None
    export_date: datetime | None = None
    version: str = EXPORT_VERSION
    extra: dict[str, Any] = field(default_factory=dict)


def reading_to_dict(reading: Reading) -> dict[str, Any]:
    """Reading as a JSON-friendly dict (ISO timestamp)."""
    return {
        "id": reading.id,
        "type": reading.type,
        "value": reading.value,
        "unit": reading.unit,
        "status": reading.status,
        "timestamp": parse_timestamp(reading.timestamp).isoformat(),
        "notes": reading.notes,
    }


def reading_from_dict(item: Mapping[str, Any]) -> Reading:
    """Parse one exported reading.

    Missing ``id`` gets a fresh one; missing ``status`` is classified.

    Raises:
        InvalidExportError: If type, value or timestamp is missing/invalid.
    """
    missing = [k for k in ("type", "value", "timestamp") if item.get(k) in (None, "")]
    if missing:
        raise InvalidExportError(f"Reading is missing fields: {missing}")
    try:
        timestamp = parse_timestamp(str(item["timestamp"]))
    except ValueError as exc:
        raise InvalidExportError(f"Invalid timestamp: {item['timestamp']!r}") from exc

    vital_type = str(item["type"])
    value = str(item["value"])
    unit = str(item.get("unit") or "")
    status = item.get("status") or classify(vital_type, value, unit)
    return Reading(
        id=str(item.get("id") or uuid.uuid4().hex),
        type=vital_type,
        value=value,
        unit=unit,
        status=str(status),
        timestamp=timestamp,
        notes=item.get("notes") or None,
    )


def settings_to_dict(settings: UserSettings) -> dict[str, Any]:
    return {_SETTINGS_KEYS[k]: v for k, v in asdict(settings).items()}


def settings_from_dict(data: Mapping[str, Any]) -> UserSettings:
    reverse = {v: k for k, v in _SETTINGS_KEYS.items()}
    return settings_from_mapping({reverse.get(k, k): v for k, v in data.items()})


def build_export(
    readings: Sequence[Reading],
    settings: UserSettings,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the versioned export document."""
    return {
        "readings": [reading_to_dict(r) for r in readings],
        "settings": settings_to_dict(settings),
        "exportDate": (now or now_utc()).astimezone(UTC).isoformat(),
        "version": EXPORT_VERSION,
    }


def dumps_export(
    readings: Sequence[Reading],
    settings: UserSettings,
    now: datetime | None = None,
) -> str:
    document = build_export(readings, settings, now)
    return json.dumps(document, indent=2, ensure_ascii=False)


def parse_export(data: Any) -> ExportDocument:
    """Validate a decoded export document.

    Raises:
        InvalidExportError: If ``readings`` is missing or not a list.
    """
    if not isinstance(data, dict):
        raise InvalidExportError("Export document must be a JSON object")
    raw_readings = data.get("readings")
    if not isinstance(raw_readings, list):
        raise InvalidExportError("Invalid data format: 'readings' must be a list")

    readings = []
    for item in raw_readings:
        if not isinstance(item, dict):
            raise InvalidExportError("Each reading must be a JSON object")
        readings.append(reading_from_dict(item))

    raw_settings = data.get("settings")
    settings = settings_from_dict(raw_settings) if raw_settings else None

    export_date = None
    if data.get("exportDate"):
        try:
            export_date = parse_timestamp(str(data["exportDate"]))
        except ValueError as exc:
            raise InvalidExportError("Invalid exportDate") from exc

    known = {"readings", "settings", "exportDate", "version"}
    return ExportDocument(
        readings=readings,
        settings=settings,
        export_date=export_date,
        version=str(data.get("version") or EXPORT_VERSION),
        extra={k: v for k, v in data.items() if k not in known},
    )


def loads_export(text: str) -> ExportDocument:
    """Parse export JSON text."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidExportError(f"Invalid JSON: {exc}") from exc
    return parse_export(data)


def readings_to_csv(
    readings: Sequence[Reading], date_format: str = "MM/DD/YYYY"
) -> str:
    """CSV with one quoted row per reading, oldest first."""
    df = readings_to_frame(readings)
    if df.empty:
        out = pd.DataFrame(columns=CSV_HEADERS)
    else:
        fmt = _DATE_FORMATS.get(date_format, _DATE_FORMATS["MM/DD/YYYY"])
        out = pd.DataFrame(
            {
                "Date": df["timestamp"].dt.strftime(fmt),
                "Time": df["timestamp"].dt.strftime("%H:%M:%S"),
                "Type": df["type"],
                "Value": df["value"],
                "Unit": df["unit"],
                "Status": df["status"],
                "Notes": df["notes"].fillna(""),
            }
        )
    return out.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")

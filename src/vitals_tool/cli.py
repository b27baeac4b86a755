"""CLI para registrar signos vitales, consultar estadísticas y exportar."""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import structlog

from vitals_tool.analyzer import (
    blood_pressure_statistics,
    dashboard,
    filter_by_type,
    latest,
    readings_to_frame,
    recent,
    search,
    statistics,
)
from vitals_tool.classifier import calculate_ideal_weight_range
from vitals_tool.excel_writer import ExcelLayout, write_history_xlsx
from vitals_tool.export import dumps_export, readings_to_csv
from vitals_tool.guidance import recommendation
from vitals_tool.logging_config import configure_logging
from vitals_tool.model import BLOOD_PRESSURE, VITAL_TYPES, Reading, StatisticsResult
from vitals_tool.readings import (
    UTC,
    blood_pressure_reading,
    bmi_reading,
    heart_rate_reading,
    oxygen_reading,
    respiratory_reading,
    temperature_reading,
)
from vitals_tool.sources.export_file import ExportFilePaths, ExportFileSource
from vitals_tool.storage import SQLiteStore

logger = structlog.get_logger(__name__)

DB_ENV_VAR = "VITALS_TOOL_DB"


def _default_db() -> str:
    return os.environ.get(DB_ENV_VAR, str(Path.cwd() / "vitals_tool.sqlite3"))


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per action."""
    parser = argparse.ArgumentParser(
        prog="vitals-tool",
        description="Registro y análisis de signos vitales.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help=f"Base SQLite (default: ${DB_ENV_VAR} o ./vitals_tool.sqlite3).",
    )
    parser.add_argument("--user", default="local", help="Id de usuario.")
    parser.add_argument("--log-level", default="WARNING", help="Nivel de logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--notes", default=None)
        p.add_argument("--timestamp", default=None, help="ISO-8601; default: ahora.")

    p = sub.add_parser("add-heart-rate", help="Frecuencia cardíaca (bpm).")
    p.add_argument("value", type=float)
    add_common(p)

    p = sub.add_parser("add-blood-pressure", help="Presión arterial (mmHg).")
    p.add_argument("systolic", type=float)
    p.add_argument("diastolic", type=float)
    add_common(p)

    p = sub.add_parser("add-temperature", help="Temperatura.")
    p.add_argument("value", type=float)
    p.add_argument("--unit", choices=["C", "F"], default=None)
    add_common(p)

    p = sub.add_parser("add-oxygen", help="Saturación de oxígeno (%%).")
    p.add_argument("value", type=float)
    add_common(p)

    p = sub.add_parser("add-respiratory", help="Frecuencia respiratoria.")
    p.add_argument("value", type=float)
    add_common(p)

    p = sub.add_parser("add-bmi", help="Calcula y guarda el IMC.")
    p.add_argument("height", type=float)
    p.add_argument("weight", type=float)
    p.add_argument("--height-unit", choices=["cm", "ft", "in"], default=None)
    p.add_argument("--weight-unit", choices=["kg", "lbs"], default=None)
    p.add_argument("--timestamp", default=None)

    p = sub.add_parser("list", help="Lecturas recientes.")
    p.add_argument("--type", choices=VITAL_TYPES, default=None)
    p.add_argument("--search", default=None)
    p.add_argument("--limit", type=int, default=10)

    p = sub.add_parser("latest", help="Última lectura de un tipo.")
    p.add_argument("type", choices=VITAL_TYPES)

    p = sub.add_parser("stats", help="Estadísticas de un tipo.")
    p.add_argument("type", choices=VITAL_TYPES)
    p.add_argument("--days", type=int, default=30)

    sub.add_parser("dashboard", help="Último valor por signo vital.")

    p = sub.add_parser("delete", help="Borra una lectura.")
    p.add_argument("id")

    p = sub.add_parser("ideal-weight", help="Rango de peso saludable.")
    p.add_argument("height", type=float)
    p.add_argument("--height-unit", choices=["cm", "ft", "in"], default="cm")

    for name in ("export-json", "export-csv", "export-xlsx"):
        p = sub.add_parser(name, help="Exporta el historial.")
        p.add_argument("--out-dir", default=str(Path.cwd() / "exports"))

    p = sub.add_parser("import-json", help="Importa un export JSON.")
    p.add_argument("path", help="Archivo JSON o carpeta con vitals_export_*.json.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    return build_parser().parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 1 when the requested item does not exist).
    """
    ns = parse_args(argv)
    configure_logging(ns.log_level)
    store = SQLiteStore(Path(ns.db or _default_db()).expanduser())
    user = ns.user
    command = ns.command
    logger.debug("command_started", command=command, user_id=user)

    if command.startswith("add-"):
        reading = _build_reading(ns, store, user)
        if not store.save_reading(user, reading):
            if not store.within_retention(user, reading.timestamp):
                days = store.load_settings(user).data_retention_days
                print(f"Reading not saved: older than the {days}-day retention")
            else:
                print(f"Reading not saved: duplicate id {reading.id}")
            return 1
        _print_reading(reading)
        print(f"  {recommendation(reading.type, reading.status)}")
        return 0

    if command == "list":
        readings = store.load_readings(user)
        if ns.type:
            readings = filter_by_type(readings, ns.type)
        if ns.search:
            readings = search(readings, ns.search)
        shown = recent(readings, ns.limit)
        if not shown:
            print("No readings recorded yet.")
        for reading in shown:
            _print_reading(reading)
        return 0

    if command == "latest":
        last = latest(store.load_readings(user), ns.type)
        if last is None:
            print(f"No data for {ns.type}")
            return 1
        _print_reading(last)
        return 0

    if command == "stats":
        readings = store.load_readings(user)
        if ns.type == BLOOD_PRESSURE:
            for part, result in blood_pressure_statistics(readings, ns.days).items():
                _print_stats(f"{ns.type} ({part})", result)
        else:
            _print_stats(ns.type, statistics(readings, ns.type, ns.days))
        return 0

    if command == "dashboard":
        for card in dashboard(store.load_readings(user)):
            print(f"{card.type:<18} {card.value:>8} {card.unit:<12} {card.status}")
        return 0

    if command == "delete":
        if not store.delete_reading(user, ns.id):
            print(f"Reading not found: {ns.id}")
            return 1
        print(f"OK: deleted {ns.id}")
        return 0

    if command == "ideal-weight":
        rng = calculate_ideal_weight_range(ns.height, ns.height_unit)
        print(f"{rng.min} - {rng.max} {rng.unit}")
        return 0

    if command in ("export-json", "export-csv", "export-xlsx"):
        out_path = _export(command, store, user, Path(ns.out_dir).expanduser())
        print(f"OK: Output: {out_path}")
        return 0

    if command == "import-json":
        path = Path(ns.path).expanduser()
        root = path if path.is_dir() else path.parent
        source = ExportFileSource(ExportFilePaths(root=root))
        source.validate()
        file_path = source.newest_json() if path.is_dir() else path
        document = source.load_document(file_path)
        store.replace_readings(user, document.readings, document.settings)
        print(f"OK: imported {len(document.readings)} readings from {file_path}")
        return 0

    raise ValueError(f"Unknown command: {command}")


def _build_reading(ns: argparse.Namespace, store: SQLiteStore, user: str) -> Reading:
    settings = store.load_settings(user)
    if ns.command == "add-heart-rate":
        return heart_rate_reading(ns.value, timestamp=ns.timestamp, notes=ns.notes)
    if ns.command == "add-blood-pressure":
        return blood_pressure_reading(
            ns.systolic, ns.diastolic, timestamp=ns.timestamp, notes=ns.notes
        )
    if ns.command == "add-temperature":
        return temperature_reading(
            ns.value,
            ns.unit or settings.temperature_unit,
            timestamp=ns.timestamp,
            notes=ns.notes,
        )
    if ns.command == "add-oxygen":
        return oxygen_reading(ns.value, timestamp=ns.timestamp, notes=ns.notes)
    if ns.command == "add-respiratory":
        return respiratory_reading(ns.value, timestamp=ns.timestamp, notes=ns.notes)
    if ns.command == "add-bmi":
        return bmi_reading(
            ns.height,
            ns.weight,
            ns.height_unit or settings.height_unit,
            ns.weight_unit or settings.weight_unit,
            timestamp=ns.timestamp,
        )
    raise ValueError(f"Unknown command: {ns.command}")


def _export(command: str, store: SQLiteStore, user: str, out_dir: Path) -> Path:
    readings = store.load_readings(user)
    settings = store.load_settings(user)
    ts = datetime.now(tz=UTC).strftime("%Y-%m-%d_%H-%M-%S")
    out_dir.mkdir(parents=True, exist_ok=True)
    if command == "export-json":
        out_path = out_dir / f"vitals_export_{ts}.json"
        out_path.write_text(dumps_export(readings, settings), encoding="utf-8")
    elif command == "export-csv":
        out_path = out_dir / f"vital-signs-data_{ts}.csv"
        out_path.write_text(
            readings_to_csv(readings, settings.date_format), encoding="utf-8"
        )
    else:
        out_path = out_dir / f"vital-signs-data_{ts}.xlsx"
        write_history_xlsx(readings_to_frame(readings), out_path, ExcelLayout())
    logger.info("data_exported", command=command, path=str(out_path))
    return out_path


def _print_reading(reading: Reading) -> None:
    when = reading.timestamp.strftime("%Y-%m-%d %H:%M")
    print(
        f"{when}  {reading.type:<18} {reading.value} {reading.unit}  "
        f"[{reading.status}]  id={reading.id}"
    )


def _print_stats(label: str, result: StatisticsResult) -> None:
    if result.count == 0:
        print(f"{label}: no readings in window")
        return
    print(
        f"{label}: count={result.count} avg={result.average} "
        f"min={result.min} max={result.max} trend={result.trend}"
    )

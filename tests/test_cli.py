"""Tests for CLI entrypoints."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from vitals_tool import __main__ as entry
from vitals_tool import cli
from vitals_tool.storage import SQLiteStore, UserSettings


def _run(db: Path, *args: str) -> int:
    return cli.main(["--db", str(db), "--user", "u1", *args])


def test_parse_args_custom_values() -> None:
    ns = cli.parse_args(
        ["--db", "/tmp/x.sqlite3", "stats", "Heart Rate", "--days", "7"]
    )
    assert ns.db == "/tmp/x.sqlite3"
    assert ns.user == "local"
    assert ns.command == "stats"
    assert ns.type == "Heart Rate"
    assert ns.days == 7


def test_parse_args_rejects_unknown_type() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["latest", "Glucose"])


def test_add_and_latest(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "db.sqlite3"
    assert _run(db, "add-heart-rate", "72", "--notes", "rest") == 0
    out = capsys.readouterr().out
    assert "[Normal]" in out
    assert "Maintain regular physical activity" in out

    assert _run(db, "latest", "Heart Rate") == 0
    assert "72 bpm" in capsys.readouterr().out


def test_add_backdated_reading_outside_retention_returns_1(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "db.sqlite3"
    args = ("add-heart-rate", "72", "--timestamp", "2020-01-01T00:00:00")
    assert _run(db, *args) == 1
    out = capsys.readouterr().out
    assert "older than the 365-day retention" in out
    assert "id=" not in out
    assert SQLiteStore(db).load_readings("u1") == []


def test_add_backdated_reading_inside_retention(tmp_path: Path) -> None:
    db = tmp_path / "db.sqlite3"
    SQLiteStore(db).save_settings("u1", UserSettings(data_retention_days=36500))
    assert _run(db, "add-heart-rate", "72", "--timestamp", "2020-01-01T00:00:00") == 0
    assert len(SQLiteStore(db).load_readings("u1")) == 1


def test_latest_without_data_returns_1(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path / "db.sqlite3", "latest", "BMI") == 1
    assert "No data for BMI" in capsys.readouterr().out


def test_add_temperature_uses_settings_unit(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "db.sqlite3"
    SQLiteStore(db).save_settings("u1", UserSettings(temperature_unit="C"))
    assert _run(db, "add-temperature", "38.5") == 0
    out = capsys.readouterr().out
    assert "°C" in out
    assert "[Low Grade Fever]" in out


def test_add_bmi_and_ideal_weight(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "db.sqlite3"
    args = ("add-bmi", "180", "80", "--height-unit", "cm", "--weight-unit", "kg")
    assert _run(db, *args) == 0
    assert "24.7 kg/m²  [Healthy Weight]" in capsys.readouterr().out

    assert _run(db, "ideal-weight", "180") == 0
    assert capsys.readouterr().out.strip() == "59.9 - 80.7 kg"


def test_stats_blood_pressure_and_numeric(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "db.sqlite3"
    _run(db, "add-blood-pressure", "120", "80")
    _run(db, "add-blood-pressure", "130", "90")
    _run(db, "add-oxygen", "97")
    capsys.readouterr()

    assert _run(db, "stats", "Blood Pressure") == 0
    out = capsys.readouterr().out
    assert "Blood Pressure (systolic): count=2 avg=125.0" in out
    assert "Blood Pressure (diastolic): count=2 avg=85.0" in out

    assert _run(db, "stats", "Oxygen Saturation") == 0
    assert "count=1 avg=97.0" in capsys.readouterr().out

    assert _run(db, "stats", "Heart Rate") == 0
    assert "no readings in window" in capsys.readouterr().out


def test_dashboard_and_list(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "db.sqlite3"
    _run(db, "add-respiratory", "25", "--notes", "after run")
    capsys.readouterr()

    assert _run(db, "dashboard") == 0
    out = capsys.readouterr().out
    assert "Tachypnea" in out
    assert "No data" in out

    assert _run(db, "list", "--search", "RUN") == 0
    assert "Respiratory Rate" in capsys.readouterr().out


def test_delete(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "db.sqlite3"
    _run(db, "add-heart-rate", "72")
    reading = SQLiteStore(db).load_readings("u1")[0]
    capsys.readouterr()

    assert _run(db, "delete", reading.id) == 0
    assert _run(db, "delete", reading.id) == 1
    assert "Reading not found" in capsys.readouterr().out


def test_export_and_import_json(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "db.sqlite3"
    out_dir = tmp_path / "exports"
    _run(db, "add-heart-rate", "72")
    _run(db, "add-blood-pressure", "118", "76")

    assert _run(db, "export-json", "--out-dir", str(out_dir)) == 0
    files = list(out_dir.glob("vitals_export_*.json"))
    assert len(files) == 1
    doc = json.loads(files[0].read_text(encoding="utf-8"))
    assert len(doc["readings"]) == 2

    assert cli.main(["--db", str(db), "--user", "u2", "import-json", str(out_dir)]) == 0
    assert "imported 2 readings" in capsys.readouterr().out
    assert len(SQLiteStore(db).load_readings("u2")) == 2


def test_export_csv_and_xlsx(tmp_path: Path) -> None:
    db = tmp_path / "db.sqlite3"
    out_dir = tmp_path / "exports"
    _run(db, "add-heart-rate", "72")

    assert _run(db, "export-csv", "--out-dir", str(out_dir)) == 0
    assert _run(db, "export-xlsx", "--out-dir", str(out_dir)) == 0
    csv_files = list(out_dir.glob("*.csv"))
    assert len(csv_files) == 1
    assert '"Heart Rate","72","bpm","Normal"' in csv_files[0].read_text(
        encoding="utf-8"
    )
    assert len(list(out_dir.glob("*.xlsx"))) == 1


def test_default_db_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    db = tmp_path / "env.sqlite3"
    monkeypatch.setenv(cli.DB_ENV_VAR, str(db))
    assert cli.main(["add-heart-rate", "72"]) == 0
    assert len(SQLiteStore(db).load_readings("local")) == 1


def test_entrypoint_reports_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def _boom() -> int:
        raise ValueError("Invalid heart rate value: -1")

    monkeypatch.setattr(entry, "cli_main", _boom)
    assert entry.main() == 1
    assert "Invalid heart rate value" in capsys.readouterr().err

"""Persistencia SQLite de lecturas y preferencias, particionada por usuario."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import structlog

from vitals_tool.classifier import classify
from vitals_tool.model import Reading
from vitals_tool.readings import UTC, now_utc, parse_timestamp

logger = structlog.get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS readings (
    id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    type TEXT NOT NULL,
    value TEXT NOT NULL,
    unit TEXT NOT NULL,
    status TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    notes TEXT,
    PRIMARY KEY (user_id, id)
);

CREATE INDEX IF NOT EXISTS idx_readings_user_timestamp
ON readings(user_id, timestamp);

CREATE TABLE IF NOT EXISTS user_settings (
    user_id TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    PRIMARY KEY (user_id, key)
);

CREATE TABLE IF NOT EXISTS backups (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    payload TEXT NOT NULL
);
"""

UPDATABLE_FIELDS = frozenset({"value", "timestamp", "notes"})


@dataclass(frozen=True)
class UserSettings:
    """Preferencias persistidas por usuario."""

    temperature_unit: str = "F"
    weight_unit: str = "lbs"
    height_unit: str = "ft"
    date_format: str = "MM/DD/YYYY"
    notifications: bool = True
    data_retention_days: int = 365


class SQLiteStore:
    """Repositorio SQLite; cada operación se limita a un ``user_id``."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def load_readings(self, user_id: str) -> list[Reading]:
        """Todas las lecturas del usuario, de la más antigua a la más nueva."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, type, value, unit, status, timestamp, notes
                FROM readings
                WHERE user_id = ?
                ORDER BY timestamp
                """,
                (user_id,),
            ).fetchall()
        return [_row_to_reading(row) for row in rows]

    def get_reading(self, user_id: str, reading_id: str) -> Reading | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, type, value, unit, status, timestamp, notes
                FROM readings
                WHERE user_id = ? AND id = ?
                """,
                (user_id, reading_id),
            ).fetchone()
        if row is None:
            return None
        return _row_to_reading(row)

    def save_reading(
        self, user_id: str, reading: Reading, *, now: datetime | None = None
    ) -> bool:
        """Guarda una lectura.

        Returns False if the id already exists or if the reading is older than
        the user's retention window. Older readings are purged afterwards.
        """
        if not self.within_retention(user_id, reading.timestamp, now=now):
            logger.warning(
                "reading_outside_retention",
                user_id=user_id,
                reading_id=reading.id,
                timestamp=_iso(reading.timestamp),
            )
            return False
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO readings(
                        id, user_id, type, value, unit, status, timestamp, notes
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (reading.id, user_id, *_reading_to_row(reading)[1:]),
                )
                conn.commit()
        except sqlite3.IntegrityError:
            logger.warning(
                "reading_duplicate", user_id=user_id, reading_id=reading.id
            )
            return False
        logger.info(
            "reading_saved",
            user_id=user_id,
            reading_id=reading.id,
            type=reading.type,
            status=reading.status,
        )
        self.cleanup_old_data(user_id, now=now)
        return True

    def update_reading(
        self, user_id: str, reading_id: str, fields: Mapping[str, Any]
    ) -> bool:
        """Actualiza value/timestamp/notes. Un value nuevo recalcula el status.

        Returns:
            False when the reading does not exist for this user.

        Raises:
            ValueError: If ``fields`` names anything other than value,
                timestamp or notes.
        """
        invalid = set(fields) - UPDATABLE_FIELDS
        if invalid:
            raise ValueError(f"Fields cannot be updated: {sorted(invalid)}")

        current = self.get_reading(user_id, reading_id)
        if current is None:
            logger.warning(
                "reading_not_found", user_id=user_id, reading_id=reading_id
            )
            return False

        updated = current
        if "value" in fields:
            value = str(fields["value"])
            updated = replace(
                updated,
                value=value,
                status=classify(current.type, value, current.unit),
            )
        if "timestamp" in fields:
            updated = replace(updated, timestamp=parse_timestamp(fields["timestamp"]))
        if "notes" in fields:
            updated = replace(updated, notes=fields["notes"] or None)

        _, _, value, _, status, timestamp, notes = _reading_to_row(updated)
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE readings
                SET value = ?, status = ?, timestamp = ?, notes = ?
                WHERE user_id = ? AND id = ?
                """,
                (value, status, timestamp, notes, user_id, reading_id),
            )
            conn.commit()
        logger.info("reading_updated", user_id=user_id, reading_id=reading_id)
        return True

    def delete_reading(self, user_id: str, reading_id: str) -> bool:
        """Borra una lectura. False si no existía."""
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM readings WHERE user_id = ? AND id = ?",
                (user_id, reading_id),
            )
            conn.commit()
        if cur.rowcount == 0:
            logger.warning(
                "reading_not_found", user_id=user_id, reading_id=reading_id
            )
            return False
        logger.info("reading_deleted", user_id=user_id, reading_id=reading_id)
        return True

    def load_settings(self, user_id: str) -> UserSettings:
        """Devuelve preferencias guardadas o defaults."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT key, value FROM user_settings WHERE user_id = ?",
                (user_id,),
            ).fetchall()
        stored = {row["key"]: json.loads(row["value"]) for row in rows}
        return settings_from_mapping(stored)

    def save_settings(self, user_id: str, settings: UserSettings) -> None:
        """Guarda las preferencias en la tabla key/value."""
        payload = [
            (user_id, key, json.dumps(value)) for key, value in asdict(settings).items()
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO user_settings(user_id, key, value) VALUES(?, ?, ?)
                ON CONFLICT(user_id, key) DO UPDATE SET value=excluded.value
                """,
                payload,
            )
            conn.commit()

    def retention_cutoff(
        self, user_id: str, *, now: datetime | None = None
    ) -> datetime:
        """Oldest timestamp kept under the user's ``data_retention_days``."""
        retention = self.load_settings(user_id).data_retention_days or 365
        reference = parse_timestamp(now) if now is not None else now_utc()
        return reference - timedelta(days=retention)

    def within_retention(
        self, user_id: str, timestamp: datetime, *, now: datetime | None = None
    ) -> bool:
        return parse_timestamp(timestamp) >= self.retention_cutoff(user_id, now=now)

    def cleanup_old_data(self, user_id: str, *, now: datetime | None = None) -> int:
        """Elimina lecturas fuera del período de retención. Devuelve cuántas."""
        cutoff = self.retention_cutoff(user_id, now=now)
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM readings WHERE user_id = ? AND timestamp < ?",
                (user_id, _iso(cutoff)),
            )
            conn.commit()
        removed = cur.rowcount
        if removed:
            logger.info("old_readings_removed", user_id=user_id, count=removed)
        return removed

    def storage_usage(self, user_id: str) -> dict[str, int]:
        """Bytes ocupados por lecturas y preferencias serializadas."""
        readings = json.dumps(
            [_reading_to_dict(r) for r in self.load_readings(user_id)]
        )
        settings = json.dumps(asdict(self.load_settings(user_id)))
        return {
            "readings": len(readings.encode("utf-8")),
            "settings": len(settings.encode("utf-8")),
            "total": len((readings + settings).encode("utf-8")),
            "readings_count": self.count_readings(user_id),
        }

    def count_readings(self, user_id: str) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM readings WHERE user_id = ?", (user_id,)
            ).fetchone()
        return int(row["n"])

    def clear_all_data(self, user_id: str) -> None:
        """Borra lecturas y preferencias del usuario."""
        with self._connect() as conn:
            conn.execute("DELETE FROM readings WHERE user_id = ?", (user_id,))
            conn.execute("DELETE FROM user_settings WHERE user_id = ?", (user_id,))
            conn.commit()
        logger.info("user_data_cleared", user_id=user_id)

    def replace_readings(
        self,
        user_id: str,
        readings: Sequence[Reading],
        settings: UserSettings | None = None,
    ) -> int:
        """Reemplaza las lecturas (importación) guardando antes un backup.

        Returns:
            Id of the backup row holding the previous data.
        """
        backup = json.dumps(
            {
                "readings": [_reading_to_dict(r) for r in self.load_readings(user_id)],
                "settings": asdict(self.load_settings(user_id)),
            },
            ensure_ascii=False,
        )
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO backups(user_id, created_at, payload) VALUES (?, ?, ?)",
                (user_id, _iso(now_utc()), backup),
            )
            backup_id = int(cur.lastrowid)
            conn.execute("DELETE FROM readings WHERE user_id = ?", (user_id,))
            conn.executemany(
                """
                INSERT OR REPLACE INTO readings(
                    id, user_id, type, value, unit, status, timestamp, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [(r.id, user_id, *_reading_to_row(r)[1:]) for r in readings],
            )
            conn.commit()
        if settings is not None:
            self.save_settings(user_id, settings)
        logger.info(
            "data_imported",
            user_id=user_id,
            readings=len(readings),
            backup_id=backup_id,
        )
        return backup_id

    def latest_backup(self, user_id: str) -> dict[str, Any] | None:
        """Payload of the most recent import backup."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT payload FROM backups
                WHERE user_id = ?
                ORDER BY id DESC LIMIT 1
                """,
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        parsed: dict[str, Any] = json.loads(row["payload"])
        return parsed


def settings_from_mapping(values: Mapping[str, Any]) -> UserSettings:
    """Build settings from a partial mapping; unknown keys are ignored."""
    defaults = asdict(UserSettings())
    merged = {**defaults, **{k: v for k, v in values.items() if k in defaults}}
    return UserSettings(
        temperature_unit=str(merged["temperature_unit"]),
        weight_unit=str(merged["weight_unit"]),
        height_unit=str(merged["height_unit"]),
        date_format=str(merged["date_format"]),
        notifications=bool(merged["notifications"]),
        data_retention_days=int(merged["data_retention_days"]),
    )


def _iso(dt: datetime) -> str:
    return parse_timestamp(dt).astimezone(UTC).isoformat()


def _reading_to_row(reading: Reading) -> tuple[object, ...]:
    return (
        reading.id,
        reading.type,
        reading.value,
        reading.unit,
        reading.status,
        _iso(reading.timestamp),
        reading.notes,
    )


def _reading_to_dict(reading: Reading) -> dict[str, object]:
    keys = ("id", "type", "value", "unit", "status", "timestamp", "notes")
    return dict(zip(keys, _reading_to_row(reading), strict=True))


def _row_to_reading(row: sqlite3.Row) -> Reading:
    return Reading(
        id=row["id"],
        type=row["type"],
        value=row["value"],
        unit=row["unit"],
        status=row["status"],
        timestamp=parse_timestamp(row["timestamp"]),
        notes=row["notes"],
    )

"""Lectura de exportaciones JSON previas (documento versionado)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vitals_tool.export import ExportDocument, InvalidExportError, parse_export
from vitals_tool.model import Reading
from vitals_tool.readings import parse_timestamp
from vitals_tool.sources.base import DataSource, SourcePaths

EXPORT_GLOB = "vitals_export_*.json"


@dataclass(frozen=True)
class ExportFilePaths(SourcePaths):
    """Paths for exported JSON documents."""

    # root: folder containing vitals_export_*.json


class ExportFileSource(DataSource):
    """Reader for ``vitals_export_*.json`` snapshots."""

    def newest_json(self) -> Path:
        """Return newest vitals_export_*.json by mtime."""
        return self.newest_file(EXPORT_GLOB)

    def load_document(self, path: Path) -> ExportDocument:
        """Parse an export file.

        Raises:
            InvalidExportError: If the JSON shape is invalid.
        """
        text = path.read_text(encoding="utf-8")
        return parse_export(_extract_json_object(text))

    def load_readings(self, path: Path) -> list[Reading]:
        """Readings of an export file, oldest first."""
        readings = list(self.load_document(path).readings)
        readings.sort(key=lambda r: parse_timestamp(r.timestamp))
        return readings


def _extract_json_object(text: str) -> Any:
    """Decode JSON, tolerating leading non-JSON text (e.g. log lines)."""
    start = text.find("{")
    try:
        if start >= 0:
            return json.loads(text[start:])
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidExportError(f"Invalid JSON: {exc}") from exc

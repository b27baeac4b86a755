"""Generación de Excel formateado con el historial de signos vitales."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from vitals_tool.guidance import status_severity

_DIA_SEMANA: dict[int, str] = dict(
    enumerate(("lun", "mar", "mie", "jue", "vie", "sab", "dom"))
)

_HEADER_MAP: dict[str, str] = {
    "weekday": "Día",
    "timestamp": "Fecha / Hora",
    "type": "Signo vital",
    "value": "Valor",
    "unit": "Unidad",
    "status": "Estado",
    "notes": "Notas",
}

_SEVERITY_FILL: dict[str, str] = {
    "normal": "D1FAE5",
    "warning": "FEF3C7",
    "critical": "FEE2E2",
}

_THIN = Side(style="thin")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)
_LEFT = Alignment(horizontal="left", vertical="center", wrap_text=True)

_COLUMN_WIDTHS: dict[str, int] = {
    "Día": 6,
    "Fecha / Hora": 18,
    "Signo vital": 18,
    "Valor": 10,
    "Unidad": 12,
    "Estado": 22,
    "Notas": 40,
}

_DATETIME_FORMAT = "dd/mm/yyyy hh:mm"


def _header_columns(ws: Any) -> dict[str, int]:
    """Cabecera -> número de columna (1-based)."""
    return {str(cell.value): cell.column for cell in ws[1]}


def _format_sheet(ws: Any) -> None:
    """Apply borders, alignment, widths and the date format to a worksheet.

    Args:
        ws: openpyxl worksheet with the header in row 1.
    """
    columns = _header_columns(ws)
    notes_col = columns.get("Notas")
    date_col = columns.get("Fecha / Hora")

    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = _CENTER
        cell.border = _BORDER
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.border = _BORDER
            cell.alignment = _LEFT if cell.column == notes_col else _CENTER
            if cell.column == date_col:
                cell.number_format = _DATETIME_FORMAT

    for header, width in _COLUMN_WIDTHS.items():
        if header in columns:
            ws.column_dimensions[get_column_letter(columns[header])].width = width


def _highlight_status(ws: Any) -> None:
    """Colorea la celda de estado según severidad."""
    col = _header_columns(ws).get("Estado")
    if col is None:
        return
    for (cell,) in ws.iter_rows(min_row=2, min_col=col, max_col=col):
        color = _SEVERITY_FILL[status_severity(cell.value)]
        cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the history sheet."""

    sheet_name: str = "Signos vitales"
    highlight_status: bool = True


def _to_excel_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Columna Día al frente, timestamp sin zona horaria y sin id."""
    export_df = df.drop(columns=["id"], errors="ignore")
    if "timestamp" not in export_df.columns:
        return export_df.rename(columns=_HEADER_MAP)
    # Excel no admite datetimes con zona horaria.
    stamps = pd.to_datetime(export_df["timestamp"], errors="coerce", utc=True)
    export_df = export_df.assign(timestamp=stamps.dt.tz_localize(None))
    if not export_df.empty:
        export_df.insert(0, "weekday", stamps.dt.weekday.map(_DIA_SEMANA).fillna(""))
    return export_df.rename(columns=_HEADER_MAP)


def write_history_xlsx(df: pd.DataFrame, out_path: Path, layout: ExcelLayout) -> None:
    """Write one row per reading to a formatted XLSX file.

    Args:
        df: Readings frame (see ``analyzer.readings_to_frame``).
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    export_df = _to_excel_frame(df)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws)
        if layout.highlight_status:
            _highlight_status(ws)

"""Generación de Excel formateado con las mediciones (misma tabla que el CSV)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from glucotrack.csv_export import sort_for_export
from glucotrack.labels import ENGLISH, Labels
from glucotrack.model import MeasurementRecord

logger = logging.getLogger(__name__)

_COLUMN_WIDTHS: tuple[int, ...] = (18, 14, 16, 10, 10, 40)
_NUMBER_FORMATS: tuple[str | None, ...] = (
    "dd/mm/yyyy hh:mm",
    "0",
    None,
    "0.0",
    "0.0",
    None,
)


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the measurements sheet."""

    sheet_name: str = "Measurements"
    labels: Labels = field(default=ENGLISH)


def records_to_export_frame(
    records: Iterable[MeasurementRecord], labels: Labels = ENGLISH
) -> pd.DataFrame:
    """One row per record with the export columns, ordered by timestamp."""
    rows = [
        (
            r.timestamp,
            int(r.glucose),
            r.category.value if r.category is not None else "",
            float(r.basal or 0.0),
            float(r.bolus or 0.0),
            r.notes or "",
        )
        for r in sort_for_export(records)
    ]
    return pd.DataFrame(rows, columns=list(labels.csv_header))


def write_records_xlsx(
    records: Iterable[MeasurementRecord], out_path: Path, layout: ExcelLayout
) -> bool:
    """Write a formatted Excel file with every record.

    Args:
        records: Snapshot of records.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.

    Returns:
        False (and writes nothing) when there are no records.
    """
    export_df = records_to_export_frame(records, layout.labels)
    if export_df.empty:
        logger.info("XLSX export skipped: no records")
        return False

    out_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws)
    logger.info("XLSX export written to %s (%d rows)", out_path, len(export_df))
    return True


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Aplica alineación y borde a las filas de datos."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _apply_column_formats(ws: Any) -> None:
    """Anchos y formatos numéricos por posición de columna."""
    for idx, (width, fmt) in enumerate(zip(_COLUMN_WIDTHS, _NUMBER_FORMATS), start=1):
        if idx > ws.max_column:
            break
        letter = ws.cell(row=1, column=idx).column_letter
        ws.column_dimensions[letter].width = width
        if fmt is None:
            continue
        for row in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
            row[0].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    _apply_column_formats(ws)

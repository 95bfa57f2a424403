"""Exportación CSV de todas las mediciones."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from glucotrack.labels import ENGLISH, Labels
from glucotrack.model import MeasurementRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M"


@dataclass(frozen=True)
class CsvLayout:
    """Header labels and formatting for the CSV export."""

    labels: Labels = field(default=ENGLISH)
    timestamp_format: str = TIMESTAMP_FORMAT

    @property
    def header(self) -> str:
        return ",".join(self.labels.csv_header)


def _quote(text: str | None) -> str:
    """Entre comillas, duplicando las comillas internas."""
    return '"' + (text or "").replace('"', '""') + '"'


def sort_for_export(records: Iterable[MeasurementRecord]) -> list[MeasurementRecord]:
    """Ascending by timestamp; records without timestamp first, input order kept."""
    return sorted(
        records,
        key=lambda r: (r.timestamp is not None, r.timestamp or 0),
    )


def format_row(record: MeasurementRecord, layout: CsvLayout) -> str:
    """Format one record as a CSV line (no line terminator)."""
    stamp = (
        record.timestamp.strftime(layout.timestamp_format)
        if record.timestamp is not None
        else ""
    )
    category = record.category.value if record.category is not None else None
    return ",".join(
        [
            _quote(stamp),
            str(int(record.glucose)),
            _quote(category),
            repr(float(record.basal or 0.0)),
            repr(float(record.bolus or 0.0)),
            _quote(record.notes),
        ]
    )


def export_csv(
    records: Iterable[MeasurementRecord], layout: CsvLayout | None = None
) -> bytes:
    """Serialize records to UTF-8 CSV bytes.

    Args:
        records: Full snapshot of records (any order).
        layout: Header labels and timestamp format.

    Returns:
        CSV bytes, or ``b""`` when there is nothing to export.
    """
    layout = layout or CsvLayout()
    ordered = sort_for_export(records)
    if not ordered:
        return b""
    rows = "\n".join(format_row(r, layout) for r in ordered)
    return (layout.header + "\n" + rows).encode("utf-8")


def write_csv(
    records: Iterable[MeasurementRecord],
    out_path: Path,
    layout: CsvLayout | None = None,
) -> bool:
    """Write the CSV export to disk.

    Returns:
        False (and writes nothing) when there are no records.
    """
    data = export_csv(records, layout)
    if not data:
        logger.info("CSV export skipped: no records")
        return False
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    logger.info("CSV export written to %s (%d bytes)", out_path, len(data))
    return True

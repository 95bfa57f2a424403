"""Reporte PDF de una página: encabezado, resumen, gráfico y tabla semanal."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from reportlab.lib import colors
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from glucotrack.labels import ENGLISH, Labels
from glucotrack.model import MeasurementRecord, RangeClass, TargetRange
from glucotrack.statistics import (
    average,
    maximum,
    minimum,
    range_classification,
    time_ordered,
)
from glucotrack.weekly import WeeklySlot, weekly_slots

logger = logging.getLogger(__name__)

PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 36
CHART_MAX_POINTS = 90
CHART_HEIGHT = 180
STAT_BOX_HEIGHT = 54
STAT_BOX_GAP = 16
TABLE_COLUMN_WIDTHS: tuple[int, ...] = (90, 70, 70, 70, 70)
TABLE_HEADER_HEIGHT = 16
TABLE_ROW_HEIGHT = 14

PALETTE: dict[str, colors.Color] = {
    "accent": colors.HexColor("#3E7BFA"),
    "calm_blue": colors.HexColor("#4A90D9"),
    "danger": colors.HexColor("#E5484D"),
    "success": colors.HexColor("#30A46C"),
    "warning": colors.HexColor("#F5A524"),
    "panel": colors.Color(0.96, 0.96, 0.96),
    "primary": colors.black,
    "secondary": colors.HexColor("#6B7280"),
}

RANGE_COLORS: dict[RangeClass, str] = {
    RangeClass.LOW: "danger",
    RangeClass.IN_RANGE: "success",
    RangeClass.HIGH: "warning",
}

PDF_PRIMARY_FONT = "GlucoTrackSans"
PDF_BOLD_FONT = "GlucoTrackSans-Bold"
_FALLBACK_FONTS = ("Helvetica", "Helvetica-Bold")
_FONT_CANDIDATES: tuple[tuple[Path, Path], ...] = (
    (
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    ),
    (
        Path("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf"),
        Path("/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf"),
    ),
    (Path("C:/Windows/Fonts/arial.ttf"), Path("C:/Windows/Fonts/arialbd.ttf")),
    (
        Path("/Library/Fonts/Arial Unicode.ttf"),
        Path("/Library/Fonts/Arial Unicode.ttf"),
    ),
)
_fonts: tuple[str, str] | None = None


def _ensure_pdf_fonts() -> tuple[str, str]:
    """Registra una fuente TTF Unicode (para ı, ğ, ş) o usa Helvetica."""
    global _fonts
    if _fonts is not None:
        return _fonts
    _fonts = _FALLBACK_FONTS
    for regular_path, bold_path in _FONT_CANDIDATES:
        if not regular_path.exists():
            continue
        if not bold_path.exists():
            bold_path = regular_path
        pdfmetrics.registerFont(TTFont(PDF_PRIMARY_FONT, str(regular_path)))
        pdfmetrics.registerFont(TTFont(PDF_BOLD_FONT, str(bold_path)))
        _fonts = (PDF_PRIMARY_FONT, PDF_BOLD_FONT)
        break
    else:
        logger.debug("No Unicode TTF font found, using Helvetica")
    return _fonts


def chart_points(
    values: Sequence[float],
    left: float,
    top: float,
    width: float,
    height: float,
) -> list[tuple[float, float]]:
    """Place values in a chart rectangle (top-down coordinates).

    X is spread by index across the width; Y is scaled between the observed
    min (bottom edge) and max (top edge), with a unit range when they match.

    Returns:
        One ``(x, y)`` pair per value.
    """
    if not values:
        return []
    low, high = min(values), max(values)
    span = high - low if high != low else 1.0
    last = max(len(values) - 1, 1)
    bottom = top + height
    return [
        (left + width * idx / last, bottom - height * (value - low) / span)
        for idx, value in enumerate(values)
    ]


def chart_values(records: Sequence[MeasurementRecord]) -> list[float]:
    """Glucose of the most recent ``CHART_MAX_POINTS`` readings, oldest first."""
    readings = [r for r in time_ordered(records) if r.glucose_valid]
    return [r.glucose for r in readings[-CHART_MAX_POINTS:]]


def stat_box_color(value: float | None, target: TargetRange) -> str:
    """Palette key for a stat box; neutral grey when there is no value."""
    if value is None:
        return "secondary"
    return RANGE_COLORS[range_classification(value, target)]


def annotated_indices(count: int) -> list[int]:
    """Indices labelled on the chart: every ~1/10th point plus the last one."""
    stride = max(count // 10, 1)
    return [i for i in range(count) if i % stride == 0 or i == count - 1]


def visible_table_rows(top: float, bottom: float, total: int) -> int:
    """Rows of the weekly table drawn between ``top`` and ``bottom``.

    The table never continues on another page: once the next row would
    cross the bottom edge the remaining rows are dropped.
    """
    y = top + TABLE_HEADER_HEIGHT
    drawn = 0
    for _ in range(total):
        drawn += 1
        y += TABLE_ROW_HEIGHT
        if y > bottom - TABLE_ROW_HEIGHT:
            break
    return drawn


class _Page:
    """Canvas wrapper with top-down coordinates like the on-screen layout."""

    def __init__(self, c: canvas.Canvas, fonts: tuple[str, str]) -> None:
        self.c = c
        self.regular, self.bold = fonts

    def text(
        self,
        text: str,
        x: float,
        top: float,
        size: float,
        *,
        bold: bool = False,
        color: str = "primary",
        align_right: bool = False,
    ) -> None:
        self.c.setFont(self.bold if bold else self.regular, size)
        self.c.setFillColor(PALETTE[color])
        baseline = PAGE_HEIGHT - top - size
        if align_right:
            self.c.drawRightString(x, baseline, text)
        else:
            self.c.drawString(x, baseline, text)

    def fill_rect(
        self, x: float, top: float, width: float, height: float, color: str
    ) -> None:
        self.c.setFillColor(PALETTE[color])
        self.c.rect(x, PAGE_HEIGHT - top - height, width, height, stroke=0, fill=1)

    def polyline(self, points: Sequence[tuple[float, float]], color: str) -> None:
        path = self.c.beginPath()
        first_x, first_y = points[0]
        path.moveTo(first_x, PAGE_HEIGHT - first_y)
        for x, y in points[1:]:
            path.lineTo(x, PAGE_HEIGHT - y)
        self.c.setStrokeColor(PALETTE[color])
        self.c.setLineWidth(1.5)
        self.c.drawPath(path, stroke=1, fill=0)


def _format_mg_dl(value: float | None) -> str:
    return "-" if value is None else f"{int(value)} mg/dL"


def _draw_header(
    page: _Page,
    left: float,
    right: float,
    top: float,
    range_label: str,
    labels: Labels,
    now: datetime,
) -> None:
    page.text(labels.app_name, left, top, 22, bold=True)
    page.text(labels.report_subtitle, left, top + 24, 13, color="secondary")
    page.text(range_label, left, top + 40, 13, color="secondary")
    page.text(
        now.strftime("%d.%m.%Y"),
        right,
        top + 4,
        13,
        color="secondary",
        align_right=True,
    )


def _draw_stat_box(
    page: _Page,
    title: str,
    value: float | None,
    target: TargetRange,
    x: float,
    top: float,
    width: float,
) -> None:
    color = stat_box_color(value, target)
    page.fill_rect(x, top, width, STAT_BOX_HEIGHT, "panel")
    page.text(title, x + 8, top + 6, 10, bold=True, color="secondary")
    page.text(_format_mg_dl(value), x + 8, top + 24, 14, bold=True, color=color)


def _draw_chart(
    page: _Page,
    values: Sequence[float],
    left: float,
    top: float,
    width: float,
    labels: Labels,
) -> None:
    page.fill_rect(left, top, width, CHART_HEIGHT, "panel")
    if len(values) < 2:
        middle = top + CHART_HEIGHT / 2 - 6
        page.text(labels.chart_empty, left + 8, middle, 10, color="secondary")
        return
    points = chart_points(values, left, top, width, CHART_HEIGHT)
    page.polyline(points, "accent")
    for idx in annotated_indices(len(values)):
        x, y = points[idx]
        label_top = max(top + 2, y - 10)
        page.text(str(int(values[idx])), x + 2, label_top, 9, color="secondary")


def _draw_weekly_table(
    page: _Page,
    slots: Sequence[WeeklySlot],
    left: float,
    top: float,
    bottom: float,
    labels: Labels,
) -> int:
    x = left
    for title, width in zip(labels.table_header, TABLE_COLUMN_WIDTHS):
        page.text(title, x, top, 12, bold=True, color="secondary")
        x += width
    rows = visible_table_rows(top, bottom, len(slots))
    y = top + TABLE_HEADER_HEIGHT
    for slot in slots[:rows]:
        x = left
        for value, width in zip(slot.cells(), TABLE_COLUMN_WIDTHS):
            page.text(value, x, y, 10)
            x += width
        y += TABLE_ROW_HEIGHT
    return rows


def build_report(
    records: Sequence[MeasurementRecord],
    range_label: str,
    *,
    target: TargetRange | None = None,
    now: datetime | None = None,
    labels: Labels = ENGLISH,
) -> bytes:
    """Render the PDF report for an already windowed record set.

    Args:
        records: Records inside the report window.
        range_label: Human readable window name (e.g. "1 Month").
        target: Target range used to color the stat boxes.
        now: Generation instant; also the last day of the weekly table.
        labels: Localized strings.

    Returns:
        PDF bytes, or ``b""`` when there are no records.
    """
    if not records:
        return b""
    target = target or TargetRange()
    now = now or datetime.now()

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT))
    c.setTitle(f"{labels.app_name} - {labels.report_subtitle}")
    page = _Page(c, _ensure_pdf_fonts())

    left, right = MARGIN, PAGE_WIDTH - MARGIN
    bottom = PAGE_HEIGHT - MARGIN
    width = right - left
    y: float = MARGIN

    _draw_header(page, left, right, y, range_label, labels, now)
    y += 70

    stat_width = (width - STAT_BOX_GAP * 2) / 3
    lowest = minimum(records)
    stats = (
        (labels.average, average(records) if lowest is not None else None),
        (labels.minimum, lowest),
        (labels.maximum, maximum(records)),
    )
    for idx, (title, value) in enumerate(stats):
        x = left + (stat_width + STAT_BOX_GAP) * idx
        _draw_stat_box(page, title, value, target, x, y, stat_width)
    y += STAT_BOX_HEIGHT + 24

    page.text(labels.chart_title, left, y, 12, bold=True)
    y += 18
    values = chart_values(records)
    _draw_chart(page, values, left, y, width, labels)
    y += CHART_HEIGHT + 20

    page.text(labels.table_title, left, y, 12, bold=True)
    y += 18
    rows = _draw_weekly_table(
        page, weekly_slots(records, now.date()), left, y, bottom, labels
    )

    c.showPage()
    c.save()
    data = buffer.getvalue()
    logger.debug(
        "Report built: %d records, %d chart points, %d table rows, %d bytes",
        len(records),
        len(values),
        rows,
        len(data),
    )
    return data


def write_report(data: bytes, out_path: Path) -> bool:
    """Write report bytes to disk; False (nothing written) for an empty report."""
    if not data:
        logger.info("PDF report skipped: no records in range")
        return False
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    logger.info("PDF report written to %s (%d bytes)", out_path, len(data))
    return True

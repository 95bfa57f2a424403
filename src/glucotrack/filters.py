"""Filtros por ventana de tiempo y búsqueda de texto sobre registros."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from dateutil.relativedelta import relativedelta

from glucotrack.labels import ENGLISH, Labels
from glucotrack.model import MeasurementRecord, ValidationError


@dataclass(frozen=True)
class RelativeWindow:
    """Window ending at "now" and starting a calendar offset earlier."""

    days: int = 0
    months: int = 0
    years: int = 0

    def start(self, now: datetime) -> datetime:
        return now - relativedelta(years=self.years, months=self.months, days=self.days)


@dataclass(frozen=True)
class AbsoluteWindow:
    """Explicit inclusive ``[start, end]`` window."""

    start: datetime
    end: datetime


Window = RelativeWindow | AbsoluteWindow


class StatsPeriod(enum.IntEnum):
    """Day counts offered by the statistics view."""

    DAYS_7 = 7
    DAYS_14 = 14
    DAYS_30 = 30
    DAYS_90 = 90

    @property
    def window(self) -> RelativeWindow:
        return RelativeWindow(days=int(self))

    def label(self, labels: Labels = ENGLISH) -> str:
        return f"{int(self)} {labels.days_suffix}"


class ReportRange(enum.Enum):
    """Ranges offered by the PDF report export."""

    ONE_WEEK = "1w"
    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"

    @classmethod
    def parse(cls, code: str) -> ReportRange:
        """Return the range for a short code such as ``1m``.

        Raises:
            ValidationError: If the code is unknown.
        """
        try:
            return cls(code.strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown report range: {code!r}") from exc

    @property
    def window(self) -> RelativeWindow:
        return _REPORT_WINDOWS[self]

    def label(self, labels: Labels = ENGLISH) -> str:
        return labels.range_titles[list(ReportRange).index(self)]


_REPORT_WINDOWS: dict[ReportRange, RelativeWindow] = {
    ReportRange.ONE_WEEK: RelativeWindow(days=7),
    ReportRange.ONE_MONTH: RelativeWindow(months=1),
    ReportRange.THREE_MONTHS: RelativeWindow(months=3),
    ReportRange.SIX_MONTHS: RelativeWindow(months=6),
    ReportRange.ONE_YEAR: RelativeWindow(years=1),
}


def window_bounds(window: Window, now: datetime) -> tuple[datetime, datetime]:
    """Return the inclusive ``(start, end)`` bounds of a window.

    Args:
        window: Relative or absolute window specification.
        now: Reference instant; the end bound of relative windows.

    Returns:
        Tuple of start and end instants.
    """
    if isinstance(window, AbsoluteWindow):
        return window.start, window.end
    return window.start(now), now


def window_start(window: Window, now: datetime) -> datetime:
    """Return the first instant included by the window."""
    return window_bounds(window, now)[0]


def filter_window(
    records: Iterable[MeasurementRecord],
    now: datetime,
    window: Window,
) -> list[MeasurementRecord]:
    """Select records whose timestamp falls inside the window.

    Records without timestamp are always dropped. Input order is kept.

    Args:
        records: Snapshot of measurement records.
        now: Reference instant.
        window: Relative or absolute window specification.

    Returns:
        New list with the matching records.
    """
    start, end = window_bounds(window, now)
    return [
        r for r in records if r.timestamp is not None and start <= r.timestamp <= end
    ]


def search_records(
    records: Iterable[MeasurementRecord], text: str
) -> list[MeasurementRecord]:
    """Filter records by glucose value, category or notes (case-insensitive)."""
    needle = text.strip().casefold()
    if not needle:
        return list(records)
    return [r for r in records if _matches(r, needle)]


def _matches(record: MeasurementRecord, needle: str) -> bool:
    """True si el texto aparece en glucosa, categoría o notas."""
    if needle in str(record.glucose):
        return True
    if record.category is not None and needle in record.category.value.casefold():
        return True
    return record.notes is not None and needle in record.notes.casefold()

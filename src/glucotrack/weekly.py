"""Tabla semanal: 7 días x 4 categorías, gana la medición más reciente."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from glucotrack.model import Category, MeasurementRecord
from glucotrack.statistics import records_to_frame

EMPTY_CELL = "-"

SLOT_CATEGORIES: tuple[Category, ...] = (
    Category.FASTING,
    Category.PRE_MEAL,
    Category.POST_MEAL,
    Category.BEDTIME,
)


@dataclass(frozen=True)
class WeeklySlot:
    """One calendar day of the weekly table."""

    day: date
    morning: float | None = None
    noon: float | None = None
    evening: float | None = None
    bedtime: float | None = None

    def values(self) -> tuple[float | None, ...]:
        return (self.morning, self.noon, self.evening, self.bedtime)

    def cells(self) -> list[str]:
        """Rendered row: ``dd.MM`` date followed by the four slot values."""
        return [self.day.strftime("%d.%m")] + [_format_cell(v) for v in self.values()]


def _format_cell(value: float | None) -> str:
    """Entero truncado o guion si la celda está vacía."""
    if value is None:
        return EMPTY_CELL
    return str(int(value))


def week_days(today: date) -> list[date]:
    """The seven days ``[today - 6, today]``, oldest first."""
    start = today - timedelta(days=6)
    return [start + timedelta(days=i) for i in range(7)]


def weekly_slots(records: Iterable[MeasurementRecord], today: date) -> list[WeeklySlot]:
    """Bucket records into day x category cells for the last seven days.

    For each ``(day, category)`` pair the record with the latest timestamp
    wins; identical timestamps are resolved by the greatest record id.
    Records without timestamp or category, or with ``Category.OTHER``, are
    ignored.

    Args:
        records: Snapshot of records in any order.
        today: Last calendar day of the table.

    Returns:
        Exactly seven slots, oldest day first.
    """
    days = week_days(today)
    eligible = [
        r
        for r in records
        if r.timestamp is not None
        and r.category in SLOT_CATEGORIES
        and days[0] <= r.timestamp.date() <= days[-1]
    ]

    winners: dict[tuple[date, Category], float] = {}
    frame = records_to_frame(eligible)
    if not frame.empty:
        latest = frame.sort_values(["timestamp", "id"]).drop_duplicates(
            subset=["date", "category"], keep="last"
        )
        for row in latest.itertuples(index=False):
            winners[(row.date, row.category)] = float(row.glucose)

    return [
        WeeklySlot(
            day=day,
            morning=winners.get((day, Category.FASTING)),
            noon=winners.get((day, Category.PRE_MEAL)),
            evening=winners.get((day, Category.POST_MEAL)),
            bedtime=winners.get((day, Category.BEDTIME)),
        )
        for day in days
    ]

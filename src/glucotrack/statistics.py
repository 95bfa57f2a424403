"""Estadísticas de glucosa e insulina sobre un snapshot de registros.

Todas las funciones son puras y totales: con datos vacíos devuelven un valor
centinela (0.0, None o un DataFrame vacío) y nunca lanzan excepciones.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime

import pandas as pd

from glucotrack.model import MeasurementRecord, RangeClass, TargetRange, Trend

CONTROL_INDEX_OFFSET = 46.7
CONTROL_INDEX_SLOPE = 28.7

_FRAME_COLUMNS = [
    "id",
    "timestamp",
    "date",
    "glucose",
    "category",
    "basal",
    "bolus",
    "notes",
]

_INSULIN_COLUMNS = ["date", "basal", "bolus", "total"]


def records_to_frame(records: Iterable[MeasurementRecord]) -> pd.DataFrame:
    """Convert records to a DataFrame (one row per record, input order).

    Missing doses become 0.0 and categories are kept as enum members.
    """
    rows = [
        {
            "id": r.id,
            "timestamp": r.timestamp,
            "date": r.day,
            "glucose": float(r.glucose),
            "category": r.category,
            "basal": float(r.basal or 0.0),
            "bolus": float(r.bolus or 0.0),
            "notes": r.notes,
        }
        for r in records
    ]
    if not rows:
        return pd.DataFrame(columns=_FRAME_COLUMNS)
    return pd.DataFrame(rows, columns=_FRAME_COLUMNS)


def _glucose_values(records: Iterable[MeasurementRecord]) -> list[float]:
    """Valores de glucosa de los registros con lectura (> 0)."""
    return [float(r.glucose) for r in records if r.glucose_valid]


def average(records: Iterable[MeasurementRecord]) -> float:
    """Mean glucose of records with a reading; 0.0 when there are none."""
    values = _glucose_values(records)
    if not values:
        return 0.0
    return sum(values) / len(values)


def minimum(records: Iterable[MeasurementRecord]) -> float | None:
    """Lowest glucose reading or None."""
    values = _glucose_values(records)
    return min(values) if values else None


def maximum(records: Iterable[MeasurementRecord]) -> float | None:
    """Highest glucose reading or None."""
    values = _glucose_values(records)
    return max(values) if values else None


def range_classification(value: float, target: TargetRange) -> RangeClass:
    """Classify a glucose value against the target range.

    Args:
        value: Glucose value in mg/dL.
        target: Inclusive target range.

    Returns:
        LOW below ``target.low``, HIGH above ``target.high``, else IN_RANGE.
    """
    if value < target.low:
        return RangeClass.LOW
    if value <= target.high:
        return RangeClass.IN_RANGE
    return RangeClass.HIGH


def range_counts(
    records: Iterable[MeasurementRecord], target: TargetRange
) -> dict[RangeClass, int]:
    """Count glucose readings per range class (all classes present)."""
    counts = dict.fromkeys(RangeClass, 0)
    for value in _glucose_values(records):
        counts[range_classification(value, target)] += 1
    return counts


def time_in_range_percent(
    records: Iterable[MeasurementRecord], target: TargetRange
) -> float:
    """Percentage of glucose readings inside the target range.

    Args:
        records: Snapshot of records.
        target: Inclusive target range.

    Returns:
        Value in [0, 100]; 0.0 when there are no readings.
    """
    values = _glucose_values(records)
    if not values:
        return 0.0
    in_range = sum(1 for v in values if target.low <= v <= target.high)
    return 100.0 * in_range / len(values)


def estimated_control_index(records: Iterable[MeasurementRecord]) -> float:
    """Estimated long-term control index (eA1c-style) from mean glucose."""
    values = _glucose_values(records)
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return (mean + CONTROL_INDEX_OFFSET) / CONTROL_INDEX_SLOPE


def classify_delta(delta: float) -> Trend:
    """Map a glucose change to a trend bucket (first matching rule wins)."""
    if abs(delta) < 5:
        return Trend.STABLE
    if delta > 20:
        return Trend.RISING_FAST
    if delta > 5:
        return Trend.RISING
    if delta < -20:
        return Trend.FALLING_FAST
    if delta < -5:
        return Trend.FALLING
    return Trend.STABLE


def time_ordered(records: Iterable[MeasurementRecord]) -> list[MeasurementRecord]:
    """Timestamped records sorted ascending; ties ordered by id."""
    stamped = [r for r in records if r.timestamp is not None]
    return sorted(stamped, key=lambda r: (r.timestamp, r.id))


def trend(records: Iterable[MeasurementRecord]) -> Trend | None:
    """Direction of the change between the last two glucose readings.

    Args:
        records: Snapshot of records in any order.

    Returns:
        Trend bucket, or None with fewer than two timestamped readings.
    """
    ordered = [r for r in time_ordered(records) if r.glucose_valid]
    if len(ordered) < 2:
        return None
    previous, last = ordered[-2], ordered[-1]
    return classify_delta(last.glucose - previous.glucose)


def daily_insulin_total(records: Iterable[MeasurementRecord], day: date) -> float:
    """Sum of basal + bolus units logged on the given calendar day."""
    return sum((r.total_insulin for r in records if r.day == day), 0.0)


def daily_insulin_totals(records: Iterable[MeasurementRecord]) -> pd.DataFrame:
    """Aggregate insulin by day (basal/bolus/total), newest day first.

    Returns:
        DataFrame with columns date, basal, bolus, total.
    """
    dosed = [r for r in records if r.insulin_valid and r.timestamp is not None]
    frame = records_to_frame(dosed)
    if frame.empty:
        return pd.DataFrame(columns=_INSULIN_COLUMNS)
    g = frame.groupby("date", as_index=False).agg(
        basal=("basal", "sum"),
        bolus=("bolus", "sum"),
    )
    g["total"] = g["basal"] + g["bolus"]
    return g.sort_values("date", ascending=False).reset_index(drop=True)[
        _INSULIN_COLUMNS
    ]


@dataclass(frozen=True)
class Highlights:
    """Extreme records shown on the reports cards."""

    highest_glucose: MeasurementRecord | None
    lowest_glucose: MeasurementRecord | None
    highest_bolus: MeasurementRecord | None
    highest_basal: MeasurementRecord | None


def highlights(records: Sequence[MeasurementRecord]) -> Highlights:
    """Pick the highest/lowest glucose and the highest bolus/basal records."""
    readings = [r for r in records if r.glucose_valid]
    bolus = [r for r in records if (r.bolus or 0.0) > 0]
    basal = [r for r in records if (r.basal or 0.0) > 0]
    return Highlights(
        highest_glucose=max(readings, key=lambda r: r.glucose, default=None),
        lowest_glucose=min(readings, key=lambda r: r.glucose, default=None),
        highest_bolus=max(bolus, key=lambda r: r.bolus or 0.0, default=None),
        highest_basal=max(basal, key=lambda r: r.basal or 0.0, default=None),
    )


def lowest_in_month(
    records: Iterable[MeasurementRecord], now: datetime
) -> MeasurementRecord | None:
    """Lowest glucose reading within the calendar month of ``now``."""
    in_month = [
        r
        for r in records
        if r.glucose_valid
        and r.timestamp is not None
        and (r.timestamp.year, r.timestamp.month) == (now.year, now.month)
    ]
    return min(in_month, key=lambda r: r.glucose, default=None)


@dataclass(frozen=True)
class DerivedStatistics:
    """Snapshot of every dashboard statistic (recomputed on demand)."""

    count: int
    average: float
    minimum: float | None
    maximum: float | None
    time_in_range: float
    control_index: float
    trend: Trend | None
    today_insulin: float
    today_average: float
    range_counts: dict[RangeClass, int]


def summarize(
    records: Sequence[MeasurementRecord], target: TargetRange, now: datetime
) -> DerivedStatistics:
    """Compute every statistic for a record snapshot.

    Args:
        records: Snapshot of records (already windowed if needed).
        target: Inclusive target range.
        now: Reference instant used for the "today" figures.

    Returns:
        DerivedStatistics for the snapshot.
    """
    today = now.date()
    todays = [r for r in records if r.day == today]
    return DerivedStatistics(
        count=len(_glucose_values(records)),
        average=average(records),
        minimum=minimum(records),
        maximum=maximum(records),
        time_in_range=time_in_range_percent(records, target),
        control_index=estimated_control_index(records),
        trend=trend(records),
        today_insulin=daily_insulin_total(records, today),
        today_average=average(todays),
        range_counts=range_counts(records, target),
    )

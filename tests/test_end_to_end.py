"""Flujo completo: store -> ventana -> estadísticas/tabla -> CSV y PDF."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from glucotrack.csv_export import export_csv
from glucotrack.filters import ReportRange, filter_window
from glucotrack.model import Category, MeasurementRecord, TargetRange
from glucotrack.report import build_report
from glucotrack.statistics import average, time_in_range_percent
from glucotrack.storage import SQLiteStore
from glucotrack.weekly import weekly_slots

DAY0 = datetime(2025, 12, 19, 7, 0)
NOW = DAY0 + timedelta(days=2, hours=10)


def test_snapshot_from_store_drives_every_view(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "e2e.sqlite3")
    for record in [
        MeasurementRecord(id="1", timestamp=DAY0, glucose=70),
        MeasurementRecord(
            id="2", timestamp=DAY0, glucose=90, category=Category.FASTING
        ),
        MeasurementRecord(
            id="3",
            timestamp=DAY0 + timedelta(days=1),
            glucose=95,
            category=Category.FASTING,
        ),
        MeasurementRecord(
            id="4",
            timestamp=DAY0 + timedelta(days=1, hours=1),
            glucose=110,
            category=Category.FASTING,
        ),
    ]:
        store.save_record(record)

    target = store.load_config().target_range()
    assert target == TargetRange(70, 180)

    snapshot = store.fetch_records()
    week = filter_window(snapshot, NOW, ReportRange.ONE_WEEK.window)
    assert len(week) == 4

    first_three = [r for r in week if r.id in {"1", "2", "3"}]
    assert average(first_three) == pytest.approx(85.0)
    assert time_in_range_percent(first_three, target) == 100.0

    slots = weekly_slots(week, NOW.date())
    assert slots[-3].morning == 90.0
    assert slots[-2].morning == 110.0

    assert export_csv(snapshot) == export_csv(store.fetch_records())
    assert build_report(week, ReportRange.ONE_WEEK.label(), now=NOW).startswith(b"%PDF")
    assert build_report([], ReportRange.ONE_WEEK.label(), now=NOW) == b""

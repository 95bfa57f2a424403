from __future__ import annotations

import re
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from glucotrack.labels import TURKISH
from glucotrack.model import Category, MeasurementRecord, TargetRange
from glucotrack.report import (
    CHART_HEIGHT,
    CHART_MAX_POINTS,
    MARGIN,
    PAGE_HEIGHT,
    annotated_indices,
    build_report,
    chart_points,
    chart_values,
    stat_box_color,
    visible_table_rows,
    write_report,
)

NOW = datetime(2025, 12, 21, 18, 0)


def _series(count: int) -> list[MeasurementRecord]:
    categories = list(Category)[:4]
    return [
        MeasurementRecord(
            id=f"r{i:03d}",
            timestamp=NOW - timedelta(hours=6 * (count - i)),
            glucose=80 + (i * 7) % 150,
            category=categories[i % 4],
            bolus=2.0 if i % 3 == 0 else None,
        )
        for i in range(count)
    ]


def test_build_report_empty_returns_empty_bytes() -> None:
    assert build_report([], "1 Week", now=NOW) == b""


def test_build_report_produces_single_page_pdf() -> None:
    data = build_report(_series(40), "1 Month", target=TargetRange(70, 180), now=NOW)
    assert data.startswith(b"%PDF")
    assert data.rstrip().endswith(b"%%EOF")
    assert re.search(rb"/Count 1\b", data)


def test_build_report_with_many_points_and_turkish_labels() -> None:
    data = build_report(_series(200), "3 Ay", now=NOW, labels=TURKISH)
    assert data.startswith(b"%PDF")


def test_build_report_insulin_only_records() -> None:
    records = [
        MeasurementRecord(id="a", timestamp=NOW - timedelta(hours=1), basal=10.0),
    ]
    data = build_report(records, "1 Week", now=NOW)
    assert data.startswith(b"%PDF")


def test_chart_points_scale_between_min_and_max() -> None:
    points = chart_points([100, 150, 200], left=36, top=100, width=200, height=180)
    assert points[0] == pytest.approx((36, 280))
    assert points[1] == pytest.approx((136, 190))
    assert points[2] == pytest.approx((236, 100))


def test_chart_points_flat_series_uses_unit_range() -> None:
    points = chart_points([120, 120], left=0, top=0, width=100, height=CHART_HEIGHT)
    assert points == [(0.0, CHART_HEIGHT), (100.0, CHART_HEIGHT)]
    assert chart_points([], 0, 0, 10, 10) == []
    assert chart_points([90], 10, 0, 100, 50) == [(10.0, 50.0)]


def test_annotated_indices_every_tenth_and_last() -> None:
    assert annotated_indices(0) == []
    assert annotated_indices(5) == [0, 1, 2, 3, 4]
    idx = annotated_indices(90)
    assert idx[:3] == [0, 9, 18]
    assert idx[-1] == 89
    assert annotated_indices(25) == [0, 2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 22, 24]


def test_visible_table_rows_truncates_without_second_page() -> None:
    bottom = PAGE_HEIGHT - MARGIN
    assert visible_table_rows(top=384, bottom=bottom, total=7) == 7
    assert visible_table_rows(top=bottom - 60, bottom=bottom, total=7) == 3
    assert visible_table_rows(top=bottom - 16, bottom=bottom, total=7) == 1
    assert visible_table_rows(top=0, bottom=bottom, total=0) == 0


def test_write_report(tmp_path: Path) -> None:
    out = tmp_path / "reports" / "r.pdf"
    assert write_report(build_report(_series(3), "1 Week", now=NOW), out) is True
    assert out.read_bytes().startswith(b"%PDF")
    assert write_report(b"", tmp_path / "empty.pdf") is False
    assert not (tmp_path / "empty.pdf").exists()


def test_chart_values_keeps_most_recent_readings_in_time_order() -> None:
    series = _series(200)
    shuffled = list(reversed(series)) + [
        MeasurementRecord(id="dose", timestamp=NOW, basal=12.0),
        MeasurementRecord(id="undated", timestamp=None, glucose=300.0),
    ]
    values = chart_values(shuffled)
    assert len(values) == CHART_MAX_POINTS
    assert values == [r.glucose for r in series[-CHART_MAX_POINTS:]]
    assert chart_values(series[:5]) == [r.glucose for r in series[:5]]
    assert chart_values([]) == []


def test_stat_box_color_follows_range_classification() -> None:
    target = TargetRange(70, 180)
    assert stat_box_color(69.9, target) == "danger"
    assert stat_box_color(70, target) == "success"
    assert stat_box_color(180, target) == "success"
    assert stat_box_color(181, target) == "warning"
    assert stat_box_color(None, target) == "secondary"

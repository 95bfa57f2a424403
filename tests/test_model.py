from __future__ import annotations

from datetime import datetime

import pytest

from glucotrack.model import (
    Category,
    EntryForm,
    MeasurementRecord,
    TargetRange,
    Trend,
    ValidationError,
    build_record,
    parse_number,
)


def test_category_parse_known_unknown_and_blank() -> None:
    assert Category.parse("Açlık") is Category.FASTING
    assert Category.parse("  yemek sonrası ") is Category.POST_MEAL
    assert Category.parse("BEDTIME") is Category.BEDTIME
    assert Category.parse("brunch") is Category.OTHER
    assert Category.parse("   ") is None
    assert Category.parse(None) is None


def test_target_range_rejects_inverted_bounds() -> None:
    assert TargetRange() == TargetRange(low=70, high=180)
    with pytest.raises(ValidationError):
        TargetRange(low=180, high=70)
    with pytest.raises(ValidationError):
        TargetRange(low=100, high=100)


def test_record_validity_flags() -> None:
    insulin_only = MeasurementRecord(id="a", timestamp=None, glucose=0, bolus=2.0)
    assert not insulin_only.glucose_valid
    assert insulin_only.insulin_valid
    assert insulin_only.total_insulin == 2.0
    assert insulin_only.day is None

    reading = MeasurementRecord(id="b", timestamp=datetime(2025, 1, 2, 8, 0), glucose=110)
    assert reading.glucose_valid
    assert not reading.insulin_valid
    assert reading.total_insulin == 0.0
    assert reading.day == datetime(2025, 1, 2).date()


def test_trend_symbols() -> None:
    assert Trend.STABLE.symbol == "→"
    assert Trend.RISING_FAST.symbol == "↑↑"
    assert Trend.FALLING.symbol == "↓"


def test_parse_number_accepts_comma_and_blank() -> None:
    assert parse_number("5,5") == 5.5
    assert parse_number(" 120 ") == 120.0
    assert parse_number("") is None
    assert parse_number(None) is None


@pytest.mark.parametrize("raw", ["abc", "-3", "nan", "inf"])
def test_parse_number_rejects_invalid(raw: str) -> None:
    with pytest.raises(ValidationError):
        parse_number(raw)


def test_build_record_glucose_wins_timestamp_and_notes() -> None:
    g_at = datetime(2025, 3, 1, 8, 0)
    i_at = datetime(2025, 3, 1, 9, 0)
    record = build_record(
        EntryForm(
            glucose="123,4",
            glucose_at=g_at,
            category="Yemek Öncesi",
            glucose_notes="antes del almuerzo",
            bolus="4",
            insulin_at=i_at,
            insulin_notes="bolus",
            record_id="r1",
        )
    )
    assert record.id == "r1"
    assert record.glucose == pytest.approx(123.4)
    assert record.timestamp == g_at
    assert record.category is Category.PRE_MEAL
    assert record.notes == "antes del almuerzo"
    assert record.bolus == 4.0


def test_build_record_insulin_only_uses_insulin_fields() -> None:
    i_at = datetime(2025, 3, 1, 22, 0)
    record = build_record(
        EntryForm(glucose="", basal="12", insulin_at=i_at, insulin_notes="gece")
    )
    assert record.glucose == 0.0
    assert record.category is None
    assert record.timestamp == i_at
    assert record.basal == 12.0
    assert record.notes == "gece"


def test_build_record_rejects_empty_entry() -> None:
    with pytest.raises(ValidationError):
        build_record(EntryForm(glucose="0", basal="0", bolus=""))


def test_build_record_rejects_non_numeric_glucose() -> None:
    with pytest.raises(ValidationError):
        build_record(EntryForm(glucose="doce"))

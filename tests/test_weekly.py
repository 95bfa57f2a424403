from __future__ import annotations

from datetime import date, datetime, timedelta

from glucotrack.model import Category, MeasurementRecord
from glucotrack.weekly import WeeklySlot, week_days, weekly_slots

TODAY = date(2025, 12, 21)


def _rec(
    rid: str,
    ts: datetime | None,
    glucose: float,
    category: Category | None = Category.FASTING,
) -> MeasurementRecord:
    return MeasurementRecord(id=rid, timestamp=ts, glucose=glucose, category=category)


def test_week_days_oldest_first() -> None:
    days = week_days(TODAY)
    assert len(days) == 7
    assert days[0] == date(2025, 12, 15)
    assert days[-1] == TODAY


def test_empty_records_give_seven_empty_slots() -> None:
    slots = weekly_slots([], TODAY)
    assert [s.day for s in slots] == week_days(TODAY)
    assert all(s.values() == (None, None, None, None) for s in slots)
    assert slots[0].cells() == ["15.12", "-", "-", "-", "-"]


def test_latest_timestamp_wins_per_day_and_category() -> None:
    morning = datetime(2025, 12, 20, 7, 0)
    records = [
        _rec("late", morning + timedelta(hours=2), 140),
        _rec("early", morning, 110),
        _rec("mid", morning + timedelta(hours=1), 125),
        _rec("noon", morning + timedelta(hours=5), 160, Category.PRE_MEAL),
    ]
    slot = weekly_slots(records, TODAY)[5]
    assert slot.day == date(2025, 12, 20)
    assert slot.morning == 140.0
    assert slot.noon == 160.0
    assert slot.evening is None


def test_chosen_value_has_max_timestamp_among_candidates() -> None:
    base = datetime(2025, 12, 18, 6, 0)
    candidates = [
        _rec(f"r{i}", base + timedelta(minutes=m), 100 + i)
        for i, m in enumerate([30, 5, 90, 45, 60])
    ]
    slot = weekly_slots(candidates, TODAY)[3]
    winner = next(r for r in candidates if r.glucose == slot.morning)
    assert all(winner.timestamp >= r.timestamp for r in candidates)


def test_identical_timestamp_tie_broken_by_greatest_id() -> None:
    ts = datetime(2025, 12, 21, 22, 0)
    records = [
        _rec("b", ts, 180, Category.BEDTIME),
        _rec("a", ts, 150, Category.BEDTIME),
        _rec("c", ts, 170, Category.BEDTIME),
    ]
    assert weekly_slots(records, TODAY)[-1].bedtime == 170.0
    assert weekly_slots(list(reversed(records)), TODAY)[-1].bedtime == 170.0


def test_categories_resolved_independently_across_days() -> None:
    day0 = datetime(2025, 12, 20, 7, 0)
    records = [
        _rec("1", day0, 70, None),
        _rec("2", day0, 90),
        _rec("3", day0 + timedelta(days=1), 95),
    ]
    slots = weekly_slots(records, TODAY)
    assert slots[5].morning == 90.0
    assert slots[6].morning == 95.0


def test_invisible_records_are_ignored() -> None:
    ts = datetime(2025, 12, 19, 12, 0)
    records = [
        _rec("no-ts", None, 300),
        _rec("no-cat", ts + timedelta(hours=1), 310, None),
        _rec("other", ts + timedelta(hours=2), 320, Category.OTHER),
        _rec("old", datetime(2025, 12, 14, 23, 59), 330),
        _rec("future", datetime(2025, 12, 22, 0, 1), 340),
        _rec("kept", ts, 120, Category.POST_MEAL),
    ]
    slots = weekly_slots(records, TODAY)
    values = [v for s in slots for v in s.values() if v is not None]
    assert values == [120.0]
    assert slots[4].evening == 120.0


def test_cells_render_truncated_integers() -> None:
    slot = WeeklySlot(day=date(2025, 1, 5), morning=99.9, bedtime=140.0)
    assert slot.cells() == ["05.01", "99", "-", "-", "140"]


def test_input_is_not_mutated() -> None:
    ts = datetime(2025, 12, 21, 8, 0)
    records = [_rec("x", ts, 100), _rec("y", ts - timedelta(hours=1), 90)]
    snapshot = list(records)
    weekly_slots(records, TODAY)
    assert records == snapshot

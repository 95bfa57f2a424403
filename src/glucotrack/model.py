"""Modelos tipados para registros de medición y rangos objetivo."""

from __future__ import annotations

import enum
import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime


class ValidationError(ValueError):
    """Raised when user input cannot become a valid measurement record."""


class Category(enum.Enum):
    """Meal/time-of-day label attached to a glucose reading."""

    FASTING = "Açlık"
    PRE_MEAL = "Yemek Öncesi"
    POST_MEAL = "Yemek Sonrası"
    BEDTIME = "Yatma Zamanı"
    OTHER = "Diğer"

    @classmethod
    def parse(cls, text: str | None) -> Category | None:
        """Mapea texto libre a categoría (vacío -> None, desconocido -> OTHER)."""
        if text is None:
            return None
        cleaned = text.strip()
        if not cleaned:
            return None
        folded = cleaned.casefold()
        for member in cls:
            if member.value.casefold() == folded or member.name.casefold() == folded:
                return member
        return cls.OTHER


class RangeClass(enum.Enum):
    """Position of a glucose value relative to the target range."""

    LOW = "low"
    IN_RANGE = "in-range"
    HIGH = "high"


class Trend(enum.Enum):
    """Direction of the last glucose change."""

    STABLE = "stable"
    RISING_FAST = "rising fast"
    RISING = "rising"
    FALLING_FAST = "falling fast"
    FALLING = "falling"

    @property
    def symbol(self) -> str:
        return _TREND_SYMBOLS[self]


_TREND_SYMBOLS: dict[Trend, str] = {
    Trend.STABLE: "→",
    Trend.RISING_FAST: "↑↑",
    Trend.RISING: "↑",
    Trend.FALLING_FAST: "↓↓",
    Trend.FALLING: "↓",
}


@dataclass(frozen=True)
class TargetRange:
    """Glucose target range in mg/dL (inclusive on both ends)."""

    low: float = 70.0
    high: float = 180.0

    def __post_init__(self) -> None:
        if not self.low < self.high:
            raise ValidationError(
                f"Target low ({self.low}) must be below target high ({self.high})"
            )


@dataclass(frozen=True)
class MeasurementRecord:
    """One logged glucose and/or insulin event."""

    id: str
    timestamp: datetime | None
    glucose: float = 0.0
    category: Category | None = None
    basal: float | None = None
    bolus: float | None = None
    notes: str | None = None

    @property
    def glucose_valid(self) -> bool:
        return self.glucose > 0

    @property
    def insulin_valid(self) -> bool:
        return (self.basal or 0.0) > 0 or (self.bolus or 0.0) > 0

    @property
    def total_insulin(self) -> float:
        return (self.basal or 0.0) + (self.bolus or 0.0)

    @property
    def day(self) -> date | None:
        if self.timestamp is None:
            return None
        return self.timestamp.date()


def new_record_id() -> str:
    """Return a fresh opaque record id."""
    return uuid.uuid4().hex


def parse_number(text: str | None) -> float | None:
    """Parse a decimal entry that may use ``,`` as separator.

    Args:
        text: Raw user input.

    Returns:
        The parsed value, or None for blank input.

    Raises:
        ValidationError: If the text is not a non-negative number.
    """
    if text is None:
        return None
    cleaned = text.strip().replace(",", ".")
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError as exc:
        raise ValidationError(f"Not a number: {text!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"Value must be a non-negative number: {text!r}")
    return value


@dataclass
class EntryForm:
    """Raw inputs of the entry flow: a glucose part and an insulin part."""

    glucose: str = ""
    glucose_at: datetime | None = None
    category: str | None = Category.FASTING.value
    glucose_notes: str = ""
    basal: str = "0"
    bolus: str = "0"
    insulin_at: datetime | None = None
    insulin_notes: str = ""
    record_id: str = field(default_factory=new_record_id)


def build_record(form: EntryForm) -> MeasurementRecord:
    """Validate an entry form and build the record to persist.

    Glucose data wins for timestamp, category and notes when present; an
    insulin-only entry takes the insulin timestamp and notes.

    Raises:
        ValidationError: If neither a glucose reading nor a dose is given.
    """
    glucose = parse_number(form.glucose) or 0.0
    basal = parse_number(form.basal) or 0.0
    bolus = parse_number(form.bolus) or 0.0

    glucose_ok = glucose > 0
    insulin_ok = basal > 0 or bolus > 0
    if not glucose_ok and not insulin_ok:
        raise ValidationError("Enter a glucose reading or an insulin dose")

    if glucose_ok:
        return MeasurementRecord(
            id=form.record_id,
            timestamp=form.glucose_at,
            glucose=glucose,
            category=Category.parse(form.category),
            basal=basal if insulin_ok else None,
            bolus=bolus if insulin_ok else None,
            notes=form.glucose_notes or None,
        )
    return MeasurementRecord(
        id=form.record_id,
        timestamp=form.insulin_at,
        glucose=0.0,
        basal=basal,
        bolus=bolus,
        notes=form.insulin_notes or None,
    )

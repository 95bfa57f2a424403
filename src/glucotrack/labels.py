"""Etiquetas localizadas para exportaciones y reportes (en / tr)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Labels:
    """User-facing strings shared by the CSV, XLSX and PDF outputs."""

    csv_header: tuple[str, ...] = (
        "Date/Time",
        "Glucose (mg/dL)",
        "Category",
        "Basal",
        "Bolus",
        "Notes",
    )
    app_name: str = "GlucoTrack"
    report_subtitle: str = "Glucose and Insulin Report"
    average: str = "Average"
    minimum: str = "Lowest"
    maximum: str = "Highest"
    chart_title: str = "Recent Measurements (Chart)"
    chart_empty: str = "Not enough data for a chart"
    table_title: str = "Weekly Measurement Table"
    table_header: tuple[str, ...] = ("Date", "Morning", "Noon", "Evening", "Bedtime")
    range_titles: tuple[str, ...] = ("1 Week", "1 Month", "3 Months", "6 Months", "1 Year")
    days_suffix: str = "Days"


ENGLISH = Labels()

TURKISH = Labels(
    csv_header=("Tarih/Saat", "Glukoz (mg/dL)", "Kategori", "Bazal", "Bolus", "Notlar"),
    report_subtitle="Glukoz ve İnsülin Raporu",
    average="Ortalama",
    minimum="En Düşük",
    maximum="En Yüksek",
    chart_title="Son Ölçümler (Grafik)",
    chart_empty="Grafik için yeterli veri yok",
    table_title="Haftalık Ölçüm Tablosu",
    table_header=("Tarih", "Sabah", "Öğlen", "Akşam", "Yatma"),
    range_titles=("1 Hafta", "1 Ay", "3 Ay", "6 Ay", "1 Yıl"),
    days_suffix="Gün",
)

_BY_LANGUAGE: dict[str, Labels] = {"en": ENGLISH, "tr": TURKISH}


def labels_for(language: str) -> Labels:
    """Devuelve el set de etiquetas del idioma (default: inglés)."""
    return _BY_LANGUAGE.get(language.strip().lower(), ENGLISH)

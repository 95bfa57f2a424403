"""CLI para registrar glucosa/insulina, ver estadísticas y exportar reportes."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from glucotrack.csv_export import CsvLayout, write_csv
from glucotrack.excel_writer import ExcelLayout, write_records_xlsx
from glucotrack.filters import ReportRange, StatsPeriod, filter_window, search_records
from glucotrack.labels import labels_for
from glucotrack.model import EntryForm, ValidationError, build_record
from glucotrack.report import build_report, write_report
from glucotrack.statistics import daily_insulin_totals, summarize
from glucotrack.storage import AppConfig, SQLiteStore, StoreError

logger = logging.getLogger(__name__)

_TIMESTAMP_INPUT = "%Y-%m-%d %H:%M"


def _parse_at(text: str) -> datetime:
    try:
        return datetime.strptime(text, _TIMESTAMP_INPUT)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"expected 'YYYY-MM-DD HH:MM', got {text!r}"
        ) from exc


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        prog="glucotrack",
        description="Registro de glucosa e insulina: estadísticas, CSV y PDF.",
    )
    parser.add_argument(
        "--db",
        default=str(Path.cwd() / "glucotrack.sqlite3"),
        help="Archivo SQLite (default: ./glucotrack.sqlite3).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log DEBUG.")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Agregar una medición.")
    add.add_argument("--glucose", default="", help="Glucosa en mg/dL.")
    add.add_argument("--category", default="Açlık", help="Categoría de la medición.")
    add.add_argument("--basal", default="0", help="Unidades de insulina basal.")
    add.add_argument("--bolus", default="0", help="Unidades de insulina bolus.")
    add.add_argument("--notes", default="", help="Notas libres.")
    add.add_argument(
        "--at",
        type=_parse_at,
        default=None,
        help="Fecha/hora 'YYYY-MM-DD HH:MM' (default: ahora).",
    )

    lst = sub.add_parser("list", help="Listar mediciones.")
    lst.add_argument("--search", default="", help="Filtrar por texto.")

    delete = sub.add_parser("delete", help="Borrar mediciones.")
    delete.add_argument("record_id", nargs="?", help="Id de la medición.")
    delete.add_argument("--all", action="store_true", help="Borrar todo.")

    stats = sub.add_parser("stats", help="Estadísticas del período.")
    stats.add_argument(
        "--days",
        type=int,
        choices=[int(p) for p in StatsPeriod],
        default=int(StatsPeriod.DAYS_7),
    )

    sub.add_parser("insulin", help="Totales diarios de insulina.")

    for name in ("export-csv", "export-xlsx"):
        exp = sub.add_parser(name, help="Exportar todas las mediciones.")
        exp.add_argument("--out", default=None, help="Archivo de salida.")

    report = sub.add_parser("report", help="Reporte PDF.")
    report.add_argument(
        "--range",
        dest="range_code",
        choices=[r.value for r in ReportRange],
        default=ReportRange.ONE_WEEK.value,
    )
    report.add_argument("--out", default=None, help="Archivo de salida.")

    cfg = sub.add_parser("config", help="Ver o cambiar configuración.")
    cfg.add_argument("--low", type=float, default=None, help="Objetivo bajo.")
    cfg.add_argument("--high", type=float, default=None, help="Objetivo alto.")
    cfg.add_argument("--export-dir", default=None, help="Carpeta de exportación.")
    cfg.add_argument("--language", choices=["en", "tr"], default=None)

    return parser.parse_args(argv)


def _output_path(
    out: str | None, config: AppConfig, stem: str, suffix: str, now: datetime
) -> Path:
    """Ruta de salida: --out o export_dir/<stem>_<timestamp><suffix>."""
    if out:
        return Path(out).expanduser()
    base = Path(config.export_dir).expanduser() if config.export_dir else Path.cwd()
    return base / f"{stem}_{now.strftime('%Y-%m-%d_%H-%M-%S')}{suffix}"


def _cmd_add(store: SQLiteStore, ns: argparse.Namespace, now: datetime) -> int:
    at = ns.at or now
    record = build_record(
        EntryForm(
            glucose=ns.glucose,
            glucose_at=at,
            category=ns.category,
            glucose_notes=ns.notes,
            basal=ns.basal,
            bolus=ns.bolus,
            insulin_at=at,
            insulin_notes=ns.notes,
        )
    )
    store.save_record(record)
    print(f"OK: saved {record.id}")
    return 0


def _cmd_list(store: SQLiteStore, ns: argparse.Namespace) -> int:
    records = search_records(store.fetch_records(), ns.search)
    for r in reversed(records):
        stamp = r.timestamp.strftime("%d.%m.%Y %H:%M") if r.timestamp else "-"
        category = r.category.value if r.category else "-"
        print(
            f"{r.id}  {stamp}  {int(r.glucose):>4} mg/dL  {category:<14}"
            f"  basal={r.basal or 0:g} bolus={r.bolus or 0:g}  {r.notes or ''}"
        )
    print(f"OK: {len(records)} records")
    return 0


def _cmd_delete(store: SQLiteStore, ns: argparse.Namespace) -> int:
    if ns.all:
        print(f"OK: deleted {store.delete_all()} records")
        return 0
    if not ns.record_id:
        print("Indique un id o --all", file=sys.stderr)
        return 2
    if not store.delete_record(ns.record_id):
        print(f"No existe la medición {ns.record_id}", file=sys.stderr)
        return 1
    print(f"OK: deleted {ns.record_id}")
    return 0


def _cmd_stats(
    store: SQLiteStore, config: AppConfig, ns: argparse.Namespace, now: datetime
) -> int:
    period = StatsPeriod(ns.days)
    records = filter_window(store.fetch_records(), now, period.window)
    s = summarize(records, config.target_range(), now)
    labels = labels_for(config.language)
    trend = f"{s.trend.symbol} ({s.trend.value})" if s.trend else "-"
    print(f"Period: {period.label(labels)}  ({s.count} readings)")
    print(f"Average: {s.average:.0f} mg/dL")
    print(f"Min / Max: {_fmt(s.minimum)} / {_fmt(s.maximum)} mg/dL")
    print(f"Time in range: {s.time_in_range:.1f}%")
    print(f"Estimated HbA1c: {s.control_index:.1f}%")
    print(f"Trend: {trend}")
    print(f"Today: avg {s.today_average:.0f} mg/dL, insulin {s.today_insulin:.1f} u")
    counts = ", ".join(f"{k.value}={v}" for k, v in s.range_counts.items())
    print(f"Ranges: {counts}")
    return 0


def _fmt(value: float | None) -> str:
    return "-" if value is None else f"{value:.0f}"


def _cmd_insulin(store: SQLiteStore) -> int:
    totals = daily_insulin_totals(store.fetch_records())
    if totals.empty:
        print("Sin registros de insulina")
        return 0
    for row in totals.itertuples(index=False):
        print(
            f"{row.date:%d.%m.%Y}  basal={row.basal:.1f}  "
            f"bolus={row.bolus:.1f}  total={row.total:.1f}"
        )
    return 0


def _cmd_export(
    store: SQLiteStore, config: AppConfig, ns: argparse.Namespace, now: datetime
) -> int:
    records = store.fetch_records()
    labels = labels_for(config.language)
    if ns.command == "export-csv":
        out = _output_path(ns.out, config, "GlucoTrack_Export", ".csv", now)
        written = write_csv(records, out, CsvLayout(labels=labels))
    else:
        out = _output_path(ns.out, config, "GlucoTrack_Export", ".xlsx", now)
        written = write_records_xlsx(records, out, ExcelLayout(labels=labels))
    if not written:
        print("No hay datos para exportar")
        return 0
    print(f"OK: Output: {out}")
    return 0


def _cmd_report(
    store: SQLiteStore, config: AppConfig, ns: argparse.Namespace, now: datetime
) -> int:
    rng = ReportRange.parse(ns.range_code)
    labels = labels_for(config.language)
    records = filter_window(store.fetch_records(), now, rng.window)
    data = build_report(
        records,
        rng.label(labels),
        target=config.target_range(),
        now=now,
        labels=labels,
    )
    out = _output_path(ns.out, config, "GlucoTrack_Report", ".pdf", now)
    if not write_report(data, out):
        print("No hay datos para exportar")
        return 0
    print(f"OK: Output: {out}")
    return 0


def _cmd_config(store: SQLiteStore, config: AppConfig, ns: argparse.Namespace) -> int:
    changes = {
        "target_low": ns.low,
        "target_high": ns.high,
        "export_dir": ns.export_dir,
        "language": ns.language,
    }
    updated = AppConfig(
        **{
            key: value if value is not None else getattr(config, key)
            for key, value in changes.items()
        }
    )
    if updated != config:
        store.save_config(updated)
    print(f"target_low={updated.target_low:g}")
    print(f"target_high={updated.target_high:g}")
    print(f"export_dir={updated.export_dir}")
    print(f"language={updated.language}")
    return 0


def run(ns: argparse.Namespace, now: datetime | None = None) -> int:
    """Execute a parsed command against the store.

    Returns:
        Exit code (0 on success).
    """
    now = now or datetime.now().replace(microsecond=0)
    store = SQLiteStore(Path(ns.db).expanduser())
    config = store.load_config()

    if ns.command == "add":
        return _cmd_add(store, ns, now)
    if ns.command == "list":
        return _cmd_list(store, ns)
    if ns.command == "delete":
        return _cmd_delete(store, ns)
    if ns.command == "stats":
        return _cmd_stats(store, config, ns, now)
    if ns.command == "insulin":
        return _cmd_insulin(store)
    if ns.command in ("export-csv", "export-xlsx"):
        return _cmd_export(store, config, ns, now)
    if ns.command == "report":
        return _cmd_report(store, config, ns, now)
    return _cmd_config(store, config, ns)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Store, validation and output-file failures are reported, never raised.

    Returns:
        Exit code (0 on success, 1 on failure).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    try:
        return run(ns)
    except ValidationError as exc:
        logger.warning("Validation failed: %s", exc)
        print(f"Dato inválido: {exc}", file=sys.stderr)
        return 1
    except StoreError as exc:
        logger.error("Store failure: %s", exc)
        print(f"Error de almacenamiento (reintente): {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.error("Output write failure: %s", exc)
        print(f"No se pudo escribir el archivo: {exc}", file=sys.stderr)
        return 1

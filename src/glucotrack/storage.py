"""Persistencia SQLite para mediciones y configuración de la app."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from glucotrack.model import Category, MeasurementRecord, TargetRange, ValidationError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS measurements (
    id TEXT PRIMARY KEY,
    timestamp TEXT,
    glucose REAL NOT NULL DEFAULT 0,
    category TEXT,
    basal REAL,
    bolus REAL,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_measurements_timestamp
ON measurements(timestamp);
"""


class StoreError(RuntimeError):
    """I/O failure while reading or writing the store (retryable)."""


@dataclass(frozen=True)
class AppConfig:
    """Configuración persistida de la app."""

    target_low: float = 70.0
    target_high: float = 180.0
    export_dir: str = ""
    language: str = "en"

    def target_range(self) -> TargetRange:
        return TargetRange(low=self.target_low, high=self.target_high)


class SQLiteStore:
    """Repositorio SQLite: snapshot de mediciones, alta/baja y configuración."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists.

        Raises:
            StoreError: If the database cannot be opened or initialized.
        """
        self._db_path = db_path
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create {self._db_path.parent}: {exc}") from exc
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Conexión corta con commit/rollback; errores como StoreError."""
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("SQLite error on %s: %s", self._db_path, exc)
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        defaults = AppConfig()
        low = _parse_float(values.get("target_low"), defaults.target_low)
        high = _parse_float(values.get("target_high"), defaults.target_high)
        if not low < high:
            low, high = defaults.target_low, defaults.target_high
        return AppConfig(
            target_low=low,
            target_high=high,
            export_dir=values.get("export_dir", defaults.export_dir),
            language=values.get("language", defaults.language),
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value.

        Raises:
            ValidationError: If the target range is inverted.
        """
        config.target_range()
        payload = {
            "target_low": repr(float(config.target_low)),
            "target_high": repr(float(config.target_high)),
            "export_dir": config.export_dir,
            "language": config.language,
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )

    def fetch_records(self) -> list[MeasurementRecord]:
        """Snapshot of every record, ascending by timestamp (nulls first)."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, timestamp, glucose, category, basal, bolus, notes
                FROM measurements
                ORDER BY timestamp IS NOT NULL, timestamp, id
                """
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def save_record(self, record: MeasurementRecord) -> None:
        """Insert or replace a record.

        Raises:
            ValidationError: If the record has neither glucose nor insulin.
        """
        if not record.glucose_valid and not record.insulin_valid:
            raise ValidationError(
                f"Record {record.id} has neither a glucose reading nor a dose"
            )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO measurements(
                    id, timestamp, glucose, category, basal, bolus, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    timestamp=excluded.timestamp,
                    glucose=excluded.glucose,
                    category=excluded.category,
                    basal=excluded.basal,
                    bolus=excluded.bolus,
                    notes=excluded.notes
                """,
                _record_to_row(record),
            )
        logger.debug("Saved record %s", record.id)

    def delete_record(self, record_id: str) -> bool:
        """Delete one record; False when the id does not exist."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM measurements WHERE id = ?", (record_id,))
        deleted = cur.rowcount > 0
        logger.debug("Delete record %s: %s", record_id, deleted)
        return deleted

    def delete_all(self) -> int:
        """Delete every record and return how many were removed."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM measurements")
        logger.info("Deleted %d records", cur.rowcount)
        return int(cur.rowcount)


def _parse_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _record_to_row(record: MeasurementRecord) -> tuple[object, ...]:
    return (
        record.id,
        record.timestamp.isoformat(timespec="seconds") if record.timestamp else None,
        float(record.glucose),
        record.category.value if record.category is not None else None,
        record.basal,
        record.bolus,
        record.notes,
    )


def _row_to_record(row: sqlite3.Row) -> MeasurementRecord:
    """Convert a stored row.

    Raises:
        StoreError: If the stored timestamp is not an ISO date-time.
    """
    ts = row["timestamp"]
    try:
        timestamp = datetime.fromisoformat(ts) if ts else None
    except (TypeError, ValueError) as exc:
        raise StoreError(
            f"Record {row['id']} has a malformed timestamp: {ts!r}"
        ) from exc
    return MeasurementRecord(
        id=str(row["id"]),
        timestamp=timestamp,
        glucose=float(row["glucose"] or 0.0),
        category=Category.parse(row["category"]),
        basal=row["basal"],
        bolus=row["bolus"],
        notes=row["notes"],
    )

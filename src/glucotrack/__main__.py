"""Punto de entrada: python -m glucotrack."""

from __future__ import annotations

from glucotrack.cli import main

if __name__ == "__main__":
    raise SystemExit(main())

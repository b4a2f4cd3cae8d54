"""Load reference data and estimate batches from CSV files."""

import csv
from pathlib import Path
from typing import Any

from rxreturns.config import DATA_DIR


def _read_csv(path: Path) -> list[dict[str, Any]]:
    """Read a CSV file and return list of row dicts."""
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return list(reader)


def load_pharmacies(csv_path: Path | None = None) -> list[dict[str, Any]]:
    """Load pharmacies from pharmacies.csv."""
    return _read_csv(csv_path or DATA_DIR / "pharmacies.csv")


def load_products(csv_path: Path | None = None) -> list[dict[str, Any]]:
    """Load product catalog from products.csv."""
    return _read_csv(csv_path or DATA_DIR / "products.csv")


def load_distributors(csv_path: Path | None = None) -> list[dict[str, Any]]:
    """Load reverse distributors from distributors.csv."""
    return _read_csv(csv_path or DATA_DIR / "distributors.csv")


def load_return_reports(csv_path: Path | None = None) -> list[dict[str, Any]]:
    """Load distributor price reports from return_reports.csv."""
    return _read_csv(csv_path or DATA_DIR / "return_reports.csv")


def load_inventory(csv_path: Path | None = None) -> list[dict[str, Any]]:
    """Load pharmacy inventory from inventory.csv."""
    return _read_csv(csv_path or DATA_DIR / "inventory.csv")


def load_estimate_items(csv_path: Path) -> list[dict[str, Any]]:
    """Load credit-estimate lines (ndc, quantity, expiration_date, lot_number, condition)."""
    return _read_csv(csv_path)

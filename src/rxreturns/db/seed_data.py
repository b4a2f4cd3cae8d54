"""Seed DB from CSV files when tables are first created."""

import json
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from rxreturns.db.models.inventory import InventoryItem
from rxreturns.db.models.master import Pharmacy, Product, ReverseDistributor
from rxreturns.db.models.reports import ReturnReportRecord
from rxreturns.engine.credits import days_to_expiration, inventory_status
from rxreturns.engine.ndc import format_ndc, normalize_ndc
from rxreturns.utils.csv_loader import (
    load_distributors,
    load_inventory,
    load_pharmacies,
    load_products,
    load_return_reports,
)
from rxreturns.utils.logger import get_logger

logger = get_logger("rxreturns.db.seed_data")


def _parse_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    if isinstance(val, str):
        return (val or "").strip().lower() in ("true", "1", "yes")
    return False


def _parse_int(val: Any, default: int | None = None) -> int | None:
    try:
        return int(val) if val is not None and str(val).strip() else default
    except (TypeError, ValueError):
        return default


def _parse_float(val: Any) -> float | None:
    try:
        return float(val) if val is not None and str(val).strip() else None
    except (TypeError, ValueError):
        return None


def _parse_date(val: Any) -> date | None:
    if val is None or not str(val).strip():
        return None
    try:
        return date.fromisoformat(str(val).strip()[:10])
    except (TypeError, ValueError):
        return None


def _text(row: dict[str, Any], key: str) -> str | None:
    return (row.get(key) or "").strip() or None


def _explicit_id(row: dict[str, Any]) -> dict[str, str]:
    """Keep CSV-provided ids so reports and inventory can reference them."""
    value = _text(row, "id")
    return {"id": value} if value else {}


def seed_reference_data(session: Session) -> None:
    """Insert pharmacies, products, distributors, return reports and inventory from data/*.csv (FK order)."""
    pharmacies = 0
    for r in load_pharmacies():
        name = _text(r, "name")
        if not name:
            continue
        session.add(
            Pharmacy(
                **_explicit_id(r),
                name=name,
                email=_text(r, "email"),
                phone=_text(r, "phone"),
                status=_text(r, "status") or "active",
            )
        )
        pharmacies += 1
    session.flush()
    logger.info("seed_data.pharmacies", count=pharmacies)

    products = 0
    for r in load_products():
        ndc = _text(r, "ndc")
        name = _text(r, "product_name")
        if not ndc or not name:
            continue
        session.add(
            Product(
                ndc=format_ndc(ndc),
                product_name=name,
                generic_name=_text(r, "generic_name"),
                manufacturer=_text(r, "manufacturer"),
                strength=_text(r, "strength"),
                dosage_form=_text(r, "dosage_form"),
                package_size=_parse_int(r.get("package_size")),
                wac=_parse_float(r.get("wac")),
                awp=_parse_float(r.get("awp")),
                dea_schedule=_text(r, "dea_schedule"),
                return_window_days=_parse_int(r.get("return_window_days")),
                credit_percentage=_parse_float(r.get("credit_percentage")),
                destruction_required=_parse_bool(r.get("destruction_required")),
                requires_dea_form=_parse_bool(r.get("requires_dea_form")),
            )
        )
        products += 1
    session.flush()
    logger.info("seed_data.products", count=products)

    distributors = 0
    for r in load_distributors():
        name = _text(r, "name")
        if not name:
            continue
        fee_rates = json.loads(r["fee_rates"]) if _text(r, "fee_rates") else {}
        session.add(
            ReverseDistributor(
                **_explicit_id(r),
                name=name,
                code=_text(r, "code"),
                contact_email=_text(r, "contact_email"),
                contact_phone=_text(r, "contact_phone"),
                address={
                    "street": _text(r, "street"),
                    "city": _text(r, "city"),
                    "state": _text(r, "state"),
                    "zipCode": _text(r, "zip_code"),
                    "country": _text(r, "country"),
                },
                fee_rates=fee_rates,
                is_active=_parse_bool(r.get("is_active") or "true"),
            )
        )
        distributors += 1
    session.flush()
    logger.info("seed_data.distributors", count=distributors)

    reports = 0
    for r in load_return_reports():
        distributor_id = _text(r, "distributor_id")
        ndc = normalize_ndc(r.get("ndc"))
        unit_type = (_text(r, "unit_type") or "").lower()
        report_date = _parse_date(r.get("report_date"))
        price = _parse_float(r.get("price_per_unit"))
        credit_amount = _parse_float(r.get("credit_amount"))
        quantity = _parse_int(r.get("quantity"))
        if price is None and credit_amount is not None and quantity:
            price = credit_amount / quantity
        if not distributor_id or not ndc or unit_type not in ("full", "partial") or report_date is None or not price:
            continue
        session.add(
            ReturnReportRecord(
                distributor_id=distributor_id,
                ndc=ndc,
                unit_type=unit_type,
                price_per_unit=price,
                quantity=quantity,
                credit_amount=credit_amount,
                report_date=report_date,
            )
        )
        reports += 1
    session.flush()
    logger.info("seed_data.return_reports", count=reports)

    inventory = 0
    for r in load_inventory():
        pharmacy_id = _text(r, "pharmacy_id")
        ndc = _text(r, "ndc")
        expiration = _parse_date(r.get("expiration_date"))
        if not pharmacy_id or not ndc or expiration is None:
            continue
        session.add(
            InventoryItem(
                pharmacy_id=pharmacy_id,
                ndc=format_ndc(ndc),
                product_name=_text(r, "product_name") or ndc,
                lot_number=_text(r, "lot_number"),
                expiration_date=expiration,
                quantity=_parse_int(r.get("quantity"), 0),
                unit=_text(r, "unit"),
                location=_text(r, "location"),
                status=inventory_status(days_to_expiration(expiration)),
            )
        )
        inventory += 1
    logger.info("seed_data.inventory", count=inventory)

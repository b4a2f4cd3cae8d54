"""Inventory repository: pharmacy-scoped CRUD with derived expiration status."""

from typing import Any

from sqlalchemy import func, or_, select

from rxreturns.db import get_session
from rxreturns.db.models.inventory import InventoryItem
from rxreturns.engine.credits import days_to_expiration, inventory_status
from rxreturns.engine.ndc import format_ndc, normalize_ndc
from rxreturns.errors import NotFoundError, ValidationError

_UPDATABLE = ("ndc", "product_name", "lot_number", "expiration_date", "quantity", "unit", "location")


def to_dict(row: InventoryItem) -> dict[str, Any]:
    days = days_to_expiration(row.expiration_date)
    return {
        "id": row.id,
        "pharmacy_id": row.pharmacy_id,
        "ndc": row.ndc,
        "product_name": row.product_name,
        "lot_number": row.lot_number,
        "expiration_date": row.expiration_date.isoformat(),
        "quantity": row.quantity,
        "unit": row.unit,
        "location": row.location,
        "status": inventory_status(days),
        "days_until_expiration": days,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def _refresh_status(row: InventoryItem) -> None:
    row.status = inventory_status(days_to_expiration(row.expiration_date))


def _owned(session, pharmacy_id: str, item_id: str) -> InventoryItem:
    row = session.get(InventoryItem, item_id)
    if row is None or row.pharmacy_id != pharmacy_id:
        raise NotFoundError("Inventory item not found")
    return row


def list_items(
    pharmacy_id: str,
    status: str | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> dict[str, Any]:
    with get_session() as session:
        q = select(InventoryItem).where(InventoryItem.pharmacy_id == pharmacy_id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            q = q.where(or_(InventoryItem.ndc.ilike(pattern), InventoryItem.product_name.ilike(pattern)))
        rows = session.scalars(q.order_by(InventoryItem.expiration_date)).all()
    items = [to_dict(r) for r in rows]
    # status depends on today's date, so filter after deriving it
    if status:
        items = [i for i in items if i["status"] == status]
    return {"items": items[offset : offset + limit], "total": len(items)}


def get_item(pharmacy_id: str, item_id: str) -> dict[str, Any]:
    with get_session() as session:
        return to_dict(_owned(session, pharmacy_id, item_id))


def items_by_ndc(pharmacy_id: str) -> dict[str, dict[str, Any]]:
    """The pharmacy's inventory keyed by digit-only NDC (first lot wins)."""
    with get_session() as session:
        rows = session.scalars(
            select(InventoryItem)
            .where(InventoryItem.pharmacy_id == pharmacy_id)
            .order_by(InventoryItem.created_at)
        ).all()
    out: dict[str, dict[str, Any]] = {}
    for r in rows:
        out.setdefault(normalize_ndc(r.ndc), to_dict(r))
    return out


def create_item(pharmacy_id: str, data: dict[str, Any]) -> dict[str, Any]:
    if data.get("quantity", 0) < 0:
        raise ValidationError("quantity must not be negative")
    with get_session() as session:
        row = InventoryItem(
            pharmacy_id=pharmacy_id,
            ndc=format_ndc(data["ndc"]),
            product_name=data["product_name"],
            lot_number=data.get("lot_number"),
            expiration_date=data["expiration_date"],
            quantity=data.get("quantity", 0),
            unit=data.get("unit"),
            location=data.get("location"),
        )
        _refresh_status(row)
        session.add(row)
        session.flush()
        return to_dict(row)


def update_item(pharmacy_id: str, item_id: str, data: dict[str, Any]) -> dict[str, Any]:
    if data.get("quantity") is not None and data["quantity"] < 0:
        raise ValidationError("quantity must not be negative")
    with get_session() as session:
        row = _owned(session, pharmacy_id, item_id)
        for key in _UPDATABLE:
            if key in data and data[key] is not None:
                setattr(row, key, format_ndc(data[key]) if key == "ndc" else data[key])
        _refresh_status(row)
        session.flush()
        return to_dict(row)


def delete_item(pharmacy_id: str, item_id: str) -> None:
    with get_session() as session:
        session.delete(_owned(session, pharmacy_id, item_id))


def metrics(pharmacy_id: str) -> dict[str, Any]:
    with get_session() as session:
        rows = session.execute(
            select(InventoryItem.expiration_date, InventoryItem.quantity).where(
                InventoryItem.pharmacy_id == pharmacy_id
            )
        ).all()
        total_quantity = session.scalar(
            select(func.coalesce(func.sum(InventoryItem.quantity), 0)).where(
                InventoryItem.pharmacy_id == pharmacy_id
            )
        )
    counts = {"active": 0, "expiring_soon": 0, "expired": 0}
    for expiration, _ in rows:
        counts[inventory_status(days_to_expiration(expiration))] += 1
    return {
        "totalItems": len(rows),
        "activeItems": counts["active"],
        "expiringSoonItems": counts["expiring_soon"],
        "expiredItems": counts["expired"],
        "totalQuantity": int(total_quantity or 0),
    }

"""Returns repository: a return and its items are written in one transaction."""

from typing import Any

from sqlalchemy import func, select

from rxreturns.db import get_session
from rxreturns.db.models.returns import RETURN_STATUSES, Return, ReturnItem
from rxreturns.engine.ndc import format_ndc
from rxreturns.errors import NotFoundError, ValidationError


def item_to_dict(row: ReturnItem) -> dict[str, Any]:
    return {
        "id": row.id,
        "inventory_item_id": row.inventory_item_id,
        "ndc": row.ndc,
        "product_name": row.product_name,
        "lot_number": row.lot_number,
        "expiration_date": row.expiration_date.isoformat() if row.expiration_date else None,
        "quantity": row.quantity,
        "unit": row.unit,
        "reason": row.reason,
        "estimated_credit": row.estimated_credit,
    }


def to_dict(row: Return) -> dict[str, Any]:
    return {
        "id": row.id,
        "pharmacy_id": row.pharmacy_id,
        "status": row.status,
        "total_estimated_credit": round(row.total_estimated_credit, 2),
        "shipment_id": row.shipment_id,
        "notes": row.notes,
        "items": [item_to_dict(i) for i in row.items],
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def _owned(session, pharmacy_id: str, return_id: str) -> Return:
    row = session.get(Return, return_id)
    if row is None or row.pharmacy_id != pharmacy_id:
        raise NotFoundError("Return not found")
    return row


def create_return(pharmacy_id: str, items: list[dict[str, Any]], notes: str | None = None) -> dict[str, Any]:
    if not items:
        raise ValidationError("At least one item is required")
    with get_session() as session:
        ret = Return(pharmacy_id=pharmacy_id, status="draft", notes=notes)
        for it in items:
            ret.items.append(
                ReturnItem(
                    inventory_item_id=it.get("inventory_item_id"),
                    ndc=format_ndc(it["ndc"]),
                    product_name=it["product_name"],
                    lot_number=it.get("lot_number"),
                    expiration_date=it.get("expiration_date"),
                    quantity=it["quantity"],
                    unit=it.get("unit"),
                    reason=it.get("reason"),
                    estimated_credit=it.get("estimated_credit") or 0.0,
                )
            )
        ret.total_estimated_credit = sum(i.estimated_credit for i in ret.items)
        session.add(ret)
        session.flush()
        return to_dict(ret)


def list_returns(
    pharmacy_id: str, status: str | None = None, limit: int = 50, offset: int = 0
) -> dict[str, Any]:
    with get_session() as session:
        q = select(Return).where(Return.pharmacy_id == pharmacy_id)
        count_q = select(func.count(Return.id)).where(Return.pharmacy_id == pharmacy_id)
        if status:
            q = q.where(Return.status == status)
            count_q = count_q.where(Return.status == status)
        rows = session.scalars(q.order_by(Return.created_at.desc()).limit(limit).offset(offset)).all()
        return {"returns": [to_dict(r) for r in rows], "total": session.scalar(count_q) or 0}


def get_return(pharmacy_id: str, return_id: str) -> dict[str, Any]:
    with get_session() as session:
        return to_dict(_owned(session, pharmacy_id, return_id))


def update_return(pharmacy_id: str, return_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update status/notes/shipment. Any valid status may be set from any other."""
    status = data.get("status")
    if status is not None and status not in RETURN_STATUSES:
        raise ValidationError(
            f"Invalid status: {status}. Must be one of: {', '.join(RETURN_STATUSES)}"
        )
    with get_session() as session:
        row = _owned(session, pharmacy_id, return_id)
        for key in ("status", "notes", "shipment_id"):
            if data.get(key) is not None:
                setattr(row, key, data[key])
        session.flush()
        return to_dict(row)


def delete_return(pharmacy_id: str, return_id: str) -> None:
    with get_session() as session:
        session.delete(_owned(session, pharmacy_id, return_id))

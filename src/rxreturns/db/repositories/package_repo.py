"""Custom package repository.

Package rows and their items are always written inside one ``get_session()``
block, and package totals are recomputed from the items on every mutation.
"""

from datetime import date
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from rxreturns.db import get_session
from rxreturns.db.models.master import ReverseDistributor
from rxreturns.db.models.packages import (
    CARRIERS,
    DELIVERY_CONDITIONS,
    CustomPackage,
    CustomPackageItem,
)
from rxreturns.db.repositories.distributor_repo import contact_for
from rxreturns.engine.ndc import normalize_ndc
from rxreturns.engine.packaging import generate_package_number
from rxreturns.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from rxreturns.utils.logger import get_logger

logger = get_logger("rxreturns.db.package_repo")


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def existing_info(row: CustomPackage) -> dict[str, Any]:
    return {
        "id": row.id,
        "packageNumber": row.package_number,
        "totalItems": row.total_items,
        "totalEstimatedValue": round(row.total_estimated_value, 2),
        "feeRate": row.fee_rate,
        "feeDuration": row.fee_duration,
        "createdAt": _iso(row.created_at),
    }


def item_to_dict(row: CustomPackageItem) -> dict[str, Any]:
    return {
        "id": row.id,
        "ndc": row.ndc,
        "productId": row.product_id,
        "productName": row.product_name,
        "full": row.full,
        "partial": row.partial,
        "pricePerUnit": row.price_per_unit,
        "totalValue": round(row.total_value, 2),
    }


def to_dict(row: CustomPackage, contact: dict[str, Any] | None = None) -> dict[str, Any]:
    delivery_info = None
    if row.delivered:
        delivery_info = {
            "deliveryDate": _iso(row.delivery_date),
            "receivedBy": row.received_by,
            "deliveryCondition": row.delivery_condition,
            "deliveryNotes": row.delivery_notes,
            "trackingNumber": row.tracking_number,
            "carrier": row.carrier,
        }
    return {
        "id": row.id,
        "packageNumber": row.package_number,
        "pharmacyId": row.pharmacy_id,
        "distributorId": row.distributor_id,
        "distributorName": row.distributor_name,
        "distributorContact": contact,
        "items": [item_to_dict(i) for i in row.items],
        "totalItems": row.total_items,
        "totalEstimatedValue": round(row.total_estimated_value, 2),
        "feeRate": row.fee_rate,
        "feeDuration": row.fee_duration,
        "feeAmount": round(row.fee_amount, 2),
        "netEstimatedValue": round(row.net_estimated_value, 2),
        "notes": row.notes,
        "delivered": row.delivered,
        "deliveryInfo": delivery_info,
        "createdAt": _iso(row.created_at),
        "updatedAt": _iso(row.updated_at),
    }


def _contact(session, distributor_id: str) -> dict[str, Any] | None:
    distributor = session.get(ReverseDistributor, distributor_id)
    return contact_for(distributor) if distributor is not None else None


def recompute_totals(row: CustomPackage) -> None:
    row.total_items = sum(i.full + i.partial for i in row.items)
    row.total_estimated_value = round(sum(i.total_value for i in row.items), 2)
    row.fee_amount = round(row.total_estimated_value * (row.fee_rate or 0) / 100, 2)
    row.net_estimated_value = round(row.total_estimated_value - row.fee_amount, 2)


def _new_item(data: dict[str, Any]) -> CustomPackageItem:
    full = int(data.get("full") or 0)
    partial = int(data.get("partial") or 0)
    price = float(data.get("price_per_unit") or 0)
    total = data.get("total_value")
    return CustomPackageItem(
        ndc=data["ndc"],
        product_id=data.get("product_id"),
        product_name=data.get("product_name") or data["ndc"],
        full=full,
        partial=partial,
        price_per_unit=price,
        total_value=float(total) if total is not None else price * (full + partial),
    )


def open_packages_by_distributor(
    pharmacy_id: str, distributor_ids: Iterable[str] | None = None
) -> dict[str, dict[str, Any]]:
    """Most recent non-delivered package per distributor for a pharmacy."""
    with get_session() as session:
        q = (
            select(CustomPackage)
            .where(CustomPackage.pharmacy_id == pharmacy_id)
            .where(CustomPackage.delivered == False)  # noqa: E712
            .order_by(CustomPackage.created_at.desc())
        )
        if distributor_ids is not None:
            q = q.where(CustomPackage.distributor_id.in_(set(distributor_ids)))
        out: dict[str, dict[str, Any]] = {}
        for row in session.scalars(q).all():
            out.setdefault(row.distributor_id, existing_info(row))
        return out


def create_package(
    pharmacy_id: str,
    distributor: ReverseDistributor,
    items: list[dict[str, Any]],
    notes: str | None = None,
    fee_rate: float | None = None,
    fee_duration: int | None = None,
) -> dict[str, Any]:
    """Insert a package with its items. 409 if the distributor already has an open package."""
    try:
        with get_session() as session:
            open_row = session.scalars(
                select(CustomPackage)
                .where(CustomPackage.pharmacy_id == pharmacy_id)
                .where(CustomPackage.distributor_id == distributor.id)
                .where(CustomPackage.delivered == False)  # noqa: E712
            ).first()
            if open_row is not None:
                raise ConflictError(
                    f"An open package already exists for {distributor.name}: {open_row.package_number}"
                )
            row = CustomPackage(
                package_number=generate_package_number(),
                pharmacy_id=pharmacy_id,
                distributor_id=distributor.id,
                distributor_name=distributor.name,
                notes=notes,
                fee_rate=fee_rate,
                fee_duration=fee_duration,
                delivered=False,
            )
            row.items = [_new_item(i) for i in items]
            recompute_totals(row)
            session.add(row)
            session.flush()
            logger.info(
                "packages.created",
                package_id=row.id,
                package_number=row.package_number,
                distributor_id=distributor.id,
                items=len(row.items),
            )
            return to_dict(row, contact_for(distributor))
    except IntegrityError as e:
        raise ConflictError(f"An open package already exists for {distributor.name}") from e


def list_packages(
    pharmacy_id: str,
    delivered: bool | None = None,
    limit: int = 100,
    offset: int = 0,
) -> dict[str, Any]:
    with get_session() as session:
        base = select(CustomPackage).where(CustomPackage.pharmacy_id == pharmacy_id)
        if delivered is not None:
            base = base.where(CustomPackage.delivered == delivered)
        total = session.scalar(select(func.count()).select_from(base.subquery())) or 0
        rows = session.scalars(
            base.order_by(CustomPackage.created_at.desc()).limit(limit).offset(offset)
        ).all()

        contacts: dict[str, Any] = {}
        for row in rows:
            if row.distributor_id not in contacts:
                contacts[row.distributor_id] = _contact(session, row.distributor_id)
        packages = [to_dict(r, contacts.get(r.distributor_id)) for r in rows]

        # stats cover every package of the pharmacy, not just this page
        open_totals = session.execute(
            select(
                func.coalesce(func.sum(CustomPackage.total_items), 0),
                func.coalesce(func.sum(CustomPackage.total_estimated_value), 0.0),
                func.count(CustomPackage.id),
            )
            .where(CustomPackage.pharmacy_id == pharmacy_id)
            .where(CustomPackage.delivered == False)  # noqa: E712
        ).one()
        delivered_count = session.scalar(
            select(func.count(CustomPackage.id))
            .where(CustomPackage.pharmacy_id == pharmacy_id)
            .where(CustomPackage.delivered == True)  # noqa: E712
        )
    return {
        "packages": packages,
        "total": total,
        "stats": {
            "totalProducts": int(open_totals[0]),
            "totalValue": round(float(open_totals[1]), 2),
            "deliveredPackages": delivered_count or 0,
            "nonDeliveredPackages": open_totals[2],
        },
    }


def get_package(pharmacy_id: str, package_id: str) -> dict[str, Any]:
    with get_session() as session:
        row = session.get(CustomPackage, package_id)
        if row is None or row.pharmacy_id != pharmacy_id:
            raise NotFoundError("Package not found")
        return to_dict(row, _contact(session, row.distributor_id))


def toggle_delivered(
    pharmacy_id: str, package_id: str, delivery: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Flip the delivered flag. Marking delivered records delivery metadata; un-marking clears it.

    Re-opening is refused with 409 while another open package exists for the
    same distributor.
    """
    delivery = delivery or {}
    try:
        with get_session() as session:
            row = session.get(CustomPackage, package_id)
            if row is None or row.pharmacy_id != pharmacy_id:
                raise NotFoundError("Package not found or you do not have permission to update it")
            if row.delivered:
                _reopen(session, row)
            else:
                _mark_delivered(row, delivery)
            session.flush()
            logger.info("packages.status_toggled", package_id=row.id, delivered=row.delivered)
            return to_dict(row, _contact(session, row.distributor_id))
    except IntegrityError as e:
        raise ConflictError("An open package already exists for this distributor") from e


def _mark_delivered(row: CustomPackage, delivery: dict[str, Any]) -> None:
    delivery_date = delivery.get("delivery_date")
    received_by = (delivery.get("received_by") or "").strip()
    if not delivery_date:
        raise ValidationError("Delivery date is required")
    if not received_by:
        raise ValidationError("Received by (person name) is required")
    condition = delivery.get("delivery_condition") or "good"
    if condition not in DELIVERY_CONDITIONS:
        raise ValidationError(
            f"Invalid delivery condition: {condition}. Must be one of: {', '.join(DELIVERY_CONDITIONS)}"
        )
    carrier = delivery.get("carrier")
    if carrier is not None and carrier not in CARRIERS:
        raise ValidationError(f"Invalid carrier: {carrier}. Must be one of: {', '.join(CARRIERS)}")
    if not isinstance(delivery_date, date):
        try:
            delivery_date = date.fromisoformat(str(delivery_date)[:10])
        except ValueError as e:
            raise ValidationError(f"Invalid delivery date: {delivery_date}") from e
    row.delivered = True
    row.delivery_date = delivery_date
    row.received_by = received_by
    row.delivery_condition = condition
    row.delivery_notes = delivery.get("delivery_notes")
    row.tracking_number = delivery.get("tracking_number")
    row.carrier = carrier


def _reopen(session, row: CustomPackage) -> None:
    open_row = session.scalars(
        select(CustomPackage)
        .where(CustomPackage.pharmacy_id == row.pharmacy_id)
        .where(CustomPackage.distributor_id == row.distributor_id)
        .where(CustomPackage.delivered == False)  # noqa: E712
        .where(CustomPackage.id != row.id)
    ).first()
    if open_row is not None:
        raise ConflictError(
            f"An open package already exists for {row.distributor_name}: {open_row.package_number}"
        )
    row.delivered = False
    row.delivery_date = None
    row.received_by = None
    row.delivery_condition = None
    row.delivery_notes = None
    row.tracking_number = None
    row.carrier = None


def add_items(pharmacy_id: str, package_id: str, items: list[dict[str, Any]]) -> dict[str, Any]:
    """Add items to an open package; a known productId (or NDC) increments the existing line."""
    if not items:
        raise ValidationError("Items array is required and must not be empty")
    with get_session() as session:
        row = session.get(CustomPackage, package_id)
        if row is None or row.pharmacy_id != pharmacy_id:
            raise NotFoundError("Package not found")
        if row.delivered:
            raise ValidationError("Cannot add items to a delivered package")

        for data in items:
            new = _new_item(data)
            match = None
            for existing in row.items:
                if new.product_id and existing.product_id == new.product_id:
                    match = existing
                    break
                if not new.product_id and not existing.product_id and normalize_ndc(existing.ndc) == normalize_ndc(new.ndc):
                    match = existing
                    break
            if match is None:
                row.items.append(new)
                continue
            match.full += new.full
            match.partial += new.partial
            match.total_value = round(match.total_value + new.total_value, 2)
            if new.price_per_unit:
                match.price_per_unit = new.price_per_unit

        recompute_totals(row)
        session.flush()
        return to_dict(row, _contact(session, row.distributor_id))


def delete_package(pharmacy_id: str, package_id: str) -> None:
    with get_session() as session:
        row = session.get(CustomPackage, package_id)
        if row is None:
            raise NotFoundError("Package not found")
        if row.pharmacy_id != pharmacy_id:
            raise ForbiddenError("You do not have permission to delete this package")
        if row.delivered:
            raise ValidationError(
                "Cannot delete package with status: delivered. Only non-delivered packages can be deleted."
            )
        session.delete(row)
        logger.info("packages.deleted", package_id=package_id)

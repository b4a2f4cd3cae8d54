"""Reverse distributor repository."""

from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from rxreturns.db import get_session
from rxreturns.db.models.master import ReverseDistributor
from rxreturns.errors import ConflictError, NotFoundError

_ADDRESS_PARTS = ("street", "city", "state", "zipCode", "country")

# request field -> column
_FIELDS = {
    "name": "name",
    "code": "code",
    "contactEmail": "contact_email",
    "contactPhone": "contact_phone",
    "address": "address",
    "portalUrl": "portal_url",
    "supportedFormats": "supported_formats",
    "feeRates": "fee_rates",
    "isActive": "is_active",
}


def format_location(address: dict[str, Any] | None) -> str | None:
    parts = [str(address[k]) for k in _ADDRESS_PARTS if address and address.get(k)]
    return ", ".join(parts) if parts else None


def contact_for(row: ReverseDistributor) -> dict[str, Any]:
    return {
        "email": row.contact_email,
        "phone": row.contact_phone,
        "location": format_location(row.address),
        "feeRates": row.fee_rates or {},
    }


def to_dict(row: ReverseDistributor) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "code": row.code,
        "contactEmail": row.contact_email,
        "contactPhone": row.contact_phone,
        "address": row.address,
        "portalUrl": row.portal_url,
        "supportedFormats": row.supported_formats or [],
        "feeRates": row.fee_rates or {},
        "isActive": row.is_active,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
        "updatedAt": row.updated_at.isoformat() if row.updated_at else None,
    }


def get(distributor_id: str) -> ReverseDistributor:
    with get_session() as session:
        row = session.get(ReverseDistributor, distributor_id)
        if row is None:
            raise NotFoundError("Distributor not found")
        return row


def get_many(distributor_ids: Iterable[str]) -> dict[str, ReverseDistributor]:
    ids = set(distributor_ids)
    if not ids:
        return {}
    with get_session() as session:
        rows = session.scalars(select(ReverseDistributor).where(ReverseDistributor.id.in_(ids))).all()
        return {r.id: r for r in rows}


def list_distributors(active_only: bool = False) -> list[dict[str, Any]]:
    with get_session() as session:
        q = select(ReverseDistributor).order_by(ReverseDistributor.name)
        if active_only:
            q = q.where(ReverseDistributor.is_active == True)  # noqa: E712
        return [to_dict(r) for r in session.scalars(q).all()]


def create(data: dict[str, Any]) -> dict[str, Any]:
    values = {column: data[field] for field, column in _FIELDS.items() if data.get(field) is not None}
    try:
        with get_session() as session:
            row = ReverseDistributor(**values)
            session.add(row)
            session.flush()
            return to_dict(row)
    except IntegrityError as e:
        raise ConflictError(f"Distributor already exists: {data.get('name')}") from e


def update(distributor_id: str, data: dict[str, Any]) -> dict[str, Any]:
    try:
        with get_session() as session:
            row = session.get(ReverseDistributor, distributor_id)
            if row is None:
                raise NotFoundError("Distributor not found")
            for field, column in _FIELDS.items():
                if field in data and data[field] is not None:
                    setattr(row, column, data[field])
            session.flush()
            return to_dict(row)
    except IntegrityError as e:
        raise ConflictError(f"Distributor already exists: {data.get('name')}") from e

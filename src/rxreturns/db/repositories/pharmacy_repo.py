"""Pharmacy repository."""

from typing import Any

from sqlalchemy.exc import IntegrityError

from rxreturns.db import get_session
from rxreturns.db.models.master import PHARMACY_STATUSES, Pharmacy
from rxreturns.errors import ConflictError, NotFoundError, ValidationError


def to_dict(row: Pharmacy) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "email": row.email,
        "phone": row.phone,
        "npiNumber": row.npi_number,
        "deaNumber": row.dea_number,
        "status": row.status,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def get(pharmacy_id: str) -> Pharmacy | None:
    with get_session() as session:
        return session.get(Pharmacy, pharmacy_id)


def create(
    name: str,
    email: str | None = None,
    phone: str | None = None,
    npi_number: str | None = None,
    dea_number: str | None = None,
    status: str = "active",
    pharmacy_id: str | None = None,
) -> dict[str, Any]:
    if status not in PHARMACY_STATUSES:
        raise ValidationError(f"Invalid pharmacy status: {status}")
    values: dict[str, Any] = {
        "name": name,
        "email": email,
        "phone": phone,
        "npi_number": npi_number,
        "dea_number": dea_number,
        "status": status,
    }
    if pharmacy_id:
        values["id"] = pharmacy_id
    try:
        with get_session() as session:
            row = Pharmacy(**values)
            session.add(row)
            session.flush()
            return to_dict(row)
    except IntegrityError as e:
        raise ConflictError("A pharmacy with this email already exists") from e


def update_status(pharmacy_id: str, status: str) -> dict[str, Any]:
    if status not in PHARMACY_STATUSES:
        raise ValidationError(f"Invalid pharmacy status: {status}")
    with get_session() as session:
        row = session.get(Pharmacy, pharmacy_id)
        if row is None:
            raise NotFoundError("Pharmacy not found")
        row.status = status
        session.flush()
        return to_dict(row)

"""Product repository: NDC lookups and idempotent upserts."""

from typing import Any, Iterable

from sqlalchemy import or_, select

from rxreturns.db import get_session
from rxreturns.db.models.master import Product
from rxreturns.engine.credits import ProductTerms
from rxreturns.engine.ndc import format_ndc, normalize_ndc
from rxreturns.errors import ValidationError

_UPDATABLE = (
    "product_name",
    "generic_name",
    "manufacturer",
    "strength",
    "dosage_form",
    "package_size",
    "wac",
    "awp",
    "dea_schedule",
    "return_window_days",
    "credit_percentage",
    "destruction_required",
    "requires_dea_form",
)


def to_dict(row: Product) -> dict[str, Any]:
    return {
        "id": row.id,
        "ndc": row.ndc,
        "product_name": row.product_name,
        "generic_name": row.generic_name,
        "manufacturer": row.manufacturer,
        "strength": row.strength,
        "dosage_form": row.dosage_form,
        "package_size": row.package_size,
        "wac": row.wac,
        "awp": row.awp,
        "dea_schedule": row.dea_schedule,
        "return_window_days": row.return_window_days,
        "credit_percentage": row.credit_percentage,
        "destruction_required": row.destruction_required,
        "requires_dea_form": row.requires_dea_form,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def to_terms(row: Product) -> ProductTerms:
    return ProductTerms(
        ndc=row.ndc,
        product_name=row.product_name,
        manufacturer=row.manufacturer,
        wac=row.wac,
        dea_schedule=row.dea_schedule,
        return_window_days=row.return_window_days,
        credit_percentage=row.credit_percentage,
        destruction_required=row.destruction_required,
        requires_dea_form=row.requires_dea_form,
    )


def find_by_ndc(ndc: str) -> Product | None:
    with get_session() as session:
        return session.scalars(select(Product).where(Product.ndc == format_ndc(ndc))).first()


def terms_for(ndcs: Iterable[str]) -> dict[str, ProductTerms]:
    """Product terms keyed by digit-only NDC, for the NDCs that exist."""
    formatted = {format_ndc(n) for n in ndcs if n}
    if not formatted:
        return {}
    with get_session() as session:
        rows = session.scalars(select(Product).where(Product.ndc.in_(formatted))).all()
        return {normalize_ndc(r.ndc): to_terms(r) for r in rows}


def search(term: str, limit: int = 20) -> list[dict[str, Any]]:
    pattern = f"%{term.strip()}%"
    with get_session() as session:
        q = (
            select(Product)
            .where(
                or_(
                    Product.ndc.ilike(pattern),
                    Product.product_name.ilike(pattern),
                    Product.generic_name.ilike(pattern),
                    Product.manufacturer.ilike(pattern),
                )
            )
            .order_by(Product.product_name)
            .limit(limit)
        )
        return [to_dict(r) for r in session.scalars(q).all()]


def upsert(data: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """Create or update a product by NDC. Returns (product, created)."""
    raw_ndc = (data.get("ndc") or "").strip()
    if not raw_ndc:
        raise ValidationError("NDC is required")
    ndc = format_ndc(raw_ndc)
    with get_session() as session:
        row = session.scalars(select(Product).where(Product.ndc == ndc)).first()
        created = row is None
        if created:
            if not data.get("product_name"):
                raise ValidationError("product_name is required for a new product")
            row = Product(ndc=ndc, product_name=data["product_name"])
            session.add(row)
        for key in _UPDATABLE:
            if key in data and data[key] is not None:
                setattr(row, key, data[key])
        session.flush()
        return to_dict(row), created

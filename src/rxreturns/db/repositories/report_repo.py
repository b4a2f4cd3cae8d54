"""Return report repository: append-only price records and catalog loading."""

from datetime import date
from typing import Any, Iterable

from sqlalchemy import select

from rxreturns.db import get_session
from rxreturns.db.models.master import ReverseDistributor
from rxreturns.db.models.reports import ReturnReportRecord
from rxreturns.engine.ndc import format_ndc, normalize_ndc
from rxreturns.engine.pricing import PriceCatalog, PriceRecord
from rxreturns.errors import NotFoundError


def load_catalog(ndcs: Iterable[str] | None = None, active_only: bool = True) -> PriceCatalog:
    """Build a PriceCatalog from stored reports, optionally restricted to some NDCs.

    Inactive distributors are left out so they are never recommended.
    """
    with get_session() as session:
        q = select(ReturnReportRecord).join(
            ReverseDistributor, ReverseDistributor.id == ReturnReportRecord.distributor_id
        )
        if active_only:
            q = q.where(ReverseDistributor.is_active == True)  # noqa: E712
        if ndcs is not None:
            keys = {normalize_ndc(n) for n in ndcs if normalize_ndc(n)}
            if not keys:
                return PriceCatalog()
            q = q.where(ReturnReportRecord.ndc.in_(keys))
        rows = session.scalars(q).all()
        return PriceCatalog(
            PriceRecord(
                distributor_id=r.distributor_id,
                ndc=r.ndc,
                unit_type=r.unit_type,
                price_per_unit=r.price_per_unit,
                report_date=r.report_date,
                record_id=r.id,
            )
            for r in rows
        )


def append_records(distributor_id: str, report_date: date, records: list[dict[str, Any]]) -> int:
    """Append validated price rows for one distributor report. All-or-nothing."""
    with get_session() as session:
        if session.get(ReverseDistributor, distributor_id) is None:
            raise NotFoundError("Distributor not found")
        for rec in records:
            session.add(
                ReturnReportRecord(
                    distributor_id=distributor_id,
                    ndc=normalize_ndc(rec["ndc"]),
                    unit_type=rec["unit_type"],
                    price_per_unit=rec["price_per_unit"],
                    quantity=rec.get("quantity"),
                    credit_amount=rec.get("credit_amount"),
                    report_date=report_date,
                )
            )
        return len(records)


def list_records(
    ndc: str | None = None,
    distributor_id: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[dict[str, Any]]:
    with get_session() as session:
        q = select(ReturnReportRecord).order_by(
            ReturnReportRecord.report_date.desc(), ReturnReportRecord.id.desc()
        )
        if ndc:
            q = q.where(ReturnReportRecord.ndc == normalize_ndc(ndc))
        if distributor_id:
            q = q.where(ReturnReportRecord.distributor_id == distributor_id)
        rows = session.scalars(q.limit(limit).offset(offset)).all()
        return [
            {
                "id": r.id,
                "distributorId": r.distributor_id,
                "ndc": format_ndc(r.ndc),
                "unitType": r.unit_type,
                "pricePerUnit": r.price_per_unit,
                "quantity": r.quantity,
                "creditAmount": r.credit_amount,
                "reportDate": r.report_date.isoformat(),
            }
            for r in rows
        ]

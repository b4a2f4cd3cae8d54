"""Admin operations: distributor price report ingestion."""

from typing import Any

from rxreturns.db.repositories import report_repo
from rxreturns.engine.ndc import normalize_ndc
from rxreturns.errors import ValidationError
from rxreturns.models.admin import ReportRecordInput, ReturnReportCreate
from rxreturns.utils.logger import get_logger

logger = get_logger("rxreturns.services.admin")


def _unit_type(record: ReportRecordInput) -> str:
    if record.unit_type:
        return record.unit_type
    full = record.full or 0
    partial = record.partial or 0
    if full > 0 and partial == 0:
        return "full"
    if partial > 0 and full == 0:
        return "partial"
    raise ValidationError(
        f"NDC {record.ndc}: unitType is required unless exactly one of full or partial is greater than 0"
    )


def _price(record: ReportRecordInput) -> float:
    """pricePerUnit, or creditAmount divided by the returned quantity."""
    if record.price_per_unit is not None:
        price = record.price_per_unit
    else:
        quantity = record.quantity or record.full or record.partial or 0
        if record.credit_amount is None or quantity <= 0:
            raise ValidationError(
                f"NDC {record.ndc}: pricePerUnit or creditAmount with a quantity is required"
            )
        price = record.credit_amount / quantity
    if price <= 0:
        raise ValidationError(f"NDC {record.ndc}: price per unit must be greater than 0")
    return price


def ingest_report(request: ReturnReportCreate) -> dict[str, Any]:
    if not request.records:
        raise ValidationError("Records array is required")
    rows = []
    for record in request.records:
        if not normalize_ndc(record.ndc):
            raise ValidationError("NDC is required for every record")
        rows.append(
            {
                "ndc": record.ndc,
                "unit_type": _unit_type(record),
                "price_per_unit": _price(record),
                "quantity": record.quantity or record.full or record.partial,
                "credit_amount": record.credit_amount,
            }
        )
    count = report_repo.append_records(request.distributor_id, request.report_date, rows)
    logger.info(
        "admin.return_report.ingested",
        distributor_id=request.distributor_id,
        report_date=request.report_date.isoformat(),
        records=count,
    )
    return {
        "distributorId": request.distributor_id,
        "reportDate": request.report_date.isoformat(),
        "recordsCreated": count,
    }

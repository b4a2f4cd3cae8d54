"""Custom package creation from suggestion output."""

from typing import Any, Sequence

from rxreturns.db.repositories import distributor_repo, package_repo
from rxreturns.engine.credits import resolve_fee_rate
from rxreturns.engine.scoring import RequestedItem, validate_items
from rxreturns.errors import ValidationError
from rxreturns.models.inputs import CreatePackageRequest, PackageItemInput
from rxreturns.utils.logger import get_logger
from rxreturns.utils.tracing import get_tracer

logger = get_logger("rxreturns.services.packages")


def item_rows(items: Sequence[PackageItemInput]) -> list[dict[str, Any]]:
    """Validate package lines and convert them to repository dicts."""
    validate_items([RequestedItem(ndc=i.ndc, full=i.full, partial=i.partial) for i in items])
    rows = []
    for i in items:
        if i.price_per_unit < 0 or (i.total_value is not None and i.total_value < 0):
            raise ValidationError(f"NDC {i.ndc}: prices must not be negative")
        rows.append(
            {
                "ndc": i.ndc.strip(),
                "product_id": i.product_id,
                "product_name": i.product_name,
                "full": i.full,
                "partial": i.partial,
                "price_per_unit": i.price_per_unit,
                "total_value": i.total_value,
            }
        )
    return rows


def create_package(pharmacy_id: str, request: CreatePackageRequest) -> dict[str, Any]:
    """Persist a suggested package. The fee rate comes from the distributor's tier when only a duration is given."""
    with get_tracer().start_as_current_span("packages.create"):
        rows = item_rows(request.items)
        distributor = distributor_repo.get(request.distributor_id)

        fee_rate = request.fee_rate
        if fee_rate is not None and not 0 <= fee_rate <= 100:
            raise ValidationError("feeRate must be between 0 and 100")
        if fee_rate is None and request.fee_duration is not None:
            fee_rate = resolve_fee_rate(distributor.fee_rates, request.fee_duration)
            if fee_rate is None:
                raise ValidationError(
                    f"No fee rate in effect for {request.fee_duration} days at {distributor.name}"
                )

        return package_repo.create_package(
            pharmacy_id,
            distributor,
            rows,
            notes=request.notes,
            fee_rate=fee_rate,
            fee_duration=request.fee_duration,
        )

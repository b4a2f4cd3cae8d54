"""Batch credit estimation against the product catalog."""

from datetime import datetime
from typing import Any, Sequence

from rxreturns.config import FeeSchedule, default_fee_schedule
from rxreturns.db.repositories import product_repo
from rxreturns.engine.credits import EstimateLine, estimate_item, summarize
from rxreturns.engine.ndc import normalize_ndc
from rxreturns.errors import ValidationError
from rxreturns.models.inputs import CreditEstimateItem
from rxreturns.utils.logger import get_logger
from rxreturns.utils.tracing import get_tracer

logger = get_logger("rxreturns.services.credits")


def estimate_credits(
    items: Sequence[CreditEstimateItem],
    schedule: FeeSchedule | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    if not items:
        raise ValidationError("Items array is required")
    for item in items:
        if item.quantity <= 0:
            raise ValidationError(f"NDC {item.ndc}: quantity must be greater than 0")

    with get_tracer().start_as_current_span("credits.estimate") as span:
        span.set_attribute("rxreturns.items", len(items))
        terms = product_repo.terms_for([i.ndc for i in items])
        estimates = [
            estimate_item(
                EstimateLine(
                    ndc=i.ndc,
                    quantity=i.quantity,
                    expiration_date=i.expiration_date,
                    lot_number=i.lot_number,
                    condition=i.condition,
                ),
                terms.get(normalize_ndc(i.ndc)),
                now,
            )
            for i in items
        ]
        summary = summarize(estimates, schedule or default_fee_schedule())
        logger.info(
            "credits.estimate.done",
            items=summary["totalItems"],
            eligible=summary["eligibleItems"],
            total=round(summary["totalEstimatedCredit"], 2),
        )
        return {"items": estimates, "summary": summary}

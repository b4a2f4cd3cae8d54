"""Credit estimation route."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from rxreturns.api.deps import current_pharmacy_id
from rxreturns.api.responses import ok
from rxreturns.models.inputs import CreditEstimateRequest
from rxreturns.services.credits import estimate_credits

router = APIRouter(prefix="/api/credits", tags=["credits"])


@router.post("/estimate")
def estimate(
    body: CreditEstimateRequest,
    request: Request,
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(estimate_credits(body.items, schedule=request.app.state.fee_schedule))

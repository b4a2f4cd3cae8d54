"""Optimization routes: recommendations, suggestions and package suggestions."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from rxreturns.api.deps import current_pharmacy_id
from rxreturns.api.responses import ok
from rxreturns.models.inputs import DistributorSuggestionRequest, SuggestionsRequest
from rxreturns.services import optimization

router = APIRouter(prefix="/api/optimization", tags=["optimization"])


@router.get("/recommendations")
def recommendations(
    ndc: Optional[str] = Query(None, description="Comma-separated NDCs; defaults to the pharmacy's inventory"),
    full_count: Optional[str] = Query(None, alias="FullCount", description="Comma-separated full counts"),
    partial_count: Optional[str] = Query(None, alias="PartialCount", description="Comma-separated partial counts"),
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(optimization.get_recommendations(pharmacy_id, ndc, full_count, partial_count))


@router.post("/suggestions")
def suggestions(
    body: SuggestionsRequest,
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(optimization.get_suggestions(pharmacy_id, body.items))


@router.post("/packages/suggestions")
def package_suggestions(
    body: SuggestionsRequest,
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(optimization.get_package_suggestions(pharmacy_id, body.items))


@router.post("/packages/distributor-suggestion")
def distributor_package_suggestion(
    body: DistributorSuggestionRequest,
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(optimization.get_distributor_package_suggestion(pharmacy_id, body.distributor_id, body.items))

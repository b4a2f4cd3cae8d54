"""Product catalog routes."""

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from rxreturns.api.deps import current_pharmacy_id
from rxreturns.api.responses import ok
from rxreturns.db.repositories import product_repo
from rxreturns.engine.ndc import format_ndc, is_valid_ndc_format
from rxreturns.models.inputs import ProductUpsert

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("/validate")
def validate_ndc(
    ndc: str = Query(..., min_length=1),
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    formatted = format_ndc(ndc)
    product = product_repo.find_by_ndc(ndc)
    return ok(
        {
            "ndc": formatted,
            "valid": is_valid_ndc_format(formatted),
            "found": product is not None,
            "product": product_repo.to_dict(product) if product is not None else None,
        }
    )


@router.get("/search")
def search_products(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(product_repo.search(q, limit=limit))


@router.post("")
def upsert_product(body: ProductUpsert, pharmacy_id: str = Depends(current_pharmacy_id)) -> JSONResponse:
    product, created = product_repo.upsert(body.model_dump(exclude_unset=True))
    return JSONResponse(status_code=201 if created else 200, content=ok(product))

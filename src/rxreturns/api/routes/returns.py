"""Returns routes."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from rxreturns.api.deps import current_pharmacy_id
from rxreturns.api.responses import ok
from rxreturns.db.repositories import return_repo
from rxreturns.models.inputs import ReturnCreate, ReturnUpdate

router = APIRouter(prefix="/api/returns", tags=["returns"])


@router.get("")
def list_returns(
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(return_repo.list_returns(pharmacy_id, status=status, limit=limit, offset=offset))


@router.post("", status_code=201)
def create_return(body: ReturnCreate, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    items = [i.model_dump() for i in body.items]
    return ok(return_repo.create_return(pharmacy_id, items, notes=body.notes))


@router.get("/{return_id}")
def get_return(return_id: str, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    return ok(return_repo.get_return(pharmacy_id, return_id))


@router.put("/{return_id}")
def update_return(
    return_id: str, body: ReturnUpdate, pharmacy_id: str = Depends(current_pharmacy_id)
) -> dict[str, Any]:
    return ok(return_repo.update_return(pharmacy_id, return_id, body.model_dump(exclude_unset=True)))


@router.delete("/{return_id}")
def delete_return(return_id: str, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    return_repo.delete_return(pharmacy_id, return_id)
    return ok(None, message="Return deleted successfully")

"""Inventory routes."""

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query

from rxreturns.api.deps import current_pharmacy_id
from rxreturns.api.responses import ok
from rxreturns.db.repositories import inventory_repo
from rxreturns.models.inputs import InventoryCreate, InventoryUpdate

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("")
def list_inventory(
    status: Optional[Literal["active", "expiring_soon", "expired"]] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(inventory_repo.list_items(pharmacy_id, status=status, search=search, limit=limit, offset=offset))


@router.get("/metrics")
def inventory_metrics(pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    return ok(inventory_repo.metrics(pharmacy_id))


@router.post("", status_code=201)
def create_item(body: InventoryCreate, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    return ok(inventory_repo.create_item(pharmacy_id, body.model_dump()))


@router.get("/{item_id}")
def get_item(item_id: str, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    return ok(inventory_repo.get_item(pharmacy_id, item_id))


@router.put("/{item_id}")
def update_item(
    item_id: str, body: InventoryUpdate, pharmacy_id: str = Depends(current_pharmacy_id)
) -> dict[str, Any]:
    return ok(inventory_repo.update_item(pharmacy_id, item_id, body.model_dump(exclude_unset=True)))


@router.delete("/{item_id}")
def delete_item(item_id: str, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    inventory_repo.delete_item(pharmacy_id, item_id)
    return ok(None, message="Inventory item deleted successfully")

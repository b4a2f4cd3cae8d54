"""Custom package routes."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from rxreturns.api.deps import current_pharmacy_id
from rxreturns.api.responses import ok
from rxreturns.db.repositories import package_repo
from rxreturns.models.inputs import AddPackageItemsRequest, CreatePackageRequest, DeliveryInfo
from rxreturns.services import packages as package_service

router = APIRouter(prefix="/api/optimization/custom-packages", tags=["custom-packages"])


@router.post("", status_code=201)
def create_package(
    body: CreatePackageRequest,
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(package_service.create_package(pharmacy_id, body), message="Package created successfully")


@router.get("")
def list_packages(
    delivered: Optional[bool] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    return ok(package_repo.list_packages(pharmacy_id, delivered=delivered, limit=limit, offset=offset))


@router.get("/{package_id}")
def get_package(package_id: str, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    return ok(package_repo.get_package(pharmacy_id, package_id))


@router.put("/{package_id}/status")
def update_status(
    package_id: str,
    body: Optional[DeliveryInfo] = Body(None),
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    delivery = body.model_dump() if body is not None else None
    return ok(package_repo.toggle_delivered(pharmacy_id, package_id, delivery))


@router.patch("/{package_id}/items")
def add_items(
    package_id: str,
    body: AddPackageItemsRequest,
    pharmacy_id: str = Depends(current_pharmacy_id),
) -> dict[str, Any]:
    rows = package_service.item_rows(body.items) if body.items else []
    return ok(package_repo.add_items(pharmacy_id, package_id, rows))


@router.delete("/{package_id}")
def delete_package(package_id: str, pharmacy_id: str = Depends(current_pharmacy_id)) -> dict[str, Any]:
    package_repo.delete_package(pharmacy_id, package_id)
    return ok(None, message="Package deleted successfully")

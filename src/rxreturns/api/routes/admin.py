"""Admin routes: distributors, return reports and pharmacy status."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from rxreturns.api.deps import require_admin
from rxreturns.api.responses import ok
from rxreturns.db.repositories import distributor_repo, pharmacy_repo, report_repo
from rxreturns.models.admin import (
    DistributorCreate,
    DistributorUpdate,
    PharmacyCreate,
    PharmacyStatusUpdate,
    ReturnReportCreate,
)
from rxreturns.services import admin as admin_service

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/distributors")
def list_distributors(active_only: bool = Query(False, alias="activeOnly")) -> dict[str, Any]:
    return ok(distributor_repo.list_distributors(active_only=active_only))


@router.post("/distributors", status_code=201)
def create_distributor(body: DistributorCreate) -> dict[str, Any]:
    return ok(distributor_repo.create(body.to_fields()))


@router.get("/distributors/{distributor_id}")
def get_distributor(distributor_id: str) -> dict[str, Any]:
    return ok(distributor_repo.to_dict(distributor_repo.get(distributor_id)))


@router.put("/distributors/{distributor_id}")
def update_distributor(distributor_id: str, body: DistributorUpdate) -> dict[str, Any]:
    return ok(distributor_repo.update(distributor_id, body.to_fields()))


@router.post("/return-reports", status_code=201)
def create_return_report(body: ReturnReportCreate) -> dict[str, Any]:
    return ok(admin_service.ingest_report(body))


@router.get("/return-reports")
def list_return_reports(
    ndc: Optional[str] = Query(None),
    distributor_id: Optional[str] = Query(None, alias="distributorId"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> dict[str, Any]:
    return ok(report_repo.list_records(ndc=ndc, distributor_id=distributor_id, limit=limit, offset=offset))


@router.post("/pharmacies", status_code=201)
def create_pharmacy(body: PharmacyCreate) -> dict[str, Any]:
    return ok(
        pharmacy_repo.create(
            name=body.name,
            email=body.email,
            phone=body.phone,
            npi_number=body.npi_number,
            dea_number=body.dea_number,
            status=body.status,
            pharmacy_id=body.id,
        )
    )


@router.put("/pharmacies/{pharmacy_id}/status")
def update_pharmacy_status(pharmacy_id: str, body: PharmacyStatusUpdate) -> dict[str, Any]:
    return ok(pharmacy_repo.update_status(pharmacy_id, body.status))

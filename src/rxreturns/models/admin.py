"""Request bodies for the admin API."""

from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

_CONFIG = {"populate_by_name": True, "extra": "ignore"}


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    country: Optional[str] = None

    model_config = _CONFIG


class FeeTier(BaseModel):
    percentage: float = Field(..., ge=0, le=100)
    effective_date: Optional[date] = Field(None, alias="effectiveDate")

    model_config = _CONFIG


class DistributorCreate(BaseModel):
    name: str
    code: Optional[str] = None
    contact_email: Optional[str] = Field(None, alias="contactEmail")
    contact_phone: Optional[str] = Field(None, alias="contactPhone")
    address: Optional[Address] = None
    portal_url: Optional[str] = Field(None, alias="portalUrl")
    supported_formats: Optional[list[str]] = Field(None, alias="supportedFormats")
    fee_rates: Optional[dict[str, FeeTier]] = Field(None, alias="feeRates")
    is_active: Optional[bool] = Field(None, alias="isActive")

    model_config = _CONFIG

    def to_fields(self) -> dict[str, Any]:
        """Repository field map (camelCase keys, JSON-ready values)."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class DistributorUpdate(DistributorCreate):
    name: Optional[str] = None


class ReportRecordInput(BaseModel):
    """One price line. Either ``unitType`` or a full/partial count marks the unit type."""

    ndc: str
    unit_type: Optional[Literal["full", "partial"]] = Field(None, alias="unitType")
    full: Optional[int] = None
    partial: Optional[int] = None
    price_per_unit: Optional[float] = Field(None, alias="pricePerUnit")
    credit_amount: Optional[float] = Field(None, alias="creditAmount")
    quantity: Optional[int] = None

    model_config = _CONFIG


class ReturnReportCreate(BaseModel):
    distributor_id: str = Field(..., alias="distributorId")
    report_date: date = Field(..., alias="reportDate")
    records: list[ReportRecordInput] = Field(default_factory=list)

    model_config = _CONFIG


class PharmacyCreate(BaseModel):
    id: Optional[str] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    npi_number: Optional[str] = Field(None, alias="npiNumber")
    dea_number: Optional[str] = Field(None, alias="deaNumber")
    status: Literal["active", "pending", "suspended", "blacklisted"] = "active"

    model_config = _CONFIG


class PharmacyStatusUpdate(BaseModel):
    status: Literal["active", "pending", "suspended", "blacklisted"]

    model_config = _CONFIG

"""Request bodies for the pharmacy-facing API.

Optimization and package payloads use camelCase on the wire; inventory,
returns and credit payloads use snake_case. Every model also accepts its
Python field names.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

_CONFIG = {"populate_by_name": True, "extra": "ignore"}


class OptimizationItem(BaseModel):
    """One NDC with full/partial unit counts."""

    ndc: str
    product: Optional[str] = None
    product_id: Optional[str] = Field(None, alias="productId")
    product_name: Optional[str] = Field(None, alias="productName")
    full: int = 0
    partial: int = 0

    model_config = _CONFIG


class SuggestionsRequest(BaseModel):
    items: list[OptimizationItem] = Field(default_factory=list)

    model_config = _CONFIG


class DistributorSuggestionRequest(BaseModel):
    distributor_id: str = Field(..., alias="distributorId")
    items: list[OptimizationItem] = Field(default_factory=list)

    model_config = _CONFIG


class PackageItemInput(BaseModel):
    ndc: str
    product_id: Optional[str] = Field(None, alias="productId")
    product_name: Optional[str] = Field(None, alias="productName")
    full: int = 0
    partial: int = 0
    price_per_unit: float = Field(0.0, alias="pricePerUnit")
    total_value: Optional[float] = Field(None, alias="totalValue")

    model_config = _CONFIG


class CreatePackageRequest(BaseModel):
    distributor_id: str = Field(..., alias="distributorId")
    distributor_name: Optional[str] = Field(None, alias="distributorName")
    items: list[PackageItemInput] = Field(default_factory=list)
    notes: Optional[str] = None
    fee_rate: Optional[float] = Field(None, alias="feeRate")
    fee_duration: Optional[int] = Field(None, alias="feeDuration")

    model_config = _CONFIG


class AddPackageItemsRequest(BaseModel):
    items: list[PackageItemInput] = Field(default_factory=list)

    model_config = _CONFIG


class DeliveryInfo(BaseModel):
    delivery_date: Optional[str] = Field(None, alias="deliveryDate")
    received_by: Optional[str] = Field(None, alias="receivedBy")
    delivery_condition: Optional[Literal["good", "damaged", "partial", "missing_items", "other"]] = Field(
        None, alias="deliveryCondition"
    )
    delivery_notes: Optional[str] = Field(None, alias="deliveryNotes")
    tracking_number: Optional[str] = Field(None, alias="trackingNumber")
    carrier: Optional[Literal["UPS", "FedEx", "USPS", "DHL", "Other"]] = None

    model_config = _CONFIG


class CreditEstimateItem(BaseModel):
    ndc: str
    quantity: int
    expiration_date: date
    lot_number: Optional[str] = None
    condition: Optional[Literal["UNOPENED", "OPENED", "DAMAGED"]] = None

    model_config = _CONFIG


class CreditEstimateRequest(BaseModel):
    items: list[CreditEstimateItem] = Field(default_factory=list)

    model_config = _CONFIG


class InventoryCreate(BaseModel):
    ndc: str
    product_name: str
    lot_number: Optional[str] = None
    expiration_date: date
    quantity: int = 0
    unit: Optional[str] = None
    location: Optional[str] = None

    model_config = _CONFIG


class InventoryUpdate(BaseModel):
    ndc: Optional[str] = None
    product_name: Optional[str] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None
    quantity: Optional[int] = None
    unit: Optional[str] = None
    location: Optional[str] = None

    model_config = _CONFIG


class ReturnItemInput(BaseModel):
    inventory_item_id: Optional[str] = None
    ndc: str
    product_name: str
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None
    quantity: int = Field(..., gt=0)
    unit: Optional[str] = None
    reason: Optional[str] = None
    estimated_credit: float = 0.0

    model_config = _CONFIG


class ReturnCreate(BaseModel):
    items: list[ReturnItemInput] = Field(default_factory=list)
    notes: Optional[str] = None

    model_config = _CONFIG


class ReturnUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None
    shipment_id: Optional[str] = None

    model_config = _CONFIG


class ProductUpsert(BaseModel):
    ndc: str
    product_name: Optional[str] = None
    generic_name: Optional[str] = None
    manufacturer: Optional[str] = None
    strength: Optional[str] = None
    dosage_form: Optional[str] = None
    package_size: Optional[int] = None
    wac: Optional[float] = None
    awp: Optional[float] = None
    dea_schedule: Optional[str] = None
    return_window_days: Optional[int] = None
    credit_percentage: Optional[float] = None
    destruction_required: Optional[bool] = None
    requires_dea_form: Optional[bool] = None

    model_config = _CONFIG

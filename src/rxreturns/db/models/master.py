"""ORM models for master/reference data: Pharmacy, Product, ReverseDistributor."""

from typing import Any

from sqlalchemy import JSON, Boolean, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rxreturns.db.base import Base, TimestampMixin, new_id

PHARMACY_STATUSES = ("active", "pending", "suspended", "blacklisted")


class Pharmacy(Base, TimestampMixin):
    """Tenant. Only ``active`` pharmacies may call the API."""

    __tablename__ = "pharmacies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    npi_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    dea_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")


class Product(Base, TimestampMixin):
    """Product catalog entry keyed by formatted NDC (XXXXX-XXXX-XX)."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    ndc: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    product_name: Mapped[str] = mapped_column(String(256), nullable=False)
    generic_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    manufacturer: Mapped[str | None] = mapped_column(String(256), nullable=True)
    strength: Mapped[str | None] = mapped_column(String(128), nullable=True)
    dosage_form: Mapped[str | None] = mapped_column(String(128), nullable=True)
    package_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    wac: Mapped[float | None] = mapped_column(Float, nullable=True)
    awp: Mapped[float | None] = mapped_column(Float, nullable=True)
    dea_schedule: Mapped[str | None] = mapped_column(String(8), nullable=True)
    return_window_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    credit_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    destruction_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    requires_dea_form: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ReverseDistributor(Base, TimestampMixin):
    """Reverse distributor that buys back returned product.

    ``fee_rates`` maps a duration in days to ``{"percentage", "effectiveDate"}``.
    """

    __tablename__ = "reverse_distributors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    portal_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    supported_formats: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    fee_rates: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

"""ORM models for custom packages built from distributor suggestions."""

from datetime import date

from sqlalchemy import Boolean, Date, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rxreturns.db.base import Base, TimestampMixin, new_id

DELIVERY_CONDITIONS = ("good", "damaged", "partial", "missing_items", "other")
CARRIERS = ("UPS", "FedEx", "USPS", "DHL", "Other")


class CustomPackage(Base, TimestampMixin):
    """A pharmacy's shipment to one distributor.

    At most one non-delivered package may exist per (pharmacy, distributor).
    """

    __tablename__ = "custom_packages"
    __table_args__ = (
        Index(
            "uq_custom_packages_open_per_distributor",
            "pharmacy_id",
            "distributor_id",
            unique=True,
            sqlite_where=text("delivered = 0"),
            postgresql_where=text("delivered = false"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    package_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    pharmacy_id: Mapped[str] = mapped_column(ForeignKey("pharmacies.id"), nullable=False, index=True)
    distributor_id: Mapped[str] = mapped_column(ForeignKey("reverse_distributors.id"), nullable=False)
    distributor_name: Mapped[str] = mapped_column(String(256), nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_estimated_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    fee_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    fee_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fee_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    net_estimated_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    received_by: Mapped[str | None] = mapped_column(String(256), nullable=True)
    delivery_condition: Mapped[str | None] = mapped_column(String(32), nullable=True)
    delivery_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    carrier: Mapped[str | None] = mapped_column(String(32), nullable=True)

    items: Mapped[list["CustomPackageItem"]] = relationship(
        "CustomPackageItem",
        back_populates="package",
        cascade="all, delete-orphan",
    )


class CustomPackageItem(Base, TimestampMixin):
    __tablename__ = "custom_package_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    package_id: Mapped[str] = mapped_column(
        ForeignKey("custom_packages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ndc: Mapped[str] = mapped_column(String(32), nullable=False)
    product_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    product_name: Mapped[str] = mapped_column(String(256), nullable=False)
    full: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    partial: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_per_unit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    package: Mapped[CustomPackage] = relationship("CustomPackage", back_populates="items")

"""ORM models for returns and their line items."""

from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rxreturns.db.base import Base, TimestampMixin, new_id

RETURN_STATUSES = ("draft", "ready_to_ship", "in_transit", "processing", "completed", "cancelled")


class Return(Base, TimestampMixin):
    __tablename__ = "returns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    pharmacy_id: Mapped[str] = mapped_column(ForeignKey("pharmacies.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft")
    total_estimated_credit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    shipment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["ReturnItem"]] = relationship(
        "ReturnItem",
        back_populates="parent",
        cascade="all, delete-orphan",
    )


class ReturnItem(Base, TimestampMixin):
    __tablename__ = "return_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    return_id: Mapped[str] = mapped_column(
        ForeignKey("returns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    ndc: Mapped[str] = mapped_column(String(32), nullable=False)
    product_name: Mapped[str] = mapped_column(String(256), nullable=False)
    lot_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    estimated_credit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    parent: Mapped[Return] = relationship("Return", back_populates="items")

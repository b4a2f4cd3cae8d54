"""ORM model for pharmacy inventory items."""

from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rxreturns.db.base import Base, TimestampMixin, new_id

INVENTORY_STATUSES = ("active", "expiring_soon", "expired")


class InventoryItem(Base, TimestampMixin):
    """A lot of a product held by a pharmacy. ``status`` is derived from expiration."""

    __tablename__ = "inventory_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    pharmacy_id: Mapped[str] = mapped_column(ForeignKey("pharmacies.id"), nullable=False, index=True)
    ndc: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(256), nullable=False)
    lot_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")

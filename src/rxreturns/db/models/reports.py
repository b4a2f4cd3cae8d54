"""Append-only distributor price reports (one row per NDC/unit type/report)."""

from datetime import date, datetime

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rxreturns.db.base import Base, utcnow

UNIT_TYPES = ("full", "partial")


class ReturnReportRecord(Base):
    """Price a distributor paid per unit for an NDC on a report date.

    ``ndc`` holds the digit-only key; ``id`` preserves insertion order and
    breaks ties between records with the same report date.
    """

    __tablename__ = "return_report_records"
    __table_args__ = (Index("ix_report_ndc_distributor", "ndc", "distributor_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    distributor_id: Mapped[str] = mapped_column(
        ForeignKey("reverse_distributors.id"), nullable=False, index=True
    )
    ndc: Mapped[str] = mapped_column(String(32), nullable=False)
    unit_type: Mapped[str] = mapped_column(String(16), nullable=False)
    price_per_unit: Mapped[float] = mapped_column(Float, nullable=False)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    credit_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

"""Price catalog lookup and distributor eligibility.

A ``PriceCatalog`` is an in-memory index over distributor return reports.
For every (NDC, distributor, unit type) it keeps only the most recent
record: greatest ``report_date``, ties broken by greatest ``record_id``.
Prices are never averaged across reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from rxreturns.engine.ndc import normalize_ndc

FULL = "full"
PARTIAL = "partial"


@dataclass(frozen=True)
class PriceRecord:
    distributor_id: str
    ndc: str
    unit_type: str
    price_per_unit: float
    report_date: date
    record_id: int = 0

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.report_date, self.record_id)


@dataclass(frozen=True)
class UnitPrices:
    full: float | None = None
    partial: float | None = None

    @property
    def has_any(self) -> bool:
        return self.full is not None or self.partial is not None


@dataclass
class Eligibility:
    """Distributors accepting every priced NDC, plus the NDCs nobody accepts."""

    distributor_ids: list[str] = field(default_factory=list)
    ndcs_without_distributors: list[str] = field(default_factory=list)


class PriceCatalog:
    """Latest-price index keyed by digit-only NDC."""

    def __init__(self, records: Iterable[PriceRecord] = ()):
        self._latest: dict[tuple[str, str, str], PriceRecord] = {}
        self._by_ndc: dict[str, set[str]] = {}
        for record in records:
            self.add(record)

    def add(self, record: PriceRecord) -> None:
        if record.price_per_unit is None or record.price_per_unit <= 0:
            return
        if record.unit_type not in (FULL, PARTIAL):
            return
        key = normalize_ndc(record.ndc)
        if not key:
            return
        slot = (key, record.distributor_id, record.unit_type)
        current = self._latest.get(slot)
        if current is None or record.sort_key >= current.sort_key:
            self._latest[slot] = record
        self._by_ndc.setdefault(key, set()).add(record.distributor_id)

    def __len__(self) -> int:
        return len(self._latest)

    def latest_price(self, ndc: str, distributor_id: str, unit_type: str) -> float | None:
        record = self._latest.get((normalize_ndc(ndc), distributor_id, unit_type))
        return record.price_per_unit if record is not None else None

    def latest_record(self, ndc: str, distributor_id: str, unit_type: str) -> PriceRecord | None:
        return self._latest.get((normalize_ndc(ndc), distributor_id, unit_type))

    def prices_for(self, ndc: str, distributor_id: str) -> UnitPrices:
        return UnitPrices(
            full=self.latest_price(ndc, distributor_id, FULL),
            partial=self.latest_price(ndc, distributor_id, PARTIAL),
        )

    def eligible_distributors(self, ndc: str) -> set[str]:
        """Distributors with at least one price (any unit type) for the NDC."""
        return set(self._by_ndc.get(normalize_ndc(ndc), ()))

    def eligible_for_all(self, ndcs: Iterable[str]) -> Eligibility:
        """Intersect eligibility over the NDCs that have any distributor at all.

        NDCs nobody accepts are reported separately and do not empty the
        intersection for the rest.
        """
        result = Eligibility()
        common: set[str] | None = None
        seen: set[str] = set()
        for ndc in ndcs:
            key = normalize_ndc(ndc)
            if key in seen:
                continue
            seen.add(key)
            eligible = self.eligible_distributors(key)
            if not eligible:
                result.ndcs_without_distributors.append(ndc)
                continue
            common = eligible if common is None else common & eligible
        result.distributor_ids = sorted(common or ())
        return result

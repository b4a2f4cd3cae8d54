"""Group requested items into one suggested package per distributor."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from rxreturns.engine.pricing import PriceCatalog
from rxreturns.engine.scoring import ItemLine, RequestedItem, item_line

NO_DISTRIBUTOR_REASON = "No distributor found offering returns for this NDC"


@dataclass
class PackageSuggestion:
    distributor_id: str
    lines: list[ItemLine] = field(default_factory=list)
    already_created: bool = False
    existing_package: dict[str, Any] | None = None

    @property
    def total_items(self) -> int:
        return sum(line.full + line.partial for line in self.lines)

    @property
    def total_estimated_value(self) -> float:
        return sum(line.value for line in self.lines)

    @property
    def average_price_per_unit(self) -> float:
        count = self.total_items
        return self.total_estimated_value / count if count else 0.0


@dataclass
class GroupingResult:
    packages: list[PackageSuggestion]
    ndcs_without_distributors: list[RequestedItem]

    @property
    def total_estimated_value(self) -> float:
        return sum(p.total_estimated_value for p in self.packages)


def best_line(item: RequestedItem, catalog: PriceCatalog) -> tuple[str, ItemLine] | None:
    """Best priced distributor for one item, or None when nobody pays for it."""
    best: tuple[str, ItemLine] | None = None
    for distributor_id in sorted(catalog.eligible_distributors(item.key)):
        line = item_line(item, distributor_id, catalog)
        if line.value <= 0:
            continue
        if best is None or line.value > best[1].value:
            best = (distributor_id, line)
    return best


def group_into_packages(items: Sequence[RequestedItem], catalog: PriceCatalog) -> GroupingResult:
    by_distributor: dict[str, PackageSuggestion] = {}
    missing: list[RequestedItem] = []
    for item in items:
        found = best_line(item, catalog)
        if found is None:
            missing.append(item)
            continue
        distributor_id, line = found
        package = by_distributor.setdefault(distributor_id, PackageSuggestion(distributor_id))
        package.lines.append(line)

    packages = sorted(
        by_distributor.values(),
        key=lambda p: (-p.total_estimated_value, p.distributor_id),
    )
    return GroupingResult(packages=packages, ndcs_without_distributors=missing)


def package_for_distributor(
    items: Sequence[RequestedItem], distributor_id: str, catalog: PriceCatalog
) -> GroupingResult:
    """Single-distributor mode: every item the distributor prices goes into one package."""
    package = PackageSuggestion(distributor_id)
    missing: list[RequestedItem] = []
    for item in items:
        line = item_line(item, distributor_id, catalog)
        if line.value <= 0:
            missing.append(item)
            continue
        package.lines.append(line)
    packages = [package] if package.lines else []
    return GroupingResult(packages=packages, ndcs_without_distributors=missing)


def mark_existing(
    packages: Sequence[PackageSuggestion], existing: Mapping[str, dict[str, Any]]
) -> None:
    """Flag suggestions whose distributor already has an open package for the pharmacy."""
    for package in packages:
        info = existing.get(package.distributor_id)
        package.already_created = info is not None
        package.existing_package = info


def generate_package_number(now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"PKG-{now_ms}-{random.randint(0, 9999):04d}"

"""Distributor scoring: value a basket of items at each distributor and rank them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from rxreturns.engine.ndc import normalize_ndc
from rxreturns.engine.pricing import PriceCatalog
from rxreturns.errors import ValidationError


@dataclass
class RequestedItem:
    """One NDC with the number of full and partial units to return.

    With ``per_unit`` set the counts are ignored and the item is valued at a
    single unit: the full price when the distributor has one, else the
    partial price.
    """

    ndc: str
    full: int = 0
    partial: int = 0
    product_name: str | None = None
    product_id: str | None = None
    per_unit: bool = False

    @property
    def key(self) -> str:
        return normalize_ndc(self.ndc)

    @property
    def unit_count(self) -> int:
        return self.full + self.partial


@dataclass
class ItemLine:
    ndc: str
    product_name: str | None
    product_id: str | None
    full: int
    partial: int
    full_price: float | None
    partial_price: float | None
    value: float

    def to_dict(self) -> dict:
        return {
            "ndc": self.ndc,
            "productId": self.product_id,
            "productName": self.product_name,
            "full": self.full,
            "partial": self.partial,
            "fullPricePerUnit": self.full_price,
            "partialPricePerUnit": self.partial_price,
            "totalValue": round(self.value, 2),
        }


@dataclass
class DistributorScore:
    distributor_id: str
    lines: list[ItemLine] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(line.value for line in self.lines)


@dataclass
class Alternative:
    score: DistributorScore
    difference: float


def validate_items(items: Sequence[RequestedItem]) -> None:
    if not items:
        raise ValidationError("Items array is required and must not be empty")
    for item in items:
        if not (item.ndc or "").strip() or not item.key:
            raise ValidationError("NDC is required for every item")
        if item.full < 0 or item.partial < 0:
            raise ValidationError(f"NDC {item.ndc}: full and partial must not be negative")
        if not item.per_unit and item.full == 0 and item.partial == 0:
            raise ValidationError(
                f"NDC {item.ndc}: At least one of full or partial must be greater than 0"
            )


def item_line(item: RequestedItem, distributor_id: str, catalog: PriceCatalog) -> ItemLine:
    """Value one item at one distributor; a missing unit price contributes 0."""
    prices = catalog.prices_for(item.key, distributor_id)
    if item.per_unit:
        value = prices.full if prices.full is not None else (prices.partial or 0.0)
    else:
        value = item.full * (prices.full or 0.0) + item.partial * (prices.partial or 0.0)
    return ItemLine(
        ndc=item.ndc,
        product_name=item.product_name,
        product_id=item.product_id,
        full=item.full,
        partial=item.partial,
        full_price=prices.full,
        partial_price=prices.partial,
        value=value,
    )


def score_single(
    items: Iterable[RequestedItem], distributor_id: str, catalog: PriceCatalog
) -> DistributorScore:
    return DistributorScore(
        distributor_id=distributor_id,
        lines=[item_line(item, distributor_id, catalog) for item in items],
    )


def score_distributors(
    items: Sequence[RequestedItem], distributor_ids: Iterable[str], catalog: PriceCatalog
) -> list[DistributorScore]:
    return [score_single(items, distributor_id, catalog) for distributor_id in distributor_ids]


def rank_scores(scores: Iterable[DistributorScore]) -> list[DistributorScore]:
    """Highest total first; equal totals ordered by distributor id ascending."""
    return sorted(scores, key=lambda s: (-s.total, s.distributor_id))


def build_alternatives(
    recommended: DistributorScore, others: Iterable[DistributorScore]
) -> list[Alternative]:
    return [Alternative(score=o, difference=o.total - recommended.total) for o in others]


@dataclass
class NdcRecommendation:
    item: RequestedItem
    recommended: ItemLine
    recommended_distributor_id: str
    alternatives: list[tuple[str, ItemLine, float]]
    savings: float


@dataclass
class EarningsComparison:
    single_distributor_id: str | None
    single_distributor_total: float
    multiple_distributor_total: float

    @property
    def potential_additional_earnings(self) -> float:
        return self.multiple_distributor_total - self.single_distributor_total


@dataclass
class PerNdcResult:
    recommendations: list[NdcRecommendation]
    ndcs_without_distributors: list[RequestedItem]
    comparison: EarningsComparison

    @property
    def total_potential_savings(self) -> float:
        return sum(r.savings for r in self.recommendations)


def recommend_per_ndc(items: Sequence[RequestedItem], catalog: PriceCatalog) -> PerNdcResult:
    """Pick the best distributor independently for every NDC.

    Also compares sending everything to one distributor against splitting
    the basket across the per-NDC winners.
    """
    recommendations: list[NdcRecommendation] = []
    missing: list[RequestedItem] = []
    # per NDC: distributor -> value, used by the single-distributor strategy
    value_maps: list[tuple[dict[str, float], float]] = []

    for item in items:
        eligible = catalog.eligible_distributors(item.key)
        if not eligible:
            missing.append(item)
            continue
        lines = {d: item_line(item, d, catalog) for d in eligible}
        ranked = sorted(lines, key=lambda d: (-lines[d].value, d))
        best_id = ranked[0]
        best = lines[best_id]
        worst_value = min(line.value for line in lines.values())
        recommendations.append(
            NdcRecommendation(
                item=item,
                recommended=best,
                recommended_distributor_id=best_id,
                alternatives=[(d, lines[d], lines[d].value - best.value) for d in ranked[1:]],
                savings=best.value - worst_value,
            )
        )
        value_maps.append(({d: line.value for d, line in lines.items()}, worst_value))

    multiple_total = sum(r.recommended.value for r in recommendations)
    candidates = sorted({d for values, _ in value_maps for d in values})
    single_id: str | None = None
    single_total = 0.0
    for distributor_id in candidates:
        total = sum(values.get(distributor_id, worst) for values, worst in value_maps)
        if single_id is None or total > single_total:
            single_id, single_total = distributor_id, total

    return PerNdcResult(
        recommendations=recommendations,
        ndcs_without_distributors=missing,
        comparison=EarningsComparison(
            single_distributor_id=single_id,
            single_distributor_total=single_total,
            multiple_distributor_total=multiple_total,
        ),
    )

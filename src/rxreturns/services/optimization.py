"""Distributor recommendations, suggestions and package suggestions.

Each entry point loads a price catalog for just the requested NDCs, runs
the pure engine over it and shapes the JSON the API returns.
"""

from datetime import datetime, timezone
from typing import Any, Sequence

from rxreturns.config import COMMISSION_RATE
from rxreturns.db.models.master import ReverseDistributor
from rxreturns.db.repositories import distributor_repo, inventory_repo, package_repo, product_repo, report_repo
from rxreturns.engine.credits import calculate_commission, fee_options
from rxreturns.engine.ndc import normalize_ndc
from rxreturns.engine.packaging import (
    NO_DISTRIBUTOR_REASON,
    GroupingResult,
    group_into_packages,
    mark_existing,
    package_for_distributor,
)
from rxreturns.engine.scoring import (
    ItemLine,
    RequestedItem,
    build_alternatives,
    rank_scores,
    recommend_per_ndc,
    score_distributors,
    validate_items,
)
from rxreturns.errors import ValidationError
from rxreturns.models.inputs import OptimizationItem
from rxreturns.utils.logger import get_logger
from rxreturns.utils.tracing import get_tracer

logger = get_logger("rxreturns.services.optimization")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _money(value: float) -> float:
    return round(value, 2)


def _name(distributors: dict[str, ReverseDistributor], distributor_id: str | None) -> str | None:
    row = distributors.get(distributor_id) if distributor_id else None
    return row.name if row is not None else None


def _missing_entry(item: RequestedItem) -> dict[str, Any]:
    return {
        "ndc": item.ndc,
        "productName": item.product_name or f"Product {item.ndc}",
        "reason": NO_DISTRIBUTOR_REASON,
    }


def to_requested(items: Sequence[OptimizationItem]) -> list[RequestedItem]:
    return [
        RequestedItem(
            ndc=i.ndc.strip(),
            full=i.full,
            partial=i.partial,
            product_name=i.product_name or i.product,
            product_id=i.product_id,
        )
        for i in items
    ]


def _parse_csv(value: str | None) -> list[str]:
    if value is None:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_counts(value: str | None, label: str, expected: int) -> list[int] | None:
    parts = _parse_csv(value)
    if not parts:
        return None
    if len(parts) != expected:
        raise ValidationError(f"{label} array length ({len(parts)}) must match NDC array length ({expected})")
    try:
        return [int(p) for p in parts]
    except ValueError as e:
        raise ValidationError(f"{label} must be a comma-separated list of integers") from e


def _requested_from_query(
    pharmacy_id: str, ndc: str | None, full_count: str | None, partial_count: str | None
) -> list[RequestedItem]:
    ndcs = _parse_csv(ndc)
    if not ndcs:
        # no explicit NDCs: use everything on the pharmacy's shelves
        return [
            RequestedItem(
                ndc=inv["ndc"],
                full=max(inv["quantity"], 0),
                product_name=inv["product_name"],
                per_unit=inv["quantity"] <= 0,
            )
            for inv in inventory_repo.items_by_ndc(pharmacy_id).values()
        ]

    fulls = _parse_counts(full_count, "FullCount", len(ndcs))
    partials = _parse_counts(partial_count, "PartialCount", len(ndcs))
    per_unit = fulls is None and partials is None
    terms = product_repo.terms_for(ndcs)
    items = []
    for idx, code in enumerate(ndcs):
        product = terms.get(normalize_ndc(code))
        items.append(
            RequestedItem(
                ndc=code,
                full=fulls[idx] if fulls else 0,
                partial=partials[idx] if partials else 0,
                product_name=product.product_name if product else None,
                per_unit=per_unit,
            )
        )
    return items


def _distributor_price(
    distributor_id: str,
    line: ItemLine,
    distributors: dict[str, ReverseDistributor],
    difference: float | None = None,
) -> dict[str, Any]:
    out = {
        "id": distributor_id,
        "name": _name(distributors, distributor_id),
        "totalValue": _money(line.value),
        "fullPricePerUnit": line.full_price,
        "partialPricePerUnit": line.partial_price,
    }
    if difference is not None:
        out["difference"] = _money(difference)
    return out


def get_recommendations(
    pharmacy_id: str,
    ndc: str | None = None,
    full_count: str | None = None,
    partial_count: str | None = None,
) -> dict[str, Any]:
    """Best distributor per NDC, with alternatives and the single- vs multi-distributor comparison."""
    with get_tracer().start_as_current_span("optimization.recommendations") as span:
        items = _requested_from_query(pharmacy_id, ndc, full_count, partial_count)
        span.set_attribute("rxreturns.items", len(items))
        if items:
            validate_items(items)
        catalog = report_repo.load_catalog([i.ndc for i in items])
        result = recommend_per_ndc(items, catalog)

        ids = {r.recommended_distributor_id for r in result.recommendations}
        ids.update(d for r in result.recommendations for d, _, _ in r.alternatives)
        if result.comparison.single_distributor_id:
            ids.add(result.comparison.single_distributor_id)
        distributors = distributor_repo.get_many(ids)

        recommendations = []
        for rec in result.recommendations:
            recommendations.append(
                {
                    "ndc": rec.item.ndc,
                    "productName": rec.item.product_name or f"Product {rec.item.ndc}",
                    "full": rec.item.full,
                    "partial": rec.item.partial,
                    "recommendedDistributor": _distributor_price(
                        rec.recommended_distributor_id, rec.recommended, distributors
                    ),
                    "alternativeDistributors": [
                        _distributor_price(d, line, distributors, diff) for d, line, diff in rec.alternatives
                    ],
                    "savings": _money(rec.savings),
                }
            )

        comparison = result.comparison
        logger.info(
            "optimization.recommendations.done",
            pharmacy_id=pharmacy_id,
            ndcs=len(items),
            recommended=len(recommendations),
            without_distributors=len(result.ndcs_without_distributors),
        )
        return {
            "recommendations": recommendations,
            "ndcsWithoutDistributors": [_missing_entry(i) for i in result.ndcs_without_distributors],
            "totalPotentialSavings": _money(result.total_potential_savings),
            "earningsComparison": {
                "singleDistributorStrategy": {
                    "distributorId": comparison.single_distributor_id,
                    "distributorName": _name(distributors, comparison.single_distributor_id),
                    "totalEarnings": _money(comparison.single_distributor_total),
                },
                "multipleDistributorStrategy": {
                    "totalEarnings": _money(comparison.multiple_distributor_total),
                    "distributorsUsed": len({r.recommended_distributor_id for r in result.recommendations}),
                },
                "potentialAdditionalEarnings": _money(comparison.potential_additional_earnings),
            },
            "generatedAt": _now_iso(),
        }


def _require_inventory(pharmacy_id: str, items: Sequence[RequestedItem]) -> None:
    inventory = inventory_repo.items_by_ndc(pharmacy_id)
    for item in items:
        held = inventory.get(item.key)
        if held is None:
            raise ValidationError(
                f"You don't have this product in your inventory. NDC: {item.ndc}, Product: {item.product_name or 'Unknown'}"
            )
        if not item.product_name:
            item.product_name = held["product_name"]


def get_suggestions(pharmacy_id: str, raw_items: Sequence[OptimizationItem]) -> dict[str, Any]:
    """Distributors that accept every priced NDC in the basket, best total first."""
    with get_tracer().start_as_current_span("optimization.suggestions") as span:
        items = to_requested(raw_items)
        validate_items(items)
        _require_inventory(pharmacy_id, items)
        span.set_attribute("rxreturns.items", len(items))

        catalog = report_repo.load_catalog([i.ndc for i in items])
        eligibility = catalog.eligible_for_all([i.ndc for i in items])
        missing_keys = {normalize_ndc(n) for n in eligibility.ndcs_without_distributors}
        priced = [i for i in items if i.key not in missing_keys]
        missing = [i for i in items if i.key in missing_keys]

        ranked = rank_scores(score_distributors(priced, eligibility.distributor_ids, catalog))
        distributors = distributor_repo.get_many(eligibility.distributor_ids)

        entries = []
        if ranked:
            recommended = ranked[0]
            differences = {alt.score.distributor_id: alt.difference for alt in build_alternatives(recommended, ranked[1:])}
            for score in ranked:
                entries.append(
                    {
                        "id": score.distributor_id,
                        "name": _name(distributors, score.distributor_id),
                        "ndcs": [line.to_dict() for line in score.lines],
                        "totalItems": sum(line.full + line.partial for line in score.lines),
                        "totalEstimatedValue": _money(score.total),
                        "recommended": score is recommended,
                        "difference": _money(differences.get(score.distributor_id, 0.0)),
                    }
                )

        logger.info(
            "optimization.suggestions.done",
            pharmacy_id=pharmacy_id,
            items=len(items),
            distributors=len(entries),
            without_distributors=len(missing),
        )
        return {
            "distributors": entries,
            "ndcsWithoutDistributors": [_missing_entry(i) for i in missing],
            "totalItems": len(items),
            "totalDistributors": len(entries),
            "totalEstimatedValue": _money(ranked[0].total) if ranked else 0.0,
            "generatedAt": _now_iso(),
        }


def _shape_packages(
    pharmacy_id: str, result: GroupingResult, items: Sequence[RequestedItem]
) -> dict[str, Any]:
    ids = [p.distributor_id for p in result.packages]
    mark_existing(result.packages, package_repo.open_packages_by_distributor(pharmacy_id, ids))
    distributors = distributor_repo.get_many(ids)

    packages = []
    for package in result.packages:
        distributor = distributors.get(package.distributor_id)
        total = package.total_estimated_value
        packages.append(
            {
                "distributorId": package.distributor_id,
                "distributorName": distributor.name if distributor else None,
                "distributorContact": distributor_repo.contact_for(distributor) if distributor else None,
                "products": [line.to_dict() for line in package.lines],
                "totalItems": package.total_items,
                "totalEstimatedValue": _money(total),
                "averagePricePerUnit": _money(package.average_price_per_unit),
                "alreadyCreated": package.already_created,
                "existingPackage": package.existing_package,
                "commission": calculate_commission(total, COMMISSION_RATE),
                "feeOptions": fee_options(total, distributor.fee_rates if distributor else None),
            }
        )

    return {
        "packages": packages,
        "ndcsWithoutDistributors": [_missing_entry(i) for i in result.ndcs_without_distributors],
        "totalProducts": len(items),
        "totalPackages": len(packages),
        "totalEstimatedValue": _money(result.total_estimated_value),
        "summary": {
            "productsWithPricing": len(items) - len(result.ndcs_without_distributors),
            "productsWithoutPricing": len(result.ndcs_without_distributors),
            "distributorsUsed": len(packages),
            "packagesAlreadyCreated": sum(1 for p in result.packages if p.already_created),
        },
        "generatedAt": _now_iso(),
    }


def get_package_suggestions(pharmacy_id: str, raw_items: Sequence[OptimizationItem]) -> dict[str, Any]:
    """One suggested package per distributor, each item going to its best-paying distributor.

    Read-only: packages that already exist are flagged, never created.
    """
    with get_tracer().start_as_current_span("optimization.package_suggestions") as span:
        items = to_requested(raw_items)
        validate_items(items)
        span.set_attribute("rxreturns.items", len(items))
        catalog = report_repo.load_catalog([i.ndc for i in items])
        out = _shape_packages(pharmacy_id, group_into_packages(items, catalog), items)
        logger.info(
            "optimization.package_suggestions.done",
            pharmacy_id=pharmacy_id,
            items=len(items),
            packages=out["totalPackages"],
            already_created=out["summary"]["packagesAlreadyCreated"],
        )
        return out


def get_distributor_package_suggestion(
    pharmacy_id: str, distributor_id: str, raw_items: Sequence[OptimizationItem]
) -> dict[str, Any]:
    """Package suggestion for one chosen distributor, priced without maximisation."""
    with get_tracer().start_as_current_span("optimization.distributor_suggestion") as span:
        distributor = distributor_repo.get(distributor_id)
        if not distributor.is_active:
            raise ValidationError(f"Distributor is not active: {distributor.name}")
        items = to_requested(raw_items)
        validate_items(items)
        span.set_attribute("rxreturns.items", len(items))
        span.set_attribute("rxreturns.distributor_id", distributor_id)
        catalog = report_repo.load_catalog([i.ndc for i in items])
        out = _shape_packages(pharmacy_id, package_for_distributor(items, distributor_id, catalog), items)
        logger.info(
            "optimization.distributor_suggestion.done",
            pharmacy_id=pharmacy_id,
            distributor_id=distributor_id,
            items=len(items),
        )
        return out

"""Credit, fee and commission calculations.

All functions here are pure: callers pass the product terms, the fee
schedule and the current time explicitly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Mapping, Sequence

from rxreturns.config import DEFAULT_RETURN_WINDOW_DAYS, EXPIRING_SOON_DAYS, FeeSchedule

CONDITION_MULTIPLIERS = {"UNOPENED": 1.0, "OPENED": 0.7, "DAMAGED": 0.3}

# (max days to expiration, share of the base credit percentage)
EXPIRATION_BANDS = ((30, 0.25), (90, 0.50), (180, 0.85))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def days_to_expiration(expiration: date | datetime, now: datetime | None = None) -> int:
    """Whole days until expiration, rounded up. Negative once expired.

    A bare date expires at midnight UTC at the start of that day.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if not isinstance(expiration, datetime):
        expiration = datetime(expiration.year, expiration.month, expiration.day, tzinfo=timezone.utc)
    if expiration.tzinfo is None:
        expiration = expiration.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.ceil((expiration - now).total_seconds() / 86400)


def credit_percentage(
    days: int,
    return_window: int = DEFAULT_RETURN_WINDOW_DAYS,
    base_percentage: float = 100.0,
    condition: str | None = None,
) -> int:
    """Credit percentage for an item ``days`` away from expiration.

    0 outside [0, return_window]. Inside it, the base percentage is scaled by
    the expiration band and the condition multiplier, then rounded.
    """
    if days < 0 or days > return_window:
        return 0
    percentage = base_percentage
    for limit, share in EXPIRATION_BANDS:
        if days <= limit:
            percentage = base_percentage * share
            break
    multiplier = CONDITION_MULTIPLIERS.get((condition or "UNOPENED").upper(), 1.0)
    return _round_half_up(percentage * multiplier)


@dataclass(frozen=True)
class ProductTerms:
    """The product fields the estimator needs."""

    ndc: str
    product_name: str | None = None
    manufacturer: str | None = None
    wac: float | None = None
    dea_schedule: str | None = None
    return_window_days: int | None = None
    credit_percentage: float | None = None
    destruction_required: bool = False
    requires_dea_form: bool = False


@dataclass(frozen=True)
class EstimateLine:
    ndc: str
    quantity: int
    expiration_date: date
    lot_number: str | None = None
    condition: str | None = None


def estimate_item(line: EstimateLine, product: ProductTerms | None, now: datetime | None = None) -> dict[str, Any]:
    if product is None:
        return {
            "ndc": line.ndc,
            "quantity": line.quantity,
            "credit_percentage": 0,
            "estimated_credit": 0.0,
            "eligible": False,
        }

    days = days_to_expiration(line.expiration_date, now)
    return_window = product.return_window_days or DEFAULT_RETURN_WINDOW_DAYS
    percentage = credit_percentage(days, return_window, product.credit_percentage or 0.0, line.condition)
    unit_price = product.wac or 0.0

    if days < 0:
        warning = "Product has expired"
    elif days < return_window:
        warning = f"Expires in {days} days (within return window)"
    else:
        warning = None

    return {
        "ndc": line.ndc,
        "product_name": product.product_name,
        "manufacturer": product.manufacturer,
        "quantity": line.quantity,
        "unit_price": unit_price,
        "credit_percentage": percentage,
        "estimated_credit": unit_price * line.quantity * (percentage / 100),
        "eligible": 0 <= days <= return_window,
        "expiration_warning": warning,
        "requires_dea_form": product.dea_schedule == "CII" or bool(product.requires_dea_form),
        "dea_schedule": product.dea_schedule,
        "destruction_required": bool(product.destruction_required),
        "return_window": return_window,
        "days_to_expiration": days,
    }


def service_fee(total_credit: float, schedule: FeeSchedule) -> float:
    fee = total_credit * (schedule.service_fee_percent / 100)
    return min(max(fee, schedule.service_fee_min), schedule.service_fee_max)


def transportation_fee(item_count: int, schedule: FeeSchedule) -> float:
    return schedule.transport_fee_base + item_count * schedule.transport_fee_per_item


def summarize(estimates: Sequence[dict[str, Any]], schedule: FeeSchedule) -> dict[str, Any]:
    """Batch summary. Fees are charged once per batch, not per item."""
    eligible = [e for e in estimates if e["eligible"]]
    total = sum(e["estimated_credit"] for e in eligible)
    fees = service_fee(total, schedule)
    transport = transportation_fee(len(estimates), schedule)
    return {
        "totalItems": len(estimates),
        "eligibleItems": len(eligible),
        "ineligibleItems": len(estimates) - len(eligible),
        "totalEstimatedCredit": total,
        "serviceFees": fees,
        "transportationFees": transport,
        "netCredit": total - fees - transport,
    }


def calculate_commission(
    gross: float,
    rate: float = 5.0,
    minimum: float | None = None,
    maximum: float | None = None,
) -> dict[str, float]:
    amount = gross * rate / 100
    if minimum is not None:
        amount = max(amount, minimum)
    if maximum is not None:
        amount = min(amount, maximum)
    amount = round(amount, 2)
    return {"rate": rate, "amount": amount, "netAmount": round(gross - amount, 2)}


def _parse_effective(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _active_tiers(fee_rates: Mapping[str, Any] | None, today: date) -> list[tuple[int, float, date | None]]:
    tiers: list[tuple[int, float, date | None]] = []
    for duration, tier in (fee_rates or {}).items():
        try:
            days = int(duration)
            percentage = float((tier or {}).get("percentage"))
        except (TypeError, ValueError):
            continue
        effective = _parse_effective((tier or {}).get("effectiveDate"))
        if effective is not None and effective > today:
            continue
        tiers.append((days, percentage, effective))
    return sorted(tiers, key=lambda t: t[0])


def resolve_fee_rate(
    fee_rates: Mapping[str, Any] | None, duration: int, today: date | None = None
) -> float | None:
    """Fee percentage of the tier for ``duration`` days, if that tier is in effect."""
    for days, percentage, _ in _active_tiers(fee_rates, today or date.today()):
        if days == duration:
            return percentage
    return None


def fee_options(
    total: float, fee_rates: Mapping[str, Any] | None, today: date | None = None
) -> list[dict[str, Any]]:
    options = []
    for days, percentage, effective in _active_tiers(fee_rates, today or date.today()):
        fee = round(total * percentage / 100, 2)
        options.append(
            {
                "durationDays": days,
                "percentage": percentage,
                "effectiveDate": effective.isoformat() if effective else None,
                "feeAmount": fee,
                "netEstimatedValue": round(total - fee, 2),
            }
        )
    return options


def inventory_status(days: int, expiring_soon_days: int = EXPIRING_SOON_DAYS) -> str:
    if days < 0:
        return "expired"
    if days <= expiring_soon_days:
        return "expiring_soon"
    return "active"

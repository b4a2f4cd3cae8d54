"""Tests for credit percentages, per-item estimates, batch fees, commission and fee tiers."""

import unittest
from datetime import date, datetime, timedelta, timezone

import support  # noqa: F401

from rxreturns.config import FeeSchedule
from rxreturns.engine.credits import (
    EstimateLine,
    ProductTerms,
    calculate_commission,
    credit_percentage,
    days_to_expiration,
    estimate_item,
    fee_options,
    inventory_status,
    resolve_fee_rate,
    service_fee,
    summarize,
    transportation_fee,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _expiring_in(days: int) -> date:
    # midnight UTC of the target day is (days - 0.5) days after NOW, which rounds up to ``days``
    return (NOW + timedelta(days=days)).date()


class TestDaysToExpiration(unittest.TestCase):
    def test_rounds_up(self):
        self.assertEqual(days_to_expiration(_expiring_in(45), NOW), 45)

    def test_negative_once_expired(self):
        self.assertLess(days_to_expiration(_expiring_in(-3), NOW), 0)

    def test_naive_datetimes_are_utc(self):
        self.assertEqual(days_to_expiration(datetime(2025, 6, 3, 12, 0), datetime(2025, 6, 1, 12, 0)), 2)


class TestCreditPercentage(unittest.TestCase):
    def test_bands(self):
        self.assertEqual(credit_percentage(10, 365, 100), 25)
        self.assertEqual(credit_percentage(30, 365, 100), 25)
        self.assertEqual(credit_percentage(31, 365, 100), 50)
        self.assertEqual(credit_percentage(90, 365, 100), 50)
        self.assertEqual(credit_percentage(180, 365, 100), 85)
        self.assertEqual(credit_percentage(181, 365, 100), 100)

    def test_zero_outside_window(self):
        self.assertEqual(credit_percentage(-1, 365, 100), 0)
        self.assertEqual(credit_percentage(366, 365, 100), 0)
        self.assertEqual(credit_percentage(0, 365, 100), 25)
        self.assertEqual(credit_percentage(365, 365, 100), 100)

    def test_condition_multipliers(self):
        self.assertEqual(credit_percentage(200, 365, 100, "UNOPENED"), 100)
        self.assertEqual(credit_percentage(200, 365, 100, "OPENED"), 70)
        self.assertEqual(credit_percentage(200, 365, 100, "damaged"), 30)
        self.assertEqual(credit_percentage(200, 365, 100, None), 100)

    def test_rounds_half_up(self):
        # 25% of 50 = 12.5
        self.assertEqual(credit_percentage(10, 365, 50), 13)

    def test_monotonic_across_bands(self):
        percentages = [credit_percentage(d, 365, 80) for d in (200, 150, 60, 20)]
        self.assertEqual(percentages, sorted(percentages, reverse=True))
        self.assertEqual(len(set(percentages)), 4)


class TestEstimateItem(unittest.TestCase):
    def setUp(self):
        self.product = ProductTerms(
            ndc="00093-7180-56",
            product_name="Atorvastatin 20mg",
            manufacturer="Teva",
            wac=5.0,
            return_window_days=365,
            credit_percentage=80,
        )

    def test_two_hundred_dollar_example(self):
        line = EstimateLine(ndc="00093-7180-56", quantity=100, expiration_date=_expiring_in(45), condition="UNOPENED")
        out = estimate_item(line, self.product, NOW)
        self.assertEqual(out["days_to_expiration"], 45)
        self.assertEqual(out["credit_percentage"], 40)
        self.assertAlmostEqual(out["estimated_credit"], 200.0)
        self.assertTrue(out["eligible"])
        self.assertEqual(out["unit_price"], 5.0)
        self.assertEqual(out["expiration_warning"], "Expires in 45 days (within return window)")
        self.assertFalse(out["requires_dea_form"])

    def test_credit_decreases_as_expiration_nears(self):
        credits = [
            estimate_item(EstimateLine("00093-7180-56", 10, _expiring_in(d)), self.product, NOW)["estimated_credit"]
            for d in (200, 120, 60, 10)
        ]
        for earlier, later in zip(credits, credits[1:]):
            self.assertGreater(earlier, later)

    def test_expired_item(self):
        out = estimate_item(EstimateLine("00093-7180-56", 10, _expiring_in(-5)), self.product, NOW)
        self.assertEqual(out["estimated_credit"], 0)
        self.assertFalse(out["eligible"])
        self.assertEqual(out["expiration_warning"], "Product has expired")

    def test_unknown_product_is_ineligible_zero_line(self):
        out = estimate_item(EstimateLine("99999-9999-99", 10, _expiring_in(100)), None, NOW)
        self.assertFalse(out["eligible"])
        self.assertEqual(out["estimated_credit"], 0.0)
        self.assertEqual(out["credit_percentage"], 0)

    def test_controlled_substance_needs_dea_form(self):
        product = ProductTerms(ndc="00406-0552-01", wac=2.0, dea_schedule="CII", credit_percentage=100)
        out = estimate_item(EstimateLine("00406-0552-01", 1, _expiring_in(300)), product, NOW)
        self.assertTrue(out["requires_dea_form"])
        self.assertEqual(out["dea_schedule"], "CII")
        self.assertEqual(out["return_window"], 365)


class TestBatchFees(unittest.TestCase):
    def setUp(self):
        self.schedule = FeeSchedule()

    def test_service_fee_is_clamped(self):
        self.assertEqual(service_fee(100.0, self.schedule), 25.0)
        self.assertAlmostEqual(service_fee(2000.0, self.schedule), 60.0)
        self.assertEqual(service_fee(100000.0, self.schedule), 500.0)

    def test_transportation_fee(self):
        self.assertEqual(transportation_fee(4, self.schedule), 17.0)

    def test_summary_charges_fees_once(self):
        estimates = [
            {"eligible": True, "estimated_credit": 200.0},
            {"eligible": True, "estimated_credit": 100.0},
            {"eligible": False, "estimated_credit": 0.0},
        ]
        summary = summarize(estimates, self.schedule)
        self.assertEqual(summary["totalItems"], 3)
        self.assertEqual(summary["eligibleItems"], 2)
        self.assertEqual(summary["ineligibleItems"], 1)
        self.assertAlmostEqual(summary["totalEstimatedCredit"], 300.0)
        self.assertAlmostEqual(summary["serviceFees"], 25.0)
        self.assertAlmostEqual(summary["transportationFees"], 16.5)
        self.assertAlmostEqual(summary["netCredit"], 258.5)


class TestCommissionAndFeeTiers(unittest.TestCase):
    FEE_RATES = {
        "30": {"percentage": 12, "effectiveDate": "2024-01-01"},
        "60": {"percentage": 9, "effectiveDate": None},
        "90": {"percentage": 6, "effectiveDate": "2099-01-01"},
        "bad": {"percentage": 1},
    }

    def test_commission(self):
        self.assertEqual(calculate_commission(200.0, 5), {"rate": 5, "amount": 10.0, "netAmount": 190.0})
        self.assertEqual(calculate_commission(10.0, 5, minimum=2)["amount"], 2)

    def test_future_tiers_are_not_in_effect(self):
        today = date(2025, 6, 1)
        self.assertEqual(resolve_fee_rate(self.FEE_RATES, 30, today), 12.0)
        self.assertEqual(resolve_fee_rate(self.FEE_RATES, 60, today), 9.0)
        self.assertIsNone(resolve_fee_rate(self.FEE_RATES, 90, today))
        self.assertIsNone(resolve_fee_rate(None, 30, today))

    def test_fee_options(self):
        options = fee_options(100.0, self.FEE_RATES, date(2025, 6, 1))
        self.assertEqual([o["durationDays"] for o in options], [30, 60])
        self.assertEqual(options[0]["feeAmount"], 12.0)
        self.assertEqual(options[0]["netEstimatedValue"], 88.0)
        self.assertEqual(options[0]["effectiveDate"], "2024-01-01")
        self.assertIsNone(options[1]["effectiveDate"])


class TestInventoryStatus(unittest.TestCase):
    def test_thresholds(self):
        self.assertEqual(inventory_status(-1), "expired")
        self.assertEqual(inventory_status(0), "expiring_soon")
        self.assertEqual(inventory_status(180), "expiring_soon")
        self.assertEqual(inventory_status(181), "active")


if __name__ == "__main__":
    unittest.main()

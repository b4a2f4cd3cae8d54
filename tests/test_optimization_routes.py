"""Tests for the optimization and custom-package API: suggestions, recommendations, package lifecycle."""

import unittest
from datetime import date, timedelta

from support import pharmacy_headers

from fastapi.testclient import TestClient

from rxreturns.api.app import create_app
from rxreturns.db import init_db
from rxreturns.db.repositories import distributor_repo, inventory_repo, pharmacy_repo, report_repo

PHARMACY = "ph-api-opt-0001"
NDC_BOTH = "00187-5115-60"
NDC_TEN_ONLY = "00187-5115-61"
NDC_UNPRICED = "00187-5115-62"


class TestOptimizationRoutes(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()
        pharmacy_repo.create(name="Opt Pharmacy", email="opt@example.com", pharmacy_id=PHARMACY)
        cls.ten = distributor_repo.create(
            {"name": "API Dist Ten", "feeRates": {"30": {"percentage": 10, "effectiveDate": None}}}
        )["id"]
        cls.twelve = distributor_repo.create({"name": "API Dist Twelve", "address": {"city": "Dayton", "state": "OH"}})["id"]
        cls.inactive = distributor_repo.create({"name": "API Dist Inactive", "isActive": False})["id"]
        report_repo.append_records(
            cls.ten,
            date(2025, 1, 10),
            [
                {"ndc": NDC_BOTH, "unit_type": "full", "price_per_unit": 10.0},
                {"ndc": NDC_TEN_ONLY, "unit_type": "full", "price_per_unit": 3.0},
            ],
        )
        report_repo.append_records(
            cls.twelve, date(2025, 1, 12), [{"ndc": NDC_BOTH, "unit_type": "full", "price_per_unit": 12.0}]
        )
        expires = date.today() + timedelta(days=300)
        for ndc, name in ((NDC_BOTH, "Both Drug"), (NDC_TEN_ONLY, "Ten Drug"), (NDC_UNPRICED, "Nobody Drug")):
            inventory_repo.create_item(
                PHARMACY, {"ndc": ndc, "product_name": name, "expiration_date": expires, "quantity": 2}
            )
        cls.client = TestClient(create_app())
        cls.headers = pharmacy_headers(PHARMACY)

    def _post(self, path, body):
        return self.client.post(path, json=body, headers=self.headers)

    def test_suggestions_ten_vs_twelve(self):
        r = self._post("/api/optimization/suggestions", {"items": [{"ndc": NDC_BOTH, "full": 2, "partial": 0}]})
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(data["totalDistributors"], 2)
        first, second = data["distributors"]
        self.assertEqual(first["name"], "API Dist Twelve")
        self.assertTrue(first["recommended"])
        self.assertEqual(first["totalEstimatedValue"], 24.0)
        self.assertEqual(first["difference"], 0.0)
        self.assertEqual(second["name"], "API Dist Ten")
        self.assertFalse(second["recommended"])
        self.assertEqual(second["difference"], -4.0)
        self.assertEqual(data["totalEstimatedValue"], 24.0)
        self.assertEqual(first["ndcs"][0]["fullPricePerUnit"], 12.0)
        self.assertEqual(first["ndcs"][0]["productName"], "Both Drug")

    def test_suggestions_intersect_priced_ndcs(self):
        r = self._post(
            "/api/optimization/suggestions",
            {"items": [{"ndc": NDC_BOTH, "full": 1}, {"ndc": NDC_TEN_ONLY, "full": 1}, {"ndc": NDC_UNPRICED, "full": 1}]},
        )
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual([d["name"] for d in data["distributors"]], ["API Dist Ten"])
        self.assertEqual([m["ndc"] for m in data["ndcsWithoutDistributors"]], [NDC_UNPRICED])
        self.assertEqual(data["totalItems"], 3)

    def test_suggestions_require_inventory(self):
        r = self._post("/api/optimization/suggestions", {"items": [{"ndc": "11111-2222-33", "full": 1}]})
        self.assertEqual(r.status_code, 400)
        body = r.json()
        self.assertEqual(body["status"], "fail")
        self.assertTrue(body["message"].startswith("You don't have this product in your inventory. NDC: 11111-2222-33"))

    def test_suggestions_validation(self):
        r = self._post("/api/optimization/suggestions", {"items": []})
        self.assertEqual(r.status_code, 400)
        r = self._post("/api/optimization/suggestions", {"items": [{"ndc": NDC_BOTH, "full": 0, "partial": 0}]})
        self.assertEqual(r.status_code, 400)
        self.assertIn("At least one of full or partial", r.json()["message"])

    def test_recommendations(self):
        r = self.client.get(
            "/api/optimization/recommendations",
            params={"ndc": f"{NDC_BOTH},{NDC_TEN_ONLY}", "FullCount": "2,1"},
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        recs = {rec["ndc"]: rec for rec in data["recommendations"]}
        both = recs[NDC_BOTH]
        self.assertEqual(both["recommendedDistributor"]["name"], "API Dist Twelve")
        self.assertEqual(both["recommendedDistributor"]["totalValue"], 24.0)
        self.assertEqual(both["alternativeDistributors"][0]["difference"], -4.0)
        self.assertEqual(both["savings"], 4.0)
        self.assertEqual(recs[NDC_TEN_ONLY]["recommendedDistributor"]["name"], "API Dist Ten")
        self.assertEqual(data["totalPotentialSavings"], 4.0)
        comparison = data["earningsComparison"]
        self.assertEqual(comparison["multipleDistributorStrategy"]["totalEarnings"], 27.0)
        self.assertEqual(comparison["multipleDistributorStrategy"]["distributorsUsed"], 2)

    def test_recommendations_count_length_mismatch(self):
        r = self.client.get(
            "/api/optimization/recommendations",
            params={"ndc": f"{NDC_BOTH},{NDC_TEN_ONLY}", "FullCount": "2"},
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["message"], "FullCount array length (1) must match NDC array length (2)")

    def test_recommendations_default_to_inventory(self):
        r = self.client.get("/api/optimization/recommendations", headers=self.headers)
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(len(data["recommendations"]), 2)
        self.assertEqual([m["ndc"] for m in data["ndcsWithoutDistributors"]], [NDC_UNPRICED])

    def test_distributor_suggestion_errors(self):
        items = [{"ndc": NDC_BOTH, "full": 1}]
        r = self._post("/api/optimization/packages/distributor-suggestion", {"distributorId": "missing", "items": items})
        self.assertEqual(r.status_code, 404)
        r = self._post("/api/optimization/packages/distributor-suggestion", {"distributorId": self.inactive, "items": items})
        self.assertEqual(r.status_code, 400)
        self.assertIn("not active", r.json()["message"])

    def test_distributor_suggestion(self):
        r = self._post(
            "/api/optimization/packages/distributor-suggestion",
            {"distributorId": self.ten, "items": [{"ndc": NDC_BOTH, "full": 2}, {"ndc": NDC_UNPRICED, "full": 1}]},
        )
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(data["totalPackages"], 1)
        package = data["packages"][0]
        self.assertEqual(package["distributorId"], self.ten)
        self.assertEqual(package["totalEstimatedValue"], 20.0)
        self.assertEqual(package["feeOptions"][0]["feeAmount"], 2.0)
        self.assertEqual(package["commission"]["amount"], 1.0)
        self.assertEqual(data["summary"]["productsWithoutPricing"], 1)

    def test_package_lifecycle(self):
        items = [
            {"ndc": NDC_BOTH, "productId": "prod-both", "productName": "Both Drug", "full": 2, "partial": 0},
            {"ndc": NDC_TEN_ONLY, "productName": "Ten Drug", "full": 1, "partial": 0},
            {"ndc": NDC_UNPRICED, "productName": "Nobody Drug", "full": 1, "partial": 0},
        ]
        first = self._post("/api/optimization/packages/suggestions", {"items": items}).json()["data"]
        second = self._post("/api/optimization/packages/suggestions", {"items": items}).json()["data"]
        self.assertEqual([p["distributorName"] for p in first["packages"]], ["API Dist Twelve", "API Dist Ten"])
        self.assertEqual(first["totalPackages"], 2)
        self.assertEqual(first["summary"]["productsWithoutPricing"], 1)
        self.assertEqual(first["ndcsWithoutDistributors"][0]["reason"], "No distributor found offering returns for this NDC")
        for data in (first, second):
            self.assertTrue(all(p["alreadyCreated"] is False for p in data["packages"]))
            self.assertEqual(data["summary"]["packagesAlreadyCreated"], 0)
        self.assertEqual(first["packages"][0]["distributorContact"]["location"], "Dayton, OH")

        suggestion = first["packages"][0]
        body = {
            "distributorId": suggestion["distributorId"],
            "distributorName": suggestion["distributorName"],
            "items": [
                {
                    "ndc": p["ndc"],
                    "productId": p["productId"],
                    "productName": p["productName"],
                    "full": p["full"],
                    "partial": p["partial"],
                    "pricePerUnit": p["fullPricePerUnit"],
                    "totalValue": p["totalValue"],
                }
                for p in suggestion["products"]
            ],
        }
        created = self._post("/api/optimization/custom-packages", body)
        self.assertEqual(created.status_code, 201)
        package = created.json()["data"]
        self.assertEqual(package["totalEstimatedValue"], 24.0)
        self.assertEqual(package["totalItems"], 2)

        third = self._post("/api/optimization/packages/suggestions", {"items": items}).json()["data"]
        flags = {p["distributorId"]: p for p in third["packages"]}
        self.assertTrue(flags[self.twelve]["alreadyCreated"])
        self.assertEqual(flags[self.twelve]["existingPackage"]["id"], package["id"])
        self.assertFalse(flags[self.ten]["alreadyCreated"])
        self.assertEqual(third["summary"]["packagesAlreadyCreated"], 1)

        duplicate = self._post("/api/optimization/custom-packages", body)
        self.assertEqual(duplicate.status_code, 409)

        url = f"/api/optimization/custom-packages/{package['id']}"
        missing_info = self.client.put(f"{url}/status", headers=self.headers)
        self.assertEqual(missing_info.status_code, 400)
        self.assertEqual(missing_info.json()["message"], "Delivery date is required")

        delivered = self.client.put(
            f"{url}/status",
            json={"deliveryDate": "2025-06-01", "receivedBy": "Pat", "carrier": "FedEx"},
            headers=self.headers,
        )
        self.assertEqual(delivered.status_code, 200)
        self.assertTrue(delivered.json()["data"]["delivered"])

        refused = self.client.delete(url, headers=self.headers)
        self.assertEqual(refused.status_code, 400)
        self.assertEqual(
            refused.json()["message"],
            "Cannot delete package with status: delivered. Only non-delivered packages can be deleted.",
        )

        listed = self.client.get("/api/optimization/custom-packages", params={"delivered": "true"}, headers=self.headers)
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(listed.json()["data"]["stats"]["deliveredPackages"], 1)

        # a newer open package for the same distributor blocks reopening
        newer = self._post("/api/optimization/custom-packages", body)
        self.assertEqual(newer.status_code, 201)
        blocked = self.client.put(f"{url}/status", headers=self.headers)
        self.assertEqual(blocked.status_code, 409)
        self.assertEqual(blocked.json()["status"], "fail")
        self.assertIn(newer.json()["data"]["packageNumber"], blocked.json()["message"])
        self.assertTrue(self.client.get(url, headers=self.headers).json()["data"]["delivered"])
        removed = self.client.delete(f"/api/optimization/custom-packages/{newer.json()['data']['id']}", headers=self.headers)
        self.assertEqual(removed.status_code, 200)

        reopened = self.client.put(f"{url}/status", headers=self.headers)
        self.assertFalse(reopened.json()["data"]["delivered"])
        self.assertIsNone(reopened.json()["data"]["deliveryInfo"])

        more = self.client.patch(
            f"{url}/items",
            json={"items": [{"ndc": NDC_BOTH, "productId": "prod-both", "full": 1, "pricePerUnit": 12.0}]},
            headers=self.headers,
        )
        self.assertEqual(more.status_code, 200)
        self.assertEqual(more.json()["data"]["totalEstimatedValue"], 36.0)

        deleted = self.client.delete(url, headers=self.headers)
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(self.client.get(url, headers=self.headers).status_code, 404)

    def test_create_package_with_fee_duration(self):
        body = {
            "distributorId": self.ten,
            "items": [{"ndc": NDC_TEN_ONLY, "productName": "Ten Drug", "full": 2, "pricePerUnit": 3.0}],
            "feeDuration": 30,
        }
        created = self._post("/api/optimization/custom-packages", body)
        self.assertEqual(created.status_code, 201)
        package = created.json()["data"]
        self.assertEqual(package["feeRate"], 10.0)
        self.assertEqual(package["feeAmount"], 0.6)
        self.assertEqual(package["netEstimatedValue"], 5.4)
        self.client.delete(f"/api/optimization/custom-packages/{package['id']}", headers=self.headers)

        body["feeDuration"] = 90
        r = self._post("/api/optimization/custom-packages", body)
        self.assertEqual(r.status_code, 400)
        self.assertIn("No fee rate in effect for 90 days", r.json()["message"])


if __name__ == "__main__":
    unittest.main()

"""Tests for auth, credits, inventory, returns, products and admin routes."""

import os
import unittest
from datetime import date, datetime, timedelta, timezone

from support import admin_headers, pharmacy_headers

import jwt
from fastapi.testclient import TestClient

from rxreturns.api.app import create_app
from rxreturns.db import init_db
from rxreturns.db.repositories import pharmacy_repo, product_repo

PHARMACY = "ph-api-main-0001"
SUSPENDED = "ph-api-susp-0001"
PENDING = "ph-api-pend-0001"
CREDIT_NDC = "00512-3300-10"


class TestAuth(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()
        pharmacy_repo.create(name="Auth Pharmacy", email="auth@example.com", pharmacy_id=PHARMACY)
        pharmacy_repo.create(name="Suspended Pharmacy", email="susp@example.com", status="suspended", pharmacy_id=SUSPENDED)
        pharmacy_repo.create(name="Pending Pharmacy", email="pend@example.com", status="pending", pharmacy_id=PENDING)
        cls.client = TestClient(create_app())

    def test_health_is_public(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"status": "ok"})
        self.assertIn("x-request-id", r.headers)

    def test_missing_token(self):
        r = self.client.get("/api/inventory")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"status": "fail", "message": "Authorization token is required"})

    def test_invalid_token(self):
        r = self.client.get("/api/inventory", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["message"], "Invalid or expired token")

    def test_unknown_pharmacy(self):
        r = self.client.get("/api/inventory", headers=pharmacy_headers("ph-does-not-exist"))
        self.assertEqual(r.status_code, 401)

    def test_blocked_pharmacies(self):
        r = self.client.get("/api/inventory", headers=pharmacy_headers(SUSPENDED))
        self.assertEqual(r.status_code, 403)
        self.assertIn("suspended", r.json()["message"])
        r = self.client.get("/api/inventory", headers=pharmacy_headers(PENDING))
        self.assertEqual(r.status_code, 403)
        self.assertIn("pending approval", r.json()["message"])

    def test_admin_routes_need_admin_token(self):
        r = self.client.get("/api/admin/distributors", headers=pharmacy_headers(PHARMACY))
        self.assertEqual(r.status_code, 401)
        self.assertEqual(self.client.get("/api/admin/distributors", headers=admin_headers()).status_code, 200)

        # signed with the admin secret but without the admin role
        claims = {"sub": "someone", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}
        token = jwt.encode(claims, os.environ["ADMIN_JWT_SECRET"], algorithm="HS256")
        r = self.client.get("/api/admin/distributors", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["message"], "Admin privileges required")

    def test_request_validation_is_400(self):
        r = self.client.post("/api/credits/estimate", json={"items": [{"ndc": "x"}]}, headers=pharmacy_headers(PHARMACY))
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["status"], "fail")


class TestCreditsAndProducts(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()
        pharmacy_repo.create(name="Credit Pharmacy", email="credit@example.com", pharmacy_id="ph-api-credit")
        product_repo.upsert(
            {"ndc": CREDIT_NDC, "product_name": "Credit Drug", "manufacturer": "Acme", "wac": 5.0, "credit_percentage": 80, "return_window_days": 365}
        )
        cls.client = TestClient(create_app())
        cls.headers = pharmacy_headers("ph-api-credit")

    def test_estimate(self):
        expires = (date.today() + timedelta(days=45)).isoformat()
        r = self.client.post(
            "/api/credits/estimate",
            json={
                "items": [
                    {"ndc": CREDIT_NDC, "quantity": 100, "expiration_date": expires, "lot_number": "L1", "condition": "UNOPENED"},
                    {"ndc": "00000-0000-01", "quantity": 3, "expiration_date": expires},
                ]
            },
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        known, unknown = data["items"]
        self.assertEqual(known["credit_percentage"], 40)
        self.assertAlmostEqual(known["estimated_credit"], 200.0)
        self.assertTrue(known["eligible"])
        self.assertEqual(known["manufacturer"], "Acme")
        self.assertFalse(unknown["eligible"])
        self.assertEqual(unknown["estimated_credit"], 0.0)
        summary = data["summary"]
        self.assertEqual(summary["totalItems"], 2)
        self.assertEqual(summary["eligibleItems"], 1)
        self.assertEqual(summary["serviceFees"], 25.0)
        self.assertEqual(summary["transportationFees"], 16.0)
        self.assertAlmostEqual(summary["netCredit"], 159.0)

    def test_estimate_requires_items(self):
        r = self.client.post("/api/credits/estimate", json={"items": []}, headers=self.headers)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["message"], "Items array is required")

    def test_validate_ndc(self):
        r = self.client.get("/api/products/validate", params={"ndc": "00512330010"}, headers=self.headers)
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(data["ndc"], CREDIT_NDC)
        self.assertTrue(data["valid"])
        self.assertTrue(data["found"])
        self.assertEqual(data["product"]["product_name"], "Credit Drug")

        r = self.client.get("/api/products/validate", params={"ndc": "12-34"}, headers=self.headers)
        self.assertFalse(r.json()["data"]["valid"])
        self.assertFalse(r.json()["data"]["found"])

    def test_upsert_and_search(self):
        r = self.client.post("/api/products", json={"ndc": "00512-3300-20", "product_name": "Upsert Drug"}, headers=self.headers)
        self.assertEqual(r.status_code, 201)
        r = self.client.post("/api/products", json={"ndc": "00512-3300-20", "wac": 2.5}, headers=self.headers)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["wac"], 2.5)
        r = self.client.get("/api/products/search", params={"q": "Upsert"}, headers=self.headers)
        self.assertEqual([p["ndc"] for p in r.json()["data"]], ["00512-3300-20"])


class TestInventoryAndReturnsRoutes(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()
        pharmacy_repo.create(name="Shelf Pharmacy", email="shelf@example.com", pharmacy_id="ph-api-shelf")
        cls.client = TestClient(create_app())
        cls.headers = pharmacy_headers("ph-api-shelf")

    def test_inventory_crud_and_metrics(self):
        expires = (date.today() + timedelta(days=20)).isoformat()
        r = self.client.post(
            "/api/inventory",
            json={"ndc": "00512-4400-10", "product_name": "Shelf Drug", "expiration_date": expires, "quantity": 6},
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 201)
        item = r.json()["data"]
        self.assertEqual(item["status"], "expiring_soon")

        metrics = self.client.get("/api/inventory/metrics", headers=self.headers)
        self.assertEqual(metrics.status_code, 200)
        self.assertEqual(metrics.json()["data"]["totalItems"], 1)
        self.assertEqual(metrics.json()["data"]["totalQuantity"], 6)

        r = self.client.put(f"/api/inventory/{item['id']}", json={"quantity": 4}, headers=self.headers)
        self.assertEqual(r.json()["data"]["quantity"], 4)
        r = self.client.get("/api/inventory", params={"status": "expiring_soon"}, headers=self.headers)
        self.assertEqual(r.json()["data"]["total"], 1)
        r = self.client.delete(f"/api/inventory/{item['id']}", headers=self.headers)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.client.get(f"/api/inventory/{item['id']}", headers=self.headers).status_code, 404)

    def test_returns_crud(self):
        r = self.client.post(
            "/api/returns",
            json={"items": [{"ndc": "00512-4400-10", "product_name": "Shelf Drug", "quantity": 2, "estimated_credit": 15.25}], "notes": "box 1"},
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 201)
        created = r.json()["data"]
        self.assertEqual(created["status"], "draft")
        self.assertEqual(created["total_estimated_credit"], 15.25)

        url = f"/api/returns/{created['id']}"
        r = self.client.put(url, json={"status": "in_transit", "shipment_id": "SHIP-1"}, headers=self.headers)
        self.assertEqual(r.json()["data"]["status"], "in_transit")
        self.assertEqual(r.json()["data"]["shipment_id"], "SHIP-1")
        r = self.client.put(url, json={"status": "bogus"}, headers=self.headers)
        self.assertEqual(r.status_code, 400)
        self.assertTrue(r.json()["message"].startswith("Invalid status: bogus"))

        listed = self.client.get("/api/returns", headers=self.headers).json()["data"]
        self.assertEqual(listed["total"], 1)
        self.assertEqual(self.client.delete(url, headers=self.headers).status_code, 200)
        self.assertEqual(self.client.get(url, headers=self.headers).status_code, 404)


class TestAdminRoutes(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()
        cls.client = TestClient(create_app())
        cls.headers = admin_headers()

    def test_distributor_crud(self):
        body = {
            "name": "Admin Dist",
            "contactEmail": "admin-dist@example.com",
            "address": {"street": "1 Main", "zipCode": "10001"},
            "feeRates": {"30": {"percentage": 7.5, "effectiveDate": "2024-01-01"}},
        }
        r = self.client.post("/api/admin/distributors", json=body, headers=self.headers)
        self.assertEqual(r.status_code, 201)
        created = r.json()["data"]
        self.assertEqual(created["address"]["zipCode"], "10001")
        self.assertEqual(created["feeRates"]["30"]["effectiveDate"], "2024-01-01")
        self.assertTrue(created["isActive"])

        self.assertEqual(self.client.post("/api/admin/distributors", json=body, headers=self.headers).status_code, 409)

        r = self.client.put(f"/api/admin/distributors/{created['id']}", json={"isActive": False}, headers=self.headers)
        self.assertFalse(r.json()["data"]["isActive"])
        self.assertEqual(r.json()["data"]["name"], "Admin Dist")
        self.assertEqual(self.client.get("/api/admin/distributors/nope", headers=self.headers).status_code, 404)

    def test_return_reports(self):
        dist = self.client.post("/api/admin/distributors", json={"name": "Admin Report Dist"}, headers=self.headers).json()["data"]
        r = self.client.post(
            "/api/admin/return-reports",
            json={
                "distributorId": dist["id"],
                "reportDate": "2025-03-01",
                "records": [
                    {"ndc": "00512-5500-10", "unitType": "full", "pricePerUnit": 4.0},
                    {"ndc": "00512-5500-10", "partial": 5, "creditAmount": 10.0},
                ],
            },
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["data"]["recordsCreated"], 2)

        rows = self.client.get(
            "/api/admin/return-reports", params={"ndc": "00512-5500-10"}, headers=self.headers
        ).json()["data"]
        prices = {row["unitType"]: row["pricePerUnit"] for row in rows}
        self.assertEqual(prices, {"full": 4.0, "partial": 2.0})

        bad = self.client.post(
            "/api/admin/return-reports",
            json={"distributorId": dist["id"], "reportDate": "2025-03-01", "records": [{"ndc": "00512-5500-10", "unitType": "full"}]},
            headers=self.headers,
        )
        self.assertEqual(bad.status_code, 400)

    def test_pharmacy_status(self):
        r = self.client.post(
            "/api/admin/pharmacies",
            json={"id": "ph-api-admin-made", "name": "Made Pharmacy", "email": "made@example.com"},
            headers=self.headers,
        )
        self.assertEqual(r.status_code, 201)
        r = self.client.put("/api/admin/pharmacies/ph-api-admin-made/status", json={"status": "suspended"}, headers=self.headers)
        self.assertEqual(r.json()["data"]["status"], "suspended")
        blocked = self.client.get("/api/inventory", headers=pharmacy_headers("ph-api-admin-made"))
        self.assertEqual(blocked.status_code, 403)


if __name__ == "__main__":
    unittest.main()

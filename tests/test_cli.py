"""Tests for the CLI: token issuance and batch credit estimates from CSV."""

import os
import tempfile
import unittest
from datetime import date, timedelta

import support  # noqa: F401

from typer.testing import CliRunner

from rxreturns.auth import verify_token
from rxreturns.cli import app
from rxreturns.db import init_db
from rxreturns.db.repositories import product_repo


class TestCli(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        init_db()
        product_repo.upsert({"ndc": "00512-6600-10", "product_name": "Cli Drug", "wac": 5.0, "credit_percentage": 80})
        cls.runner = CliRunner()

    def _csv(self, text: str) -> str:
        f = tempfile.NamedTemporaryFile("w", suffix=".csv", delete=False, encoding="utf-8")
        f.write(text)
        f.close()
        self.addCleanup(os.unlink, f.name)
        return f.name

    def test_issue_token(self):
        result = self.runner.invoke(app, ["issue-token", "ph-cli-0001"])
        self.assertEqual(result.exit_code, 0, result.output)
        claims = verify_token(result.output.strip().splitlines()[-1])
        self.assertEqual(claims["sub"], "ph-cli-0001")

    def test_issue_admin_token(self):
        result = self.runner.invoke(app, ["issue-token", "ops", "--admin"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(verify_token(result.output.strip().splitlines()[-1], admin=True)["role"], "admin")

    def test_estimate(self):
        expires = (date.today() + timedelta(days=45)).isoformat()
        path = self._csv(f"ndc,quantity,expiration_date,lot_number,condition\n00512-6600-10,100,{expires},L1,unopened\n")
        result = self.runner.invoke(app, ["estimate", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("eligible", result.output)

    def test_estimate_rejects_bad_rows(self):
        path = self._csv("ndc,quantity,expiration_date\n00512-6600-10,1,someday\n")
        result = self.runner.invoke(app, ["estimate", path])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()

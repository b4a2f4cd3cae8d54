"""Shared test setup: temp SQLite file, auth secrets and src/ on sys.path.

Import this before any ``rxreturns`` module; config is read at import time.
"""

import os
import sys
import tempfile
from pathlib import Path

# Shared file DB so get_session() in the app sees the same data (in-memory is per-connection).
_test_db_file = tempfile.NamedTemporaryFile(suffix=".sqlite", delete=False)
_test_db_file.close()
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_file.name}"
os.environ["SEED_ON_INIT"] = "false"
os.environ["TRACING_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-pharmacy-secret-0123456789abcdef"
os.environ["ADMIN_JWT_SECRET"] = "test-admin-secret-0123456789abcdef"
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

TEST_DB_PATH = _test_db_file.name


def pharmacy_headers(pharmacy_id: str) -> dict[str, str]:
    from rxreturns.auth import issue_token

    return {"Authorization": f"Bearer {issue_token(pharmacy_id)}"}


def admin_headers(subject: str = "admin-1") -> dict[str, str]:
    from rxreturns.auth import issue_token

    return {"Authorization": f"Bearer {issue_token(subject, admin=True)}"}

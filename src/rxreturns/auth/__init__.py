"""Bearer token issuance and verification for pharmacy and admin callers."""

from rxreturns.auth.tokens import ADMIN_ROLE, issue_token, verify_token

__all__ = [
    "ADMIN_ROLE",
    "issue_token",
    "verify_token",
]

"""JWT helpers. Pharmacy tokens carry the pharmacy id in ``sub``; admin tokens carry ``role=admin``."""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from rxreturns.config import ADMIN_JWT_SECRET, JWT_ALGORITHM, JWT_SECRET, TOKEN_TTL_MINUTES
from rxreturns.errors import AuthError, ConfigError

ADMIN_ROLE = "admin"


def _secret(admin: bool) -> str:
    secret = ADMIN_JWT_SECRET if admin else JWT_SECRET
    if not secret:
        raise ConfigError("Authentication is not configured")
    return secret


def issue_token(subject: str, admin: bool = False, ttl_minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": subject,
        "iat": now,
        "exp": now + timedelta(minutes=ttl_minutes or TOKEN_TTL_MINUTES),
    }
    if admin:
        claims["role"] = ADMIN_ROLE
    return jwt.encode(claims, _secret(admin), algorithm=JWT_ALGORITHM)


def verify_token(token: str, admin: bool = False) -> dict[str, Any]:
    """Decode and validate a bearer token; raises AuthError (401) on any failure."""
    secret = _secret(admin)
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid or expired token") from e
    if admin and claims.get("role") != ADMIN_ROLE:
        raise AuthError("Admin privileges required")
    return claims

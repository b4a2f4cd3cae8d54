"""FastAPI dependencies: bearer-token authentication for pharmacies and admins."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rxreturns.auth import verify_token
from rxreturns.db.models.master import Pharmacy
from rxreturns.db.repositories import pharmacy_repo
from rxreturns.errors import AuthError, ForbiddenError
from rxreturns.utils.logger import bind_context

_bearer = HTTPBearer(auto_error=False)

_BLOCKED_MESSAGES = {
    "suspended": "Your pharmacy account has been suspended. Please contact support for more information.",
    "blacklisted": "Your pharmacy account has been permanently blocked. Access to the platform is denied.",
    "pending": "Your pharmacy account is pending approval. Please wait for account activation.",
}


def _token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthError("Authorization token is required")
    return credentials.credentials


def current_pharmacy(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Pharmacy:
    """Resolve the calling pharmacy from its token; only active pharmacies get through."""
    claims = verify_token(_token(credentials))
    pharmacy = pharmacy_repo.get(str(claims["sub"]))
    if pharmacy is None:
        raise AuthError("Pharmacy not found for this token")
    if pharmacy.status != "active":
        raise ForbiddenError(
            _BLOCKED_MESSAGES.get(pharmacy.status, f"Pharmacy account is {pharmacy.status}")
        )
    bind_context(pharmacy_id=pharmacy.id)
    return pharmacy


def current_pharmacy_id(pharmacy: Pharmacy = Depends(current_pharmacy)) -> str:
    return pharmacy.id


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    claims = verify_token(_token(credentials), admin=True)
    bind_context(admin=str(claims["sub"]))
    return str(claims["sub"])

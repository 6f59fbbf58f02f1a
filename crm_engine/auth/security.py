"""Bearer-token helpers; tokens are signed with the secret shared with the CRM backend."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt

from crm_engine.config import get_settings


def create_access_token(
    user_id: str,
    role: str,
    username: str = "",
    email: str = "",
    expires_in: timedelta | None = None,
) -> str:
    """Mint an access token carrying the claims ``get_current_user`` reads.

    Issuance normally happens in the CRM backend; this is for tests and
    local tooling that need to call the API directly.
    """
    settings = get_settings()
    lifetime = expires_in or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    claims = {
        "sub": user_id,
        "role": role,
        "username": username,
        "email": email,
        "type": "access",
        "exp": datetime.now(UTC) + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry. Raises JWTError on failure."""
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

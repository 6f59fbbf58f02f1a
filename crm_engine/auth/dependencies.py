"""FastAPI dependencies resolving the caller from its bearer token."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from crm_engine.auth.security import decode_token
from crm_engine.schemas.auth import TokenUser

_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> TokenUser:
    """Validate the bearer token and return the caller it identifies."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    token = credentials.credentials
    try:
        payload = decode_token(token)
    except JWTError as err:
        raise _unauthorized("Invalid or expired token") from err

    if payload.get("type", "access") != "access":
        raise _unauthorized("Invalid token type")

    user_id = payload.get("sub") or payload.get("id")
    if not user_id:
        raise _unauthorized("Invalid token: missing subject")

    return TokenUser(
        id=str(user_id),
        username=payload.get("username") or payload.get("email") or str(user_id),
        role=payload.get("role") or "user",
        email=payload.get("email") or "",
        token=token,
    )


CurrentUser = Annotated[TokenUser, Depends(get_current_user)]

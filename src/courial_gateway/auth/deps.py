"""
courial_gateway.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Convert a bearer session token (minted by `/verify-otp`) into a typed `User`.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED

from courial_gateway.api.deps import settings_dep
from courial_gateway.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from courial_gateway.auth.models import User
from courial_gateway.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> User:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    if not payload.get("sub"):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    return User.from_claims(payload)

"""
courial_gateway.api.routers.session

Session endpoints for clients holding tokens minted by `/verify-otp`.

Responsibilities:
- Report the caller's identity and admin membership (role lookup).
- Exchange a refresh token for a new token pair.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_401_UNAUTHORIZED

from courial_gateway.api.deps import role_store, settings_dep
from courial_gateway.auth.deps import get_current_user
from courial_gateway.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from courial_gateway.auth.models import User
from courial_gateway.auth.roles import SqlRoleStore
from courial_gateway.auth.tokens import mint_session_tokens
from courial_gateway.settings import Settings

router = APIRouter(prefix="/v1/auth", tags=["session"])


class SessionResponse(BaseModel):
    user_id: str
    phone: str | None = None
    email: str | None = None
    is_admin: bool


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


@router.get("/session", response_model=SessionResponse)
async def current_session(
    user: User = Depends(get_current_user),
    roles: SqlRoleStore = Depends(role_store),
    settings: Settings = Depends(settings_dep),
) -> SessionResponse:
    is_admin = await roles.has_role(user.id, settings.admin_role)
    return SessionResponse(user_id=user.id, phone=user.phone, email=user.email, is_admin=is_admin)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_session(
    body: RefreshRequest,
    settings: Settings = Depends(settings_dep),
) -> TokenResponse:
    try:
        claims = decode_and_validate(
            cfg=JwtConfig.from_settings(settings), token=body.refresh_token, token_use="refresh"
        )
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    tokens = mint_session_tokens(settings=settings, user=User.from_claims(claims))
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
    )

"""
courial_gateway.auth.tokens

Session minting for phone-verified identities.

Responsibilities:
- Derive a stable identity from a verified phone number.
- Mint the access/refresh token pair handed back by `/verify-otp` and `/v1/auth/refresh`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta

from courial_gateway.auth.jwt import JwtConfig, issue_token
from courial_gateway.auth.models import User
from courial_gateway.settings import Settings

_PHONE_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "phone.courial.app")


@dataclass(frozen=True, slots=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


def phone_user(country_code: str, phone: str) -> User:
    """
    The same phone number always maps to the same user id, so role grants survive
    across sign-ins.
    """

    full_phone = f"{country_code}{phone}"
    digits = full_phone.replace("+", "")
    return User(
        id=str(uuid.uuid5(_PHONE_NAMESPACE, full_phone)),
        email=f"{digits}@phone.courial.app",
        phone=full_phone,
        provider="phone",
        metadata={"phone": full_phone, "country_code": country_code, "courial_user": True},
    )


def mint_session_tokens(*, settings: Settings, user: User) -> SessionTokens:
    cfg = JwtConfig.from_settings(settings)
    access_ttl = timedelta(minutes=settings.access_token_ttl_minutes)
    claims = user.to_claims()
    return SessionTokens(
        access_token=issue_token(
            cfg=cfg, subject=user.id, claims=claims, token_use="access", ttl=access_ttl
        ),
        refresh_token=issue_token(
            cfg=cfg,
            subject=user.id,
            claims=claims,
            token_use="refresh",
            ttl=timedelta(days=settings.refresh_token_ttl_days),
        ),
        expires_in=int(access_ttl.total_seconds()),
    )

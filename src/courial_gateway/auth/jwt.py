"""
courial_gateway.auth.jwt

Session token issuing and validation helpers.

Responsibilities:
- Issue access/refresh JWTs for a phone-verified identity.
- Decode and validate JWTs with strict claim requirements (iss/aud/exp/iat/sub).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import jwt
from jwt import InvalidTokenError

from courial_gateway.settings import Settings

TokenUse = Literal["access", "refresh"]


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    claims: dict[str, Any] | None = None,
    token_use: TokenUse = "access",
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = dict(claims or {})
    payload.update(
        {
            "iss": cfg.issuer,
            "aud": cfg.audience,
            "sub": subject,
            "token_use": token_use,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
    )
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(
    *, cfg: JwtConfig, token: str, token_use: TokenUse = "access"
) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e

    # A refresh token must never be accepted where an access token is expected.
    if payload.get("token_use", "access") != token_use:
        raise JwtValidationError(f"expected a {token_use} token")
    return payload


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `api/routers/otp.py` (after upstream OTP verification);
# validation by `auth/deps.py` and `auth/provider.py`.

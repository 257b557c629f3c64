"""
courial_gateway.auth.models

Auth domain models.

Responsibilities:
- Define the signed-in identity (`User`) and the provider-issued `Session`.
- Define auth-state change events and the resolver-owned `AuthState`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


class AuthEventKind(enum.StrEnum):
    initial_session = "INITIAL_SESSION"
    signed_in = "SIGNED_IN"
    signed_out = "SIGNED_OUT"
    token_refreshed = "TOKEN_REFRESHED"
    user_updated = "USER_UPDATED"


@dataclass(frozen=True, slots=True)
class User:
    """
    Signed-in principal as seen by the client.
    """

    id: str
    email: str | None = None
    phone: str | None = None
    provider: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> User:
        metadata = claims.get("user_metadata")
        return cls(
            id=str(claims["sub"]),
            email=claims.get("email"),
            phone=claims.get("phone"),
            provider=claims.get("provider"),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
        )

    def to_claims(self) -> dict[str, Any]:
        claims: dict[str, Any] = {"user_metadata": dict(self.metadata)}
        if self.email:
            claims["email"] = self.email
        if self.phone:
            claims["phone"] = self.phone
        if self.provider:
            claims["provider"] = self.provider
        return claims


@dataclass(frozen=True, slots=True)
class Session:
    access_token: str
    user: User
    refresh_token: str | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(tz=UTC)) >= self.expires_at


@dataclass(frozen=True, slots=True)
class AuthState:
    """
    Snapshot published by `SessionResolver`.

    `loading` starts true and flips to false once; `error` is set when a session
    fetch or role lookup failed and cleared by the next successful update.
    """

    user: User | None = None
    is_admin: bool = False
    loading: bool = True
    error: str | None = None


# --- Module Notes -----------------------------------------------------------
# States are immutable; the resolver publishes a new instance on every change so
# listeners can compare snapshots safely.

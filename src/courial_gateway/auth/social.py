"""
courial_gateway.auth.social

Social sign-in sync.

Responsibilities:
- After a Google/Apple sign-in, register the identity with the courier backend
  through the gateway's `/social-login` endpoint, once per user.
"""

from __future__ import annotations

from typing import Any

import httpx

from courial_gateway.auth.models import User
from courial_gateway.observability.logging import get_logger

log = get_logger(__name__)

SOCIAL_PROVIDERS = frozenset({"google", "apple"})


def _split_name(full_name: Any) -> tuple[str | None, str | None]:
    if not isinstance(full_name, str) or not full_name.strip():
        return None, None
    first, _, rest = full_name.strip().partition(" ")
    return first, (rest.strip() or None)


def social_login_payload(user: User) -> dict[str, Any]:
    meta = user.metadata
    first, last = _split_name(meta.get("full_name") or meta.get("name"))
    payload: dict[str, Any] = {
        "social_id": user.id,
        "provider": user.provider,
        "email": user.email or meta.get("email"),
        "first_name": first,
        "last_name": last,
    }
    return {k: v for k, v in payload.items() if v}


class SocialLoginSync:
    """
    `http` must be a client whose base_url points at the gateway service; `api_key`
    is sent as the `apikey` header the gateway's edge expects.
    """

    def __init__(self, *, http: httpx.AsyncClient, api_key: str | None = None) -> None:
        self._http = http
        self._api_key = api_key
        self._synced: set[str] = set()

    def should_sync(self, user: User) -> bool:
        return user.provider in SOCIAL_PROVIDERS and user.id not in self._synced

    def claim(self, user: User) -> bool:
        """Check-and-mark in one step; only the first caller for a user gets True."""

        if not self.should_sync(user):
            return False
        # A failed sync is not retried within this process.
        self._synced.add(user.id)
        return True

    async def sync(self, user: User) -> dict[str, Any]:
        self._synced.add(user.id)
        headers = {"apikey": self._api_key} if self._api_key else {}
        r = await self._http.post("/social-login", json=social_login_payload(user), headers=headers)
        r.raise_for_status()
        data = r.json()
        log.info("social_login_synced", user_id=user.id, provider=user.provider)
        return data

"""
courial_gateway.auth.provider

Auth provider boundary for the client-side session core.

Responsibilities:
- Define the provider contract the session resolver observes.
- Provide `TokenAuthProvider`, a provider backed by the session JWTs this
  service mints after OTP verification.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from courial_gateway.auth.jwt import JwtConfig, decode_and_validate
from courial_gateway.auth.models import AuthEventKind, Session, User
from courial_gateway.observability.logging import get_logger

log = get_logger(__name__)

AuthChangeCallback = Callable[[AuthEventKind, Session | None], None]


class Subscription:
    """Handle returned by `on_session_change`; `unsubscribe()` is idempotent."""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def unsubscribe(self) -> None:
        if self._unsubscribe is None:
            return
        fn, self._unsubscribe = self._unsubscribe, None
        fn()


class AuthProvider(Protocol):
    async def get_current_session(self) -> Session | None: ...

    def on_session_change(self, callback: AuthChangeCallback) -> Subscription: ...

    async def sign_out(self) -> None: ...


class TokenAuthProvider:
    """
    In-process provider holding at most one session.

    Change events are delivered on the next loop iteration (`call_soon`), never
    inside the call that caused them, so subscribers can safely call back into
    the provider.
    """

    def __init__(self, *, cfg: JwtConfig) -> None:
        self._cfg = cfg
        self._session: Session | None = None
        self._listeners: dict[int, AuthChangeCallback] = {}
        self._ids = itertools.count()

    def session_from_tokens(self, access_token: str, refresh_token: str | None = None) -> Session:
        claims = decode_and_validate(cfg=self._cfg, token=access_token)
        return Session(
            access_token=access_token,
            refresh_token=refresh_token,
            user=User.from_claims(claims),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
        )

    async def get_current_session(self) -> Session | None:
        if self._session is not None and self._session.is_expired():
            return None
        return self._session

    def on_session_change(self, callback: AuthChangeCallback) -> Subscription:
        key = next(self._ids)
        self._listeners[key] = callback
        return Subscription(lambda: self._listeners.pop(key, None))

    async def set_session(self, access_token: str, refresh_token: str | None = None) -> Session:
        """
        Adopt a session (e.g. the tokens returned by `/verify-otp`).

        Emits SIGNED_IN, or TOKEN_REFRESHED when the same user was already signed in.
        """

        session = self.session_from_tokens(access_token, refresh_token)
        current = self._session
        if current is not None and current.user.id == session.user.id:
            kind = AuthEventKind.token_refreshed
        else:
            kind = AuthEventKind.signed_in
        self._session = session
        self._emit(kind, session)
        return session

    async def sign_out(self) -> None:
        self._session = None
        self._emit(AuthEventKind.signed_out, None)

    def _emit(self, kind: AuthEventKind, session: Session | None) -> None:
        loop = asyncio.get_running_loop()
        for key in list(self._listeners):
            loop.call_soon(self._deliver, key, kind, session)

    def _deliver(self, key: int, kind: AuthEventKind, session: Session | None) -> None:
        # Listener may have unsubscribed between scheduling and delivery.
        callback = self._listeners.get(key)
        if callback is None:
            return
        try:
            callback(kind, session)
        except Exception:
            log.exception("auth_listener_failed", auth_event=str(kind))


# --- Module Notes -----------------------------------------------------------
# Token refresh against the service is left to the application; this provider only
# tracks whichever tokens it is handed.

"""
courial_gateway.auth.resolver

Client-side session resolver.

Responsibilities:
- Converge two racing session sources (cached fetch, change subscription) and a
  timeout into a single `loading -> False` transition per start.
- Keep `user` on the most recent observation and recompute `is_admin` through
  the role store on every user change.
- Publish immutable `AuthState` snapshots to explicit subscribers.
- Tear down subscription, timer and in-flight work on close.
"""

from __future__ import annotations

import asyncio
import dataclasses
import itertools
from collections.abc import Callable, Coroutine
from typing import Any, Literal

from courial_gateway.auth.models import AuthEventKind, AuthState, Session, User
from courial_gateway.auth.provider import AuthProvider, Subscription
from courial_gateway.auth.roles import RoleStore
from courial_gateway.auth.social import SocialLoginSync
from courial_gateway.observability.logging import get_logger
from courial_gateway.settings import Settings

log = get_logger(__name__)

RoleLookupFailurePolicy = Literal["preserve", "clear"]
StateListener = Callable[[AuthState], None]


class SessionResolver:
    """
    Owns one `AuthState` for its lifetime (`start()` .. `close()`).

    Ordering rules:
    - Every session observation is stamped when it *begins* (the cached fetch at
      start, change events on delivery). An observation only changes `user` if its
      stamp is newer than the last applied one, so a slow cached fetch can never
      overwrite a newer change event.
    - A role lookup result is applied only while the observation that issued it
      is still the current one.
    - Nothing mutates state after `close()`.
    """

    def __init__(
        self,
        *,
        provider: AuthProvider,
        roles: RoleStore,
        timeout_seconds: float = 3.0,
        admin_role: str = "admin",
        failure_policy: RoleLookupFailurePolicy = "preserve",
        social_sync: SocialLoginSync | None = None,
    ) -> None:
        self._provider = provider
        self._roles = roles
        self._timeout_seconds = timeout_seconds
        self._admin_role = admin_role
        self._failure_policy = failure_policy
        self._social_sync = social_sync

        self._state = AuthState()
        self._listeners: dict[int, StateListener] = {}
        self._listener_ids = itertools.count()

        self._started = False
        self._alive = False
        self._resolved = False
        self._resolved_event = asyncio.Event()

        self._stamps = itertools.count(1)
        self._applied_stamp = 0
        self._lookup_stamp = 0

        self._subscription: Subscription | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        provider: AuthProvider,
        roles: RoleStore,
        social_sync: SocialLoginSync | None = None,
    ) -> SessionResolver:
        return cls(
            provider=provider,
            roles=roles,
            timeout_seconds=settings.session_resolve_timeout_seconds,
            admin_role=settings.admin_role,
            failure_policy=settings.role_lookup_failure_policy,
            social_sync=social_sync,
        )

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._started and not self._alive

    def subscribe(self, listener: StateListener) -> Subscription:
        key = next(self._listener_ids)
        self._listeners[key] = listener
        return Subscription(lambda: self._listeners.pop(key, None))

    # --- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        if self._started:
            raise RuntimeError("SessionResolver can only be started once")
        self._started = True
        self._alive = True
        loop = asyncio.get_running_loop()

        # Listen before fetching so a change during the fetch is not missed.
        self._subscription = self._provider.on_session_change(self._on_session_change)
        self._spawn(self._fetch_current_session(next(self._stamps)))
        self._timer = loop.call_later(self._timeout_seconds, self._on_timeout)

    def close(self) -> None:
        if not self._alive:
            return
        self._alive = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()
        # Release waiters; state stays as it was.
        self._resolved_event.set()

    async def wait_resolved(self) -> AuthState:
        """
        Wait for the loading transition, or for `close()`. A resolver closed before
        resolving returns its last state, which still has `loading=True`.
        """

        await self._resolved_event.wait()
        return self._state

    async def sign_out(self) -> None:
        """
        Invalidate the session through the provider.

        Local state is not touched here: `user` and `is_admin` clear when the
        provider's SIGNED_OUT event reaches this resolver.
        """

        await self._provider.sign_out()

    async def __aenter__(self) -> SessionResolver:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        pending = list(self._tasks)
        self.close()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # --- sources ------------------------------------------------------------

    async def _fetch_current_session(self, stamp: int) -> None:
        try:
            session = await self._provider.get_current_session()
        except Exception as e:
            if not self._alive:
                return
            log.warning("session_fetch_failed", error=str(e))
            self._update(error=f"Session fetch failed: {e}")
            self._resolve()
            return

        if not self._alive:
            return
        log.info(
            "session_fetched",
            user_id=session.user.id if session else None,
            has_session=session is not None,
        )
        self._observe(stamp, session)
        self._resolve()

    def _on_session_change(self, kind: AuthEventKind, session: Session | None) -> None:
        if not self._alive:
            return
        log.info("session_change", auth_event=str(kind), user_id=session.user.id if session else None)
        self._observe(next(self._stamps), session)
        self._resolve()
        if kind == AuthEventKind.signed_in and session is not None:
            self._maybe_sync_social(session.user)

    def _on_timeout(self) -> None:
        self._timer = None
        if not self._alive or self._resolved:
            return
        log.info("session_timeout", timeout_seconds=self._timeout_seconds)
        self._resolve()

    # --- state transitions --------------------------------------------------

    def _resolve(self) -> None:
        if self._resolved:
            return
        self._resolved = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._update(loading=False)
        self._resolved_event.set()

    def _observe(self, stamp: int, session: Session | None) -> None:
        if stamp <= self._applied_stamp:
            log.debug("stale_session_dropped", stamp=stamp, applied_stamp=self._applied_stamp)
            return
        self._applied_stamp = stamp
        # Any lookup still in flight belongs to an older observation.
        self._lookup_stamp = stamp

        user = session.user if session is not None else None
        if user is None:
            self._update(user=None, is_admin=False, error=None)
            return

        previous = self._state.user
        if previous is None or previous.id != user.id:
            # Different principal: never carry the old admin flag over.
            self._update(user=user, is_admin=False, error=None)
        else:
            self._update(user=user, error=None)
        self._spawn(self._lookup_admin(stamp, user))

    async def _lookup_admin(self, stamp: int, user: User) -> None:
        try:
            is_admin = await self._roles.has_role(user.id, self._admin_role)
        except Exception as e:
            if not self._alive or stamp != self._lookup_stamp:
                return
            log.warning(
                "role_lookup_failed",
                user_id=user.id,
                error=str(e),
                policy=self._failure_policy,
            )
            if self._failure_policy == "clear":
                self._update(is_admin=False, error=f"Role lookup failed: {e}")
            else:
                self._update(error=f"Role lookup failed: {e}")
            return

        if not self._alive or stamp != self._lookup_stamp:
            return
        self._update(is_admin=is_admin)

    def _maybe_sync_social(self, user: User) -> None:
        if self._social_sync is None or not self._social_sync.claim(user):
            return
        self._spawn(self._sync_social(self._social_sync, user))

    async def _sync_social(self, social_sync: SocialLoginSync, user: User) -> None:
        try:
            await social_sync.sync(user)
        except Exception as e:
            log.warning("social_sync_failed", user_id=user.id, error=str(e))

    def _update(self, **changes: Any) -> None:
        if not self._alive:
            return
        new_state = dataclasses.replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners.values()):
            try:
                listener(new_state)
            except Exception:
                log.exception("state_listener_failed")

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task


# --- Module Notes -----------------------------------------------------------
# Role lookups and social sync are fire-and-forget relative to the event that
# triggered them; `wait_resolved()` only waits for the loading transition.

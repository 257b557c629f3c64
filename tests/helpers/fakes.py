"""
tests.helpers.fakes

In-memory collaborators for the session resolver and the upstream API.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from typing import Any

import httpx

from courial_gateway.auth.models import AuthEventKind, Session, User
from courial_gateway.auth.provider import AuthChangeCallback, Subscription


def make_session(user_id: str = "user-1", **user_kwargs: Any) -> Session:
    return Session(access_token=f"token-{user_id}", user=User(id=user_id, **user_kwargs))


class FakeAuthProvider:
    """
    `cached` is what `get_current_session` returns; `fetch_gate` (when set) holds the
    fetch until the test releases it. Events are delivered synchronously via `emit`.
    """

    def __init__(self, cached: Session | None = None) -> None:
        self.cached = cached
        self.fetch_gate: asyncio.Event | None = None
        self.fetch_error: Exception | None = None
        self.callbacks: dict[int, AuthChangeCallback] = {}
        self.sign_out_calls = 0
        self._ids = itertools.count()

    async def get_current_session(self) -> Session | None:
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.cached

    def on_session_change(self, callback: AuthChangeCallback) -> Subscription:
        key = next(self._ids)
        self.callbacks[key] = callback
        return Subscription(lambda: self.callbacks.pop(key, None))

    def emit(self, kind: AuthEventKind, session: Session | None) -> None:
        for callback in list(self.callbacks.values()):
            callback(kind, session)

    async def sign_out(self) -> None:
        self.sign_out_calls += 1


class FakeRoleStore:
    def __init__(self, admins: set[str] | None = None) -> None:
        self.admins = set(admins or ())
        self.calls: list[tuple[str, str]] = []
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def has_role(self, user_id: str, role_name: str) -> bool:
        self.calls.append((user_id, role_name))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return role_name == "admin" and user_id in self.admins


class FakeUpstream:
    """
    `httpx.MockTransport` handler keyed by the last path segment
    (e.g. `send_login_otp`). Replies are `(status_code, json_body)` pairs or callables
    returning one.
    """

    def __init__(
        self,
        routes: dict[str, tuple[int, Any] | Callable[[httpx.Request], tuple[int, Any]]] | None = None,
    ) -> None:
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get(request.url.path.rsplit("/", 1)[-1])
        if reply is None:
            return httpx.Response(404, json={"message": "not found"})
        status_code, body = reply(request) if callable(reply) else reply
        return httpx.Response(status_code, json=body)

    def paths(self) -> list[str]:
        return [r.url.path.rsplit("/", 1)[-1] for r in self.requests]

    def form(self, index: int = -1) -> dict[str, str]:
        return dict(httpx.QueryParams(self.requests[index].content.decode()))


async def eventually(predicate: Callable[[], bool], *, timeout: float = 1.0) -> None:
    # Lets fire-and-forget tasks (role lookups, thread-backed DB calls) finish.
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)

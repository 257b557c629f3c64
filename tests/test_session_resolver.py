"""
tests.test_session_resolver

Session resolver state machine: loading latch, timeout, ordering of the two
session sources, role lookup, sign-out and teardown.
"""

from __future__ import annotations

import asyncio

import pytest

from courial_gateway.auth.models import AuthEventKind, AuthState
from courial_gateway.auth.resolver import SessionResolver

from .helpers.fakes import FakeAuthProvider, FakeRoleStore, eventually, make_session, settle


def _loading_history(states: list[AuthState]) -> list[bool]:
    return [s.loading for s in states]


@pytest.mark.asyncio
async def test_cached_session_resolves_loading_once() -> None:
    provider = FakeAuthProvider(cached=make_session("u1"))
    roles = FakeRoleStore(admins={"u1"})
    resolver = SessionResolver(provider=provider, roles=roles)
    history: list[AuthState] = []
    resolver.subscribe(history.append)

    async with resolver:
        state = await resolver.wait_resolved()
        await eventually(lambda: resolver.state.is_admin)

        assert state.loading is False
        assert resolver.state.user is not None and resolver.state.user.id == "u1"
        assert roles.calls == [("u1", "admin")]

        # Later events never bring loading back.
        provider.emit(AuthEventKind.signed_out, None)
        provider.emit(AuthEventKind.signed_in, make_session("u2"))
        await settle()

    loadings = _loading_history(history)
    assert loadings.count(False) >= 1
    assert loadings == sorted(loadings, reverse=True)


@pytest.mark.asyncio
async def test_timeout_resolves_when_no_source_completes() -> None:
    provider = FakeAuthProvider(cached=make_session("u1"))
    provider.fetch_gate = asyncio.Event()
    resolver = SessionResolver(provider=provider, roles=FakeRoleStore(), timeout_seconds=0.05)

    async with resolver:
        state = await asyncio.wait_for(resolver.wait_resolved(), timeout=1.0)

        assert state.loading is False
        assert state.user is None
        assert state.is_admin is False


@pytest.mark.asyncio
async def test_no_session_resolves_without_role_lookup() -> None:
    roles = FakeRoleStore()
    resolver = SessionResolver(provider=FakeAuthProvider(cached=None), roles=roles)

    async with resolver:
        state = await resolver.wait_resolved()
        await settle()

    assert state == AuthState(user=None, is_admin=False, loading=False, error=None)
    assert roles.calls == []


@pytest.mark.asyncio
async def test_same_user_from_both_sources_reflects_role_store() -> None:
    session = make_session("u1")
    provider = FakeAuthProvider(cached=session)
    roles = FakeRoleStore(admins={"u1"})

    async with SessionResolver(provider=provider, roles=roles) as resolver:
        provider.emit(AuthEventKind.initial_session, session)
        await resolver.wait_resolved()
        await eventually(lambda: resolver.state.is_admin)

        assert resolver.state.user == session.user
        assert ("u1", "admin") in roles.calls


@pytest.mark.asyncio
async def test_signed_in_user_without_role_row_is_not_admin() -> None:
    provider = FakeAuthProvider(cached=make_session("u1"))
    roles = FakeRoleStore(admins={"someone-else"})

    async with SessionResolver(provider=provider, roles=roles) as resolver:
        await resolver.wait_resolved()
        await eventually(lambda: bool(roles.calls))
        await settle()

        assert resolver.state.user is not None
        assert resolver.state.is_admin is False


@pytest.mark.asyncio
async def test_stale_cached_fetch_does_not_overwrite_newer_event() -> None:
    provider = FakeAuthProvider(cached=make_session("old"))
    provider.fetch_gate = asyncio.Event()
    roles = FakeRoleStore()

    async with SessionResolver(provider=provider, roles=roles) as resolver:
        provider.emit(AuthEventKind.signed_in, make_session("new"))
        assert resolver.state.loading is False

        provider.fetch_gate.set()
        await settle()

        assert resolver.state.user is not None and resolver.state.user.id == "new"
        assert [c[0] for c in roles.calls] == ["new"]


@pytest.mark.asyncio
async def test_stale_cached_fetch_does_not_undo_sign_out() -> None:
    provider = FakeAuthProvider(cached=make_session("u1"))
    provider.fetch_gate = asyncio.Event()

    async with SessionResolver(provider=provider, roles=FakeRoleStore()) as resolver:
        provider.emit(AuthEventKind.signed_out, None)
        provider.fetch_gate.set()
        await settle()

        assert resolver.state.user is None


@pytest.mark.asyncio
async def test_role_result_for_previous_user_is_discarded() -> None:
    provider = FakeAuthProvider(cached=make_session("admin-user"))
    roles = FakeRoleStore(admins={"admin-user"})
    roles.gate = asyncio.Event()

    async with SessionResolver(provider=provider, roles=roles) as resolver:
        await resolver.wait_resolved()
        await eventually(lambda: len(roles.calls) == 1)

        provider.emit(AuthEventKind.signed_in, make_session("plain-user"))
        roles.gate.set()
        await eventually(lambda: len(roles.calls) == 2)
        await settle()

        assert resolver.state.user is not None and resolver.state.user.id == "plain-user"
        assert resolver.state.is_admin is False


@pytest.mark.asyncio
async def test_switching_user_clears_admin_until_recomputed() -> None:
    provider = FakeAuthProvider(cached=make_session("admin-user"))
    roles = FakeRoleStore(admins={"admin-user", "other-admin"})

    async with SessionResolver(provider=provider, roles=roles) as resolver:
        await eventually(lambda: resolver.state.is_admin)

        roles.gate = asyncio.Event()
        provider.emit(AuthEventKind.signed_in, make_session("other-admin"))
        assert resolver.state.is_admin is False

        roles.gate.set()
        await eventually(lambda: resolver.state.is_admin)


@pytest.mark.asyncio
async def test_role_lookup_failure_preserves_admin_by_default() -> None:
    session = make_session("u1")
    provider = FakeAuthProvider(cached=session)
    roles = FakeRoleStore(admins={"u1"})

    async with SessionResolver(provider=provider, roles=roles) as resolver:
        await eventually(lambda: resolver.state.is_admin)

        roles.error = RuntimeError("db down")
        provider.emit(AuthEventKind.token_refreshed, session)
        await eventually(lambda: resolver.state.error is not None)

        assert resolver.state.is_admin is True
        assert resolver.state.error == "Role lookup failed: db down"


@pytest.mark.asyncio
async def test_role_lookup_failure_clear_policy() -> None:
    session = make_session("u1")
    provider = FakeAuthProvider(cached=session)
    roles = FakeRoleStore(admins={"u1"})
    resolver = SessionResolver(provider=provider, roles=roles, failure_policy="clear")

    async with resolver:
        await eventually(lambda: resolver.state.is_admin)

        roles.error = RuntimeError("db down")
        provider.emit(AuthEventKind.token_refreshed, session)
        await eventually(lambda: resolver.state.error is not None)

        assert resolver.state.is_admin is False


@pytest.mark.asyncio
async def test_fetch_failure_resolves_with_error_state() -> None:
    provider = FakeAuthProvider()
    provider.fetch_error = ConnectionError("offline")

    async with SessionResolver(provider=provider, roles=FakeRoleStore()) as resolver:
        state = await resolver.wait_resolved()

        assert state.loading is False
        assert state.user is None
        assert state.error == "Session fetch failed: offline"

        # A later successful observation clears the error.
        provider.emit(AuthEventKind.signed_in, make_session("u1"))
        assert resolver.state.error is None


@pytest.mark.asyncio
async def test_sign_out_clears_user_only_after_event() -> None:
    provider = FakeAuthProvider(cached=make_session("u1"))
    roles = FakeRoleStore(admins={"u1"})

    async with SessionResolver(provider=provider, roles=roles) as resolver:
        await eventually(lambda: resolver.state.is_admin)

        await resolver.sign_out()
        assert provider.sign_out_calls == 1
        assert resolver.state.user is not None
        assert resolver.state.is_admin is True

        provider.emit(AuthEventKind.signed_out, None)
        assert resolver.state.user is None
        assert resolver.state.is_admin is False


@pytest.mark.asyncio
async def test_close_before_fetch_resolves_ignores_late_result() -> None:
    provider = FakeAuthProvider(cached=make_session("u1"))
    provider.fetch_gate = asyncio.Event()
    resolver = SessionResolver(provider=provider, roles=FakeRoleStore(), timeout_seconds=0.05)
    history: list[AuthState] = []
    resolver.subscribe(history.append)

    resolver.start()
    await settle()
    resolver.close()

    provider.fetch_gate.set()
    await asyncio.sleep(0.1)

    assert resolver.closed
    assert provider.callbacks == {}
    assert history == []
    assert resolver.state == AuthState()


@pytest.mark.asyncio
async def test_close_releases_pending_waiters_without_resolving() -> None:
    provider = FakeAuthProvider(cached=make_session("u1"))
    provider.fetch_gate = asyncio.Event()
    resolver = SessionResolver(provider=provider, roles=FakeRoleStore(), timeout_seconds=5.0)

    resolver.start()
    waiter = asyncio.ensure_future(resolver.wait_resolved())
    await settle()
    assert not waiter.done()

    resolver.close()
    state = await asyncio.wait_for(waiter, timeout=0.5)

    assert state.loading is True
    assert state.user is None
    assert (await resolver.wait_resolved()) == state


@pytest.mark.asyncio
async def test_start_twice_is_rejected() -> None:
    async with SessionResolver(provider=FakeAuthProvider(), roles=FakeRoleStore()) as resolver:
        with pytest.raises(RuntimeError):
            resolver.start()


@pytest.mark.asyncio
async def test_unsubscribed_listener_stops_receiving_states() -> None:
    provider = FakeAuthProvider()
    resolver = SessionResolver(provider=provider, roles=FakeRoleStore())
    seen: list[AuthState] = []
    subscription = resolver.subscribe(seen.append)

    async with resolver:
        await resolver.wait_resolved()
        subscription.unsubscribe()
        provider.emit(AuthEventKind.signed_in, make_session("u1"))

    assert len(seen) == 1
    assert seen[0].loading is False

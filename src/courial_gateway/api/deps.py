"""
courial_gateway.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Expose settings, DB sessions, the shared upstream HTTP client and the role store.
- Build Courial clients lazily so missing keys surface only where they are needed.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from courial_gateway.auth.roles import SqlRoleStore
from courial_gateway.courial.client import CourialClient
from courial_gateway.errors import ConfigurationError
from courial_gateway.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Set once in `api.app.create_app`; tests inject their own Settings there.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http  # type: ignore[attr-defined]


def role_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> SqlRoleStore:
    return SqlRoleStore(session_factory)


class CourialClients:
    """
    The SMS/OTP endpoints and the user endpoints authenticate with different keys.
    """

    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def sms(self) -> CourialClient:
        if not self._settings.courial_sms_api_key:
            raise ConfigurationError(message="API key not configured")
        return CourialClient(http=self._http, api_key=self._settings.courial_sms_api_key)

    def users(self) -> CourialClient:
        if not self._settings.courial_api_security_key:
            raise ConfigurationError(message="API security key not configured")
        return CourialClient(http=self._http, api_key=self._settings.courial_api_security_key)


def courial_clients(
    settings: Settings = Depends(settings_dep),
    http: httpx.AsyncClient = Depends(http_client),
) -> CourialClients:
    return CourialClients(settings=settings, http=http)

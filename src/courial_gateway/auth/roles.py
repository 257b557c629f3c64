"""
courial_gateway.auth.roles

Role lookup boundary.

Responsibilities:
- Define the role-store contract used by the session resolver.
- Provide `SqlRoleStore`, backed by the `user_roles` table.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from courial_gateway.db.repositories.user_roles import UserRoleRepo


class RoleStore(Protocol):
    async def has_role(self, user_id: str, role_name: str) -> bool: ...


class SqlRoleStore:
    """
    Each call opens its own short-lived session: lookups are independent point
    queries and may run concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def has_role(self, user_id: str, role_name: str) -> bool:
        if not user_id:
            raise ValueError("user_id must be non-empty")
        async with self._session_factory() as session:
            return await UserRoleRepo(session).has_role(user_id=user_id, role=role_name)

    async def grant(self, user_id: str, role_name: str) -> None:
        async with self._session_factory() as session:
            await UserRoleRepo(session).grant(user_id=user_id, role=role_name)
            await session.commit()

    async def revoke(self, user_id: str, role_name: str) -> None:
        async with self._session_factory() as session:
            await UserRoleRepo(session).revoke(user_id=user_id, role=role_name)
            await session.commit()

"""
courial_gateway.db.repositories.user_roles

Repository for `UserRole` grants.

Responsibilities:
- Point lookup of a (user_id, role) grant.
- Idempotent grant and revoke for seeding/admin tooling.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from courial_gateway.db.models import UserRole


class UserRoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *, user_id: str, role: str) -> UserRole | None:
        stmt = select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def has_role(self, *, user_id: str, role: str) -> bool:
        return await self.get(user_id=user_id, role=role) is not None

    async def grant(self, *, user_id: str, role: str) -> UserRole:
        existing = await self.get(user_id=user_id, role=role)
        if existing is not None:
            return existing
        grant = UserRole(user_id=user_id, role=role)
        self._session.add(grant)
        await self._session.flush()
        return grant

    async def revoke(self, *, user_id: str, role: str) -> bool:
        stmt = delete(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
        result = await self._session.execute(stmt)
        return bool(result.rowcount)


# --- Module Notes -----------------------------------------------------------
# Commit is the caller's responsibility (see `auth.roles.SqlRoleStore`).

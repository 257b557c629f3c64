"""
courial_gateway.db.models

Persistence schema for the role store.

Responsibilities:
- Define `UserRole`: one row per (user_id, role) grant.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import String, UniqueConstraint, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from courial_gateway.db.base import Base


def _utcnow() -> datetime:
    return datetime.utcnow()


class UserRole(Base):
    __tablename__ = "user_roles"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Auth provider user id (opaque string; phone identities use a uuid5).
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    # Point lookups rely on at most one row per pair.
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)


# --- Module Notes -----------------------------------------------------------
# Role names are free-form strings; the admin role name comes from settings.

"""
alembic.env

Alembic migration environment for the role store.

Notes:
- Executed by Alembic, not imported by the FastAPI runtime.
- Alembic's sync engine is used, so point `COURIAL_DATABASE_URL` (or the ini url) at a
  sync driver when migrating.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from courial_gateway.db import models  # noqa: F401  # ensure models are registered on Base.metadata
from courial_gateway.db.base import Base
from courial_gateway.settings import Settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _get_database_url() -> str:
    if "COURIAL_DATABASE_URL" in os.environ:
        return os.environ["COURIAL_DATABASE_URL"]
    # Async drivers cannot run under Alembic's sync engine.
    return Settings().database_url.replace("+aiosqlite", "")


def run_migrations_offline() -> None:
    context.configure(
        url=_get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = _get_database_url()
    connectable = engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

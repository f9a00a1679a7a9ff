"""Alembic environment configuration for async migrations."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from authcore.core.settings import DatabaseSettings
from authcore.db.base import BaseEntity
from authcore.db.models_token import RefreshTokenEntity
from authcore.db.models_user import AuthProviderEntity, UserEntity

_registered = (RefreshTokenEntity, AuthProviderEntity, UserEntity)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseEntity.metadata


def run_migrations_offline() -> None:
    """Emit SQL for the pending revisions without connecting."""
    url = config.get_main_option("sqlalchemy.url") or DatabaseSettings().async_url
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Apply pending revisions over an async engine."""
    engine = create_async_engine(DatabaseSettings().async_url)
    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())

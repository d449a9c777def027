"""Alembic environment: runs migrations over the async engine."""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context

from relay.shared.database import create_engine

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# The club tables are owned by the website; only triggers are managed here
target_metadata = None


def _run(connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_engine(config.get_main_option("sqlalchemy.url") or None)
    async with engine.connect() as connection:
        await connection.run_sync(_run)
    await engine.dispose()


asyncio.run(run_migrations_online())

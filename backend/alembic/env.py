"""
Alembic Migration Environment
===============================

What:  Runs ShutterDesk migrations through the async engine.
How:   The URL comes from DATABASE_URL via Settings, never from alembic.ini.
Who:   `alembic upgrade head` (run from backend/).
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from shutterdesk.config import settings
from shutterdesk.database import Base

# Import all models so Alembic can detect them for --autogenerate.
# models/ has no __init__, so each module is imported explicitly.
from shutterdesk.models.client import Client  # noqa: F401
from shutterdesk.models.inquiry import ContactInquiry  # noqa: F401
from shutterdesk.models.invoice import Invoice  # noqa: F401
from shutterdesk.models.portfolio import PortfolioItem  # noqa: F401
from shutterdesk.models.session import AuthSession  # noqa: F401
from shutterdesk.models.user import User  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    """Emit SQL to stdout (`alembic upgrade head --sql`) without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=settings.database_url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())

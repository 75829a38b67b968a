"""Alembic environment configuration for tenant schemas

The target schema comes from `-x schema=<name>` or the TENANT_SCHEMA
environment variable. Tables are created with an unqualified name under a
search_path pinned to that schema, and the version table lives inside it, so
every tenant schema carries its own migration history.
"""

from logging.config import fileConfig
import asyncio
import os
import re

from alembic import context
from sqlalchemy import pool, text
from sqlalchemy.ext.asyncio import create_async_engine

from honeycert.models.tenant_user import TenantSQLModel

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = TenantSQLModel.metadata

SCHEMA_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def get_schema() -> str:
    schema = context.get_x_argument(as_dictionary=True).get("schema") or os.environ.get("TENANT_SCHEMA")
    if not schema or not SCHEMA_NAME_PATTERN.match(schema):
        raise RuntimeError(f"A valid tenant schema is required (-x schema=<name>), got {schema!r}")
    return schema


def get_url() -> str:
    url = os.environ.get("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    return url.replace("postgresql://", "postgresql+asyncpg://")


def run_migrations_offline():
    """Run migrations in 'offline' mode"""
    schema = get_schema()
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        version_table_schema=schema,
    )

    with context.begin_transaction():
        context.execute(f'SET search_path TO "{schema}"')
        context.run_migrations()


def do_run_migrations(connection, schema: str):
    connection.execute(text(f'SET search_path TO "{schema}"'))
    # search_path is set outside the migration transaction
    connection.commit()

    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        version_table_schema=schema,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    """Run migrations in 'online' mode over the async driver"""
    schema = get_schema()
    connectable = create_async_engine(get_url(), poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations, schema)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())

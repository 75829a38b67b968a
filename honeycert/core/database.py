"""
Database configuration and session management

Three kinds of connections live here:
- the global engine, used through the ORM for admins, confirmations and OTPs
- the administrative engine, used for schema DDL (CREATE/DROP SCHEMA)
- tenant sessions, the global engine with its tables translated into one tenant schema
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from honeycert.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

# Create async engine
async_engine = create_async_engine(
    settings.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://"),
    echo=settings.DEBUG,
    future=True,
)

# Create async session factory
async_session_maker = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@lru_cache()
def get_admin_engine() -> AsyncEngine:
    """Engine for the administrative connection, in autocommit mode for DDL"""
    return create_async_engine(
        settings.admin_database_url.replace("postgresql://", "postgresql+asyncpg://"),
        isolation_level="AUTOCOMMIT",
        pool_pre_ping=True,
    )


async def get_session() -> AsyncIterator[AsyncSession]:
    """Dependency to get database session"""
    async with async_session_maker() as session:
        yield session


async def ping(session: AsyncSession) -> bool:
    """Return True when the store answers a trivial query"""
    try:
        await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connectivity check failed: {e}")
        return False


class TenantDatabase:
    """Connector yielding sessions scoped to one tenant schema"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @asynccontextmanager
    async def session(self, schema_name: str) -> AsyncIterator[AsyncSession]:
        scoped_engine = self.engine.execution_options(
            schema_translate_map={None: schema_name}
        )
        async with AsyncSession(scoped_engine, expire_on_commit=False) as session:
            yield session


@lru_cache()
def get_tenant_database() -> TenantDatabase:
    return TenantDatabase(async_engine)

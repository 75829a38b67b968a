"""
Tenant schema lifecycle on the administrative connection
"""

from typing import List, Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
import structlog

from honeycert.core.exceptions import NamespaceCreationError, NamespaceExistsError

logger = structlog.get_logger(__name__)


class SchemaManager(Protocol):
    async def exists(self, schema_name: str) -> bool: ...

    async def create(self, schema_name: str) -> None: ...

    async def drop(self, schema_name: str) -> None: ...

    async def list_schemas(self) -> List[str]: ...


class PostgresSchemaManager:
    """Creates and drops tenant schemas directly against PostgreSQL"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    def _quote(self, schema_name: str) -> str:
        return self.engine.dialect.identifier_preparer.quote_identifier(schema_name)

    async def exists(self, schema_name: str) -> bool:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT 1 FROM information_schema.schemata WHERE schema_name = :name"),
                {"name": schema_name},
            )
            return result.first() is not None

    async def create(self, schema_name: str) -> None:
        """Create the schema; NamespaceExistsError if it is already there"""
        try:
            if await self.exists(schema_name):
                raise NamespaceExistsError(schema_name)

            async with self.engine.connect() as conn:
                await conn.execute(text(f"CREATE SCHEMA {self._quote(schema_name)}"))
                await conn.commit()
        except NamespaceExistsError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Schema creation error for '{schema_name}': {e}")
            raise NamespaceCreationError() from e

        logger.info(f"Schema '{schema_name}' created")

    async def drop(self, schema_name: str) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text(f"DROP SCHEMA IF EXISTS {self._quote(schema_name)} CASCADE"))
            await conn.commit()
        logger.info(f"Schema '{schema_name}' dropped")

    async def list_schemas(self) -> List[str]:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                text(
                    "SELECT schema_name FROM information_schema.schemata "
                    "WHERE schema_name NOT IN ('public', 'information_schema') "
                    "AND schema_name NOT LIKE 'pg\\_%'"
                )
            )
            return [row[0] for row in result]

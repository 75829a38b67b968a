"""
Reconciliation job for admin <-> tenant schema consistency

Each admin row in the global schema points at a tenant schema, and the tenant's
bootstrap user points back at the admin. No database constraint spans the two
schemas, so this job reports admins whose schema is missing or whose schema has
no bootstrap user for them. It only reads.

Run periodically (e.g. via cron).
"""

import asyncio
import sys
from typing import Any, Dict, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from honeycert.core.database import TenantDatabase
from honeycert.models.admin import Admin
from honeycert.models.tenant_user import BeeUser
from honeycert.services.schema_manager import SchemaManager

logger = structlog.get_logger(__name__)


async def reconcile_tenants(
    session: AsyncSession,
    schema_manager: SchemaManager,
    tenant_db: TenantDatabase,
) -> Dict[str, Any]:
    """Return the admins whose tenant side is missing or broken"""
    admins = (await session.exec(select(Admin).order_by(Admin.id))).all()

    missing_schema: List[Dict] = []
    missing_admin_user: List[Dict] = []
    unreadable: List[Dict] = []

    for admin in admins:
        entry = {"admin_id": admin.id, "schema_name": admin.schema_name}
        if not await schema_manager.exists(admin.schema_name):
            logger.warning(f"Schema '{admin.schema_name}' of admin {admin.id} does not exist")
            missing_schema.append(entry)
            continue

        try:
            async with tenant_db.session(admin.schema_name) as tenant_session:
                admin_user = (
                    await tenant_session.exec(
                        select(BeeUser).where(BeeUser.admin_id == admin.id, BeeUser.is_admin == True)  # noqa: E712
                    )
                ).first()
        except Exception as e:
            logger.error(f"Could not read schema '{admin.schema_name}': {e}")
            unreadable.append({**entry, "error": str(e)})
            continue

        if admin_user is None:
            logger.warning(f"No admin user for admin {admin.id} in schema '{admin.schema_name}'")
            missing_admin_user.append(entry)

    known = {admin.schema_name for admin in admins}
    orphan_schemas = sorted(set(await schema_manager.list_schemas()) - known)
    for schema_name in orphan_schemas:
        logger.warning(f"Schema '{schema_name}' has no admin")

    return {
        "checked": len(admins),
        "missing_schema": missing_schema,
        "missing_admin_user": missing_admin_user,
        "unreadable": unreadable,
        "orphan_schemas": orphan_schemas,
    }


async def run() -> Dict[str, Any]:
    from honeycert.core.database import async_session_maker, get_admin_engine, get_tenant_database
    from honeycert.services.schema_manager import PostgresSchemaManager

    async with async_session_maker() as session:
        return await reconcile_tenants(
            session,
            PostgresSchemaManager(get_admin_engine()),
            get_tenant_database(),
        )


def main():
    """Main entry point for the reconciliation job"""
    logger.info("Starting tenant reconciliation job")

    try:
        results = asyncio.run(run())
    except Exception as e:
        logger.error(f"Fatal error in reconciliation job: {e}")
        sys.exit(1)

    logger.info("Tenant reconciliation complete", **{k: (v if isinstance(v, int) else len(v)) for k, v in results.items()})
    if results["missing_schema"] or results["missing_admin_user"] or results["unreadable"]:
        sys.exit(2)


if __name__ == "__main__":
    main()

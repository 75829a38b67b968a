"""
Bootstrap user repair for an existing tenant
"""

from typing import Tuple

from sqlmodel import select
import structlog

from honeycert.core.database import TenantDatabase
from honeycert.models.admin import Admin
from honeycert.models.tenant_user import BeeUser

logger = structlog.get_logger(__name__)


async def ensure_tenant_admin_user(tenant_db: TenantDatabase, admin: Admin) -> Tuple[BeeUser, bool]:
    """Return the admin's user in their tenant schema, creating it when missing.

    The second element is True when the row was created by this call.
    """
    async with tenant_db.session(admin.schema_name) as tenant_session:
        result = await tenant_session.exec(select(BeeUser).where(BeeUser.email == admin.email))
        existing = result.first()
        if existing is not None:
            return existing, False

        admin_user = BeeUser(
            firstname=admin.firstname,
            lastname=admin.lastname,
            email=admin.email,
            phonenumber=admin.phonenumber,
            password=admin.password,
            role="admin",
            is_admin=True,
            admin_id=admin.id,
            is_confirmed=True,
            is_profile_complete=True,
        )
        tenant_session.add(admin_user)
        await tenant_session.commit()
        await tenant_session.refresh(admin_user)

    logger.info(f"Admin {admin.id} registered as user in schema '{admin.schema_name}'")
    return admin_user, True

"""
Confirmation tokens and the tenant side of admin confirmation
"""

import secrets
from datetime import timedelta

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from honeycert.core.database import TenantDatabase
from honeycert.core.dates import utc_now
from honeycert.models.confirmation import AdminConfirmation
from honeycert.models.tenant_user import BeeUser

logger = structlog.get_logger(__name__)


def new_confirmation_token() -> str:
    return secrets.token_urlsafe(32)


async def issue_confirmation_token(
    session: AsyncSession,
    admin_id: int,
    ttl_hours: int = 24,
) -> AdminConfirmation:
    """Persist a fresh token for the admin, valid for ttl_hours"""
    confirmation = AdminConfirmation(
        admin_id=admin_id,
        token=new_confirmation_token(),
        expires_at=utc_now() + timedelta(hours=ttl_hours),
    )
    session.add(confirmation)
    await session.commit()
    await session.refresh(confirmation)
    return confirmation


async def mark_tenant_admin_confirmed(
    tenant_db: TenantDatabase,
    schema_name: str,
    admin_id: int,
) -> bool:
    """Flag the bootstrap user pointing at admin_id as confirmed; False if it is missing"""
    async with tenant_db.session(schema_name) as tenant_session:
        result = await tenant_session.exec(
            select(BeeUser).where(BeeUser.admin_id == admin_id, BeeUser.is_admin == True)  # noqa: E712
        )
        admin_user = result.first()
        if admin_user is None:
            logger.warning(f"Admin user for admin {admin_id} not found in schema '{schema_name}'")
            return False

        admin_user.is_confirmed = True
        admin_user.updated_at = utc_now()
        tenant_session.add(admin_user)
        await tenant_session.commit()

    logger.info(f"Admin user confirmed in schema '{schema_name}'")
    return True

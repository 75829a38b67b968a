"""
Phone verification gate for phone-based admin registration
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from honeycert.core.dates import utc_now
from honeycert.models.otp import AdminOTP, OTPPurpose

logger = structlog.get_logger(__name__)


async def find_verified_code(
    session: AsyncSession,
    phone: str,
    window_minutes: int = 10,
    now: Optional[datetime] = None,
) -> Optional[AdminOTP]:
    """Most recently used phone code for this number issued within the window"""
    cutoff = (now or utc_now()) - timedelta(minutes=window_minutes)
    result = await session.exec(
        select(AdminOTP)
        .where(
            AdminOTP.identifier == phone,
            AdminOTP.type == OTPPurpose.PHONE.value,
            AdminOTP.used_at != None,  # noqa: E711
            AdminOTP.created_at >= cutoff,
        )
        .order_by(AdminOTP.used_at.desc())
    )
    return result.first()


async def is_phone_verified(
    session: AsyncSession,
    phone: str,
    window_minutes: int = 10,
    now: Optional[datetime] = None,
) -> bool:
    verified = await find_verified_code(session, phone, window_minutes, now) is not None
    logger.debug(f"Phone verification check for {phone[-4:]}: {verified}")
    return verified

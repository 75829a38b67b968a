"""
Phone one-time code API endpoints
"""

import secrets
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from honeycert.core.config import Settings, get_settings
from honeycert.core.database import get_session
from honeycert.core.dates import utc_now
from honeycert.core.dependencies import get_sms_sender
from honeycert.models.otp import AdminOTP, OTPPurpose
from honeycert.schemas.auth import MessageResponse
from honeycert.schemas.otp import SendOTPRequest, VerifyOTPRequest
from honeycert.services.sms import SmsSender
from honeycert.services.validation import is_valid_phone, normalize_phone

logger = structlog.get_logger(__name__)
router = APIRouter()

OTP_LENGTH = 6


def generate_otp(length: int = OTP_LENGTH) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def _require_phone(phone_number) -> str:
    if not phone_number:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number is required"
        )
    phone = normalize_phone(phone_number)
    if not is_valid_phone(phone):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid phone number format. Use international format (e.g. +15551234567)"
        )
    return phone


@router.post("/send", response_model=MessageResponse)
async def send_otp(
    payload: SendOTPRequest,
    session: AsyncSession = Depends(get_session),
    sms_sender: SmsSender = Depends(get_sms_sender),
    settings: Settings = Depends(get_settings),
):
    """Send a verification code to a phone number"""
    phone = _require_phone(payload.phone_number)

    # Only the latest code for a number is valid
    previous = await session.exec(
        select(AdminOTP).where(
            AdminOTP.identifier == phone,
            AdminOTP.type == OTPPurpose.PHONE.value,
            AdminOTP.used_at == None,  # noqa: E711
        )
    )
    for old in previous.all():
        await session.delete(old)

    code = generate_otp()
    session.add(
        AdminOTP(
            identifier=phone,
            type=OTPPurpose.PHONE.value,
            otp=code,
            expires_at=utc_now() + timedelta(minutes=settings.OTP_TTL_MINUTES),
        )
    )
    await session.commit()

    message = f"Your verification code is {code}. It expires in {settings.OTP_TTL_MINUTES} minutes."
    if not await sms_sender.send(phone, message):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send verification code"
        )

    logger.info(f"Verification code sent to phone ending {phone[-4:]}")
    return MessageResponse(message="Verification code sent successfully")


@router.post("/verify", response_model=MessageResponse)
async def verify_otp(
    payload: VerifyOTPRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Verify a phone code; a verified code unlocks phone registration for a short window"""
    phone = _require_phone(payload.phone_number)
    if not payload.otp:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Verification code is required"
        )

    code = (
        await session.exec(
            select(AdminOTP)
            .where(
                AdminOTP.identifier == phone,
                AdminOTP.type == OTPPurpose.PHONE.value,
                AdminOTP.used_at == None,  # noqa: E711
            )
            .order_by(AdminOTP.created_at.desc(), AdminOTP.id.desc())
        )
    ).first()

    if not code:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No verification code found for this phone number"
        )

    if code.expires_at < utc_now():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Verification code has expired"
        )

    if code.attempts >= settings.OTP_MAX_ATTEMPTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Too many failed attempts. Please request a new code."
        )

    # compare_digest only takes ASCII str; bytes accept any input
    if not secrets.compare_digest(code.otp.encode(), payload.otp.strip().encode()):
        code.attempts += 1
        session.add(code)
        await session.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification code"
        )

    code.used_at = utc_now()
    session.add(code)
    await session.commit()

    logger.info(f"Phone ending {phone[-4:]} verified")
    return MessageResponse(message="Phone number verified successfully")

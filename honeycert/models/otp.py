"""
One-time verification codes gating phone-based registration
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, ForeignKey, Integer
from datetime import datetime
from typing import Optional
from enum import Enum

from honeycert.core.dates import UTCDateTime, utc_now


class OTPPurpose(str, Enum):
    PHONE = "phone"


class AdminOTP(SQLModel, table=True):
    """Short-lived code sent to a phone number; linked to an admin once claimed"""

    __tablename__ = "admin_otps"

    id: Optional[int] = Field(default=None, primary_key=True)
    admin_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=True, index=True),
    )
    identifier: str = Field(index=True, nullable=False, max_length=32)
    type: str = Field(default=OTPPurpose.PHONE.value, nullable=False, max_length=20)
    otp: str = Field(nullable=False, max_length=32)
    expires_at: datetime = Field(nullable=False, sa_type=UTCDateTime)
    used_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    attempts: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

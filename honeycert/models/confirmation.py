"""
Email confirmation tokens for admins registered with an email address
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, ForeignKey, Integer
from datetime import datetime
from typing import Optional

from honeycert.core.dates import UTCDateTime, ensure_utc, utc_now


class AdminConfirmation(SQLModel, table=True):
    """Single-use confirmation token, valid for 24 hours"""

    __tablename__ = "admin_confirmations"

    id: Optional[int] = Field(default=None, primary_key=True)
    admin_id: int = Field(
        sa_column=Column(Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    token: str = Field(unique=True, index=True, nullable=False, max_length=64)
    expires_at: datetime = Field(nullable=False, sa_type=UTCDateTime)
    confirmed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) > ensure_utc(self.expires_at)

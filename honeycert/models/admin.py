"""
Admin model - one row per registered tenant administrator, in the global schema
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum

from honeycert.core.dates import UTCDateTime, utc_now


class AdminRole(str, Enum):
    """Administrator roles"""
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Admin(SQLModel, table=True):
    """Tenant administrator; owns exactly one tenant schema"""

    __tablename__ = "admins"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Identity
    firstname: str = Field(nullable=False, max_length=100)
    lastname: str = Field(nullable=False, max_length=100)
    email: str = Field(unique=True, index=True, nullable=False, max_length=255)
    phonenumber: Optional[str] = Field(default=None, max_length=32)
    password: str = Field(nullable=False)
    role: str = Field(default=AdminRole.ADMIN.value, nullable=False, max_length=20)

    # Tenant schema
    schema_name: str = Field(unique=True, index=True, nullable=False, max_length=63)
    display_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    max_users: int = Field(default=1000)
    max_storage: float = Field(default=10.0, description="Storage quota in GB")

    # Status: true once the email is confirmed or the phone was verified
    is_active: bool = Field(default=False, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

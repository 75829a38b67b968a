"""
Tenant schema models

These tables live inside every tenant schema, never in the global one, so
they are mapped on their own registry and metadata.
"""

from sqlalchemy.orm import registry
from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional

from honeycert.core.dates import UTCDateTime, utc_now


class TenantSQLModel(SQLModel, registry=registry()):
    """Base for tables created in each tenant schema"""


class BeeUser(TenantSQLModel, table=True):
    """User of a tenant workspace.

    admin_id points at admins.id in the global schema. No foreign key can
    enforce it across schemas; the reconciliation job checks it instead.
    """

    __tablename__ = "beeusers"

    id: Optional[int] = Field(default=None, primary_key=True)
    firstname: str = Field(nullable=False, max_length=100)
    lastname: str = Field(nullable=False, max_length=100)
    email: str = Field(unique=True, index=True, nullable=False, max_length=255)
    phonenumber: Optional[str] = Field(default=None, max_length=32)
    password: str = Field(nullable=False)
    role: str = Field(default="user", nullable=False, max_length=20)

    is_admin: bool = Field(default=False)
    admin_id: Optional[int] = Field(default=None, index=True)
    is_confirmed: bool = Field(default=False)
    is_profile_complete: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

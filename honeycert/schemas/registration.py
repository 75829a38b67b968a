"""
Pydantic schemas for admin registration
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Base for payloads exchanged in camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SchemaConfig(CamelModel):
    """Optional tenant schema settings supplied at registration"""
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    max_users: Optional[int] = Field(default=None, ge=1)
    max_storage: Optional[float] = Field(default=None, gt=0)


class AdminRegistrationRequest(CamelModel):
    """Admin registration payload.

    Every field is optional at the schema level so that missing or malformed
    fields are reported by the registration validator with a 400 and a
    readable reason, not by request parsing.
    """
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    phonenumber: Optional[str] = None
    password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("password", "credential")
    )
    role: Optional[str] = None
    admin_code: Optional[str] = None
    phone_verified: Optional[bool] = None
    namespace: Optional[SchemaConfig] = Field(
        default=None, validation_alias=AliasChoices("schema", "namespace")
    )

    @property
    def registration_method(self) -> str:
        return "email" if self.email and self.email.strip() else "phone"


class AdminSummary(CamelModel):
    id: int
    firstname: str
    lastname: str
    email: str
    role: str
    schema_name: str
    created_at: datetime
    is_confirmed: bool


class TenantUserSummary(CamelModel):
    id: int
    firstname: str
    lastname: str
    email: str
    role: str
    is_admin: bool
    admin_id: Optional[int]
    created_at: datetime
    is_confirmed: bool
    is_profile_complete: bool


class RegistrationData(CamelModel):
    admin: AdminSummary
    admin_user: Optional[TenantUserSummary] = None


class RegistrationResponse(CamelModel):
    success: bool = True
    requires_confirmation: bool
    registration_method: str
    message: str
    data: RegistrationData
    warning: Optional[str] = None


class RegisterAsUserResponse(CamelModel):
    success: bool = True
    message: str
    user: TenantUserSummary
    schema_name: Optional[str] = Field(default=None, alias="schema")

"""
Pydantic schemas for admin login and email confirmation
"""

from pydantic import Field
from typing import Optional

from honeycert.schemas.registration import CamelModel


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AdminIdentity(CamelModel):
    id: int
    firstname: str
    lastname: str
    email: str
    role: str
    schema_name: Optional[str] = None


class SchemaInfo(CamelModel):
    name: str
    display_name: str
    description: Optional[str] = None


class LoginData(CamelModel):
    token: str
    admin: AdminIdentity
    schema_info: SchemaInfo = Field(alias="schema")


class LoginResponse(CamelModel):
    success: bool = True
    message: str
    data: LoginData


class ConfirmEmailRequest(CamelModel):
    token: Optional[str] = None


class ConfirmEmailResponse(CamelModel):
    success: bool = True
    message: str
    admin: AdminIdentity


class ResendConfirmationRequest(CamelModel):
    email: Optional[str] = None


class VerifyResponse(CamelModel):
    success: bool = True
    token: str
    admin: AdminIdentity


class MessageResponse(CamelModel):
    success: bool = True
    message: str

"""
Schemas for API responses and requests
"""

from honeycert.schemas.registration import (
    AdminRegistrationRequest,
    AdminSummary,
    RegistrationData,
    RegistrationResponse,
    SchemaConfig,
    TenantUserSummary,
)
from honeycert.schemas.auth import (
    AdminIdentity,
    ConfirmEmailRequest,
    ConfirmEmailResponse,
    LoginData,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResendConfirmationRequest,
    SchemaInfo,
    VerifyResponse,
)
from honeycert.schemas.otp import SendOTPRequest, VerifyOTPRequest

__all__ = [
    "AdminRegistrationRequest",
    "AdminSummary",
    "RegistrationData",
    "RegistrationResponse",
    "SchemaConfig",
    "TenantUserSummary",
    "AdminIdentity",
    "ConfirmEmailRequest",
    "ConfirmEmailResponse",
    "LoginData",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ResendConfirmationRequest",
    "SchemaInfo",
    "VerifyResponse",
    "SendOTPRequest",
    "VerifyOTPRequest",
]

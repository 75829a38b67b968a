"""
Pydantic schemas for phone one-time codes
"""

from typing import Optional

from honeycert.schemas.registration import CamelModel


class SendOTPRequest(CamelModel):
    phone_number: Optional[str] = None


class VerifyOTPRequest(CamelModel):
    phone_number: Optional[str] = None
    otp: Optional[str] = None

# backend/app/schemas/otp.py
"""
Pydantic schemas for the OTP and emergency recovery endpoints.

Phone numbers are E.164: a leading '+', no leading zero, at most 15 digits.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from backend.app.security.otp_codes import is_well_formed_code, normalize_otp_code

PHONE_PATTERN = r"^\+[1-9]\d{1,14}$"


class SendOtpRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN, examples=["+573001234567"])


class SendOtpResponse(BaseModel):
    success: bool
    message: str


class VerifyOtpRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    code: str = Field(..., description="6-digit code received by SMS")

    @field_validator("code", mode="before")
    @classmethod
    def code_must_be_six_digits(cls, v):
        if not isinstance(v, str) or not is_well_formed_code(v):
            raise ValueError("code must be exactly 6 digits")
        return normalize_otp_code(v)


class VerifyOtpResponse(BaseModel):
    """token, keyshare and session_id are only present when success is true."""
    success: bool
    message: str
    token: Optional[str] = None
    keyshare: Optional[str] = None
    session_id: Optional[str] = None


class EmergencyRecoveryRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    wallet_address: str = Field(..., min_length=1, max_length=100)
    admin_code: str = Field(..., min_length=1)


class EmergencyRecoveryResponse(BaseModel):
    success: bool
    message: str
    keyshare: str
    token: str
    session_id: str

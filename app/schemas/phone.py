"""
Pydantic schemas for phone verification endpoints.

Field names are camelCase on the wire to match the web client.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.phone_verification import VerificationState


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class SendCodeRequest(CamelModel):
    """Request a verification code for a phone number"""
    phone_number: str = Field(..., description="Phone number as entered by the user")

    @field_validator('phone_number')
    @classmethod
    def validate_min_length(cls, v: str) -> str:
        if len(v) < 10:
            raise ValueError('Phone number must be at least 10 digits')
        return v


class VerifyCodeRequest(CamelModel):
    """Submit the 6-digit code received on the phone"""
    phone_number: str
    code: str = Field(..., description="6-digit verification code")
    profile_id: Optional[int] = Field(None, description="Existing profile to stamp verified")

    @field_validator('code')
    @classmethod
    def validate_code_format(cls, v: str) -> str:
        if not re.fullmatch(r'\d{6}', v):
            raise ValueError('Code must be 6 digits')
        return v


class PhoneVerificationResponse(CamelModel):
    success: bool
    message: str


class PhoneVerificationStatusResponse(CamelModel):
    phone_number: str
    state: VerificationState

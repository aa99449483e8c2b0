"""
Pydantic schemas for matrimony profiles.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.phone import CamelModel


class ProfileBase(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    age: int = Field(..., ge=18, le=100)
    gender: str = Field(..., pattern=r'^(Male|Female)$')
    denomination: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    occupation: Optional[str] = None
    about_me: Optional[str] = None
    partner_preferences: Optional[str] = None
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None
    created_by: str = Field(..., min_length=1, description="Who manages the profile: Self, Parent, Sibling, ...")


class ProfileCreateRequest(ProfileBase):
    """Request schema for creating a profile"""
    pass


class ProfileUpdateRequest(CamelModel):
    """Partial update; only fields present in the body are changed"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=18, le=100)
    gender: Optional[str] = Field(None, pattern=r'^(Male|Female)$')
    denomination: Optional[str] = None
    location: Optional[str] = None
    occupation: Optional[str] = None
    about_me: Optional[str] = None
    partner_preferences: Optional[str] = None
    photo_url: Optional[str] = None
    phone_number: Optional[str] = None
    created_by: Optional[str] = None


class ProfileResponse(ProfileBase):
    id: int
    user_id: UUID
    phone_verified: bool
    created_at: Optional[datetime] = None

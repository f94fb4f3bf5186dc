"""Pydantic schemas for user profiles."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.base import CamelModel


class UserProfileCreate(CamelModel):
    """Body of ``POST /api/user-profile/create``."""

    user_id: str = Field(min_length=1)
    email: str = Field(min_length=1)


class UserProfileResponse(CamelModel):
    """Schema for UserProfile API response."""

    user_id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    address: str = ""
    created_at: Optional[datetime] = None


class UserProfileCreateResponse(CamelModel):
    message: str
    user_profile: UserProfileResponse

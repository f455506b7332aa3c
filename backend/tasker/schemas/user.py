"""
Campus Tasker Backend - User Profile Schemas
============================================

What:  API contract for profiles, rating summaries and profile edits.
Who:   /api/users/* and /api/auth/me.

Visibility:
    Profiles are public. `email` and `phone` are filled in only when the
    caller is looking at their own profile; otherwise they are null.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class RatingSummary(BaseModel):
    """Aggregate of every review a user has received."""
    average_rating: Optional[float] = Field(
        default=None, description="Mean rating 1-5, null when there are no reviews"
    )
    review_count: int = Field(default=0, description="Number of reviews received")


class PublicUser(BaseModel):
    """Minimal identity shown next to tasks and reviews."""
    id: uuid.UUID
    name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    id: uuid.UUID = Field(description="User ID (same as the account ID)")
    name: str
    role: str = Field(description="poster, tasker, or both")
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    email: Optional[str] = Field(default=None, description="Only shown to the profile owner")
    phone: Optional[str] = Field(default=None, description="Only shown to the profile owner")
    rating: RatingSummary = Field(default_factory=RatingSummary)


class ProfileUpdate(BaseModel):
    """
    PATCH body for a profile. Omitted fields are left unchanged; explicit
    nulls clear bio, avatar_url and phone.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[Literal["poster", "tasker", "both"]] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)
    phone: Optional[str] = Field(default=None, max_length=32)

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}

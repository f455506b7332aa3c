"""
Campus Tasker Backend - Authentication Schemas
==============================================

What:  Sign-up / sign-in request bodies and the session response.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tasker.schemas.user import ProfileResponse

# Deliberately loose: one "@", something on each side, a dot in the domain
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str) -> str:
    email = value.strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValueError("Enter a valid email address")
    return email


class SignUpRequest(BaseModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=1, max_length=256)
    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=32)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class SignInRequest(BaseModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=1, max_length=256)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.strip().lower()


class SessionResponse(BaseModel):
    """
    Returned by sign-up and sign-in.

    The client sends `access_token` back as `Authorization: Bearer <token>`.
    """
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: ProfileResponse

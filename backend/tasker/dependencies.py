"""
Campus Tasker Backend - Request Dependencies
============================================

What:  FastAPI dependencies that turn the Authorization header into the
       caller's UserProfile.
How:   HTTPBearer(auto_error=False) extracts the token; AuthService checks
       it against auth_sessions. Failures raise AuthenticationError, which
       the global handler maps to 401 with `WWW-Authenticate: Bearer`.

    get_current_user   → UserProfile, 401 when missing or invalid
    get_optional_user  → UserProfile or None; an invalid token is still 401
    get_bearer_token   → the raw token (sign-out)
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tasker.database import get_db_session
from tasker.exceptions import AuthenticationError
from tasker.models.user import UserProfile
from tasker.services.auth_service import load_caller

bearer_scheme = HTTPBearer(auto_error=False, description="Session token from /api/auth/signin")


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await load_caller(db, token)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[UserProfile]:
    if credentials is None or not credentials.credentials:
        return None
    return await load_caller(db, credentials.credentials)

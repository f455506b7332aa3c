"""
Campus Tasker Backend - User Profile Route Handlers
===================================================

What:  Public profile pages: profile, rating, posted-task history.
       Reviews received live in routes/reviews.py.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasker.database import get_db_session
from tasker.dependencies import get_current_user, get_optional_user
from tasker.models.user import UserProfile
from tasker.schemas.common import ErrorResponse
from tasker.schemas.task import TaskResponse
from tasker.schemas.user import ProfileResponse, ProfileUpdate, RatingSummary
from tasker.services.profile_service import profile_service
from tasker.services.task_service import task_service

router = APIRouter(prefix="/api/users", tags=["Users"])

_NOT_FOUND = {404: {"description": "User not found", "model": ErrorResponse}}


@router.get(
    "/{user_id}",
    response_model=ProfileResponse,
    responses=_NOT_FOUND,
    summary="Get a user's profile",
    description="Email and phone are only included when you view your own profile.",
)
async def get_profile(
    user_id: UUID,
    caller: Optional[UserProfile] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.get_profile(db=db, user_id=user_id, caller=caller)


@router.patch(
    "/{user_id}",
    response_model=ProfileResponse,
    responses={
        **_NOT_FOUND,
        403: {"description": "Not your profile", "model": ErrorResponse},
    },
    summary="Edit your own profile",
)
async def update_profile(
    user_id: UUID,
    body: ProfileUpdate,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.update_profile(
        db=db, caller=caller, user_id=user_id, changes=body
    )


@router.get(
    "/{user_id}/rating",
    response_model=RatingSummary,
    responses=_NOT_FOUND,
    summary="Average rating and review count",
)
async def get_rating(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> RatingSummary:
    await profile_service.load_profile(db, user_id)
    return await profile_service.get_rating(db, user_id)


@router.get(
    "/{user_id}/tasks",
    response_model=List[TaskResponse],
    responses=_NOT_FOUND,
    summary="Tasks posted by a user, newest first",
)
async def list_tasks_by_poster(
    user_id: UUID,
    caller: Optional[UserProfile] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TaskResponse]:
    return await task_service.list_tasks_by_poster(db=db, user_id=user_id, caller=caller)

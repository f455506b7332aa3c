"""
Campus Tasker Backend - Review Route Handlers
=============================================

    POST /api/tasks/{task_id}/reviews   review the other participant (201)
    GET  /api/users/{user_id}/reviews   reviews a user has received
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasker.database import get_db_session
from tasker.dependencies import get_current_user
from tasker.models.user import UserProfile
from tasker.schemas.common import ErrorResponse
from tasker.schemas.review import ReviewCreate, ReviewResponse
from tasker.services.review_service import review_service

router = APIRouter(prefix="/api", tags=["Reviews"])


@router.post(
    "/tasks/{task_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Task not completed or you took no part in it", "model": ErrorResponse},
        404: {"description": "Task not found", "model": ErrorResponse},
        409: {"description": "Already reviewed", "model": ErrorResponse},
    },
    summary="Review the other participant of a completed task",
)
async def create_review(
    task_id: UUID,
    body: ReviewCreate,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewResponse:
    return await review_service.create_review(db=db, caller=caller, task_id=task_id, data=body)


@router.get(
    "/users/{user_id}/reviews",
    response_model=List[ReviewResponse],
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Reviews a user has received, newest first",
)
async def list_reviews_for_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[ReviewResponse]:
    return await review_service.list_reviews_for_user(db=db, user_id=user_id)

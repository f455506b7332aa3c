"""
Campus Tasker Backend - Task Route Handlers
===========================================

What:  Posting, browsing and editing tasks, plus the lifecycle actions
       accept / complete / unassign.
How:   Each handler resolves the caller, then delegates to TaskService.
       Policy checks and state checks happen in the service.

Error mapping (via global handlers):
    403  caller is not allowed (wrong user or wrong role)
    404  task does not exist
    409  task is in the wrong state, or another user got there first
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasker.database import get_db_session
from tasker.dependencies import get_current_user, get_optional_user
from tasker.models.user import UserProfile
from tasker.schemas.common import ErrorResponse
from tasker.schemas.task import TaskCreate, TaskListResponse, TaskResponse, TaskUpdate
from tasker.services.task_service import task_service

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])

_TASK_ERRORS = {
    403: {"description": "Not allowed for this caller", "model": ErrorResponse},
    404: {"description": "Task not found", "model": ErrorResponse},
    409: {"description": "Task is in the wrong state", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Deadline in the past", "model": ErrorResponse},
        403: {"description": "Your role cannot post tasks", "model": ErrorResponse},
    },
    summary="Post a new task",
)
async def create_task(
    body: TaskCreate,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TaskResponse:
    return await task_service.create_task(db=db, caller=caller, data=body)


@router.get(
    "",
    response_model=TaskListResponse,
    summary="Browse open tasks posted by others",
    description=(
        "Open tasks, newest first, excluding your own when signed in. "
        "Pass next_cursor back as ?cursor= for the following page."
    ),
)
async def browse_open_tasks(
    response: Response,
    limit: int = Query(default=20, ge=1, le=100, description="Items per page (max 100)"),
    cursor: Optional[str] = Query(
        default=None,
        description="ISO 8601 created_at of the last task on the previous page",
    ),
    sort: str = Query(
        default="created_at_desc",
        pattern="^created_at_(asc|desc)$",
        description="'created_at_desc' (newest first) or 'created_at_asc'",
    ),
    caller: Optional[UserProfile] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> TaskListResponse:
    result = await task_service.browse_open_tasks(
        db=db, caller=caller, limit=limit, cursor=cursor, sort=sort
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get(
    "/posted",
    response_model=List[TaskResponse],
    summary="Tasks you posted, with their assignments",
)
async def list_posted_tasks(
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TaskResponse]:
    return await task_service.list_posted_tasks(db=db, caller=caller)


@router.get(
    "/assigned",
    response_model=List[TaskResponse],
    summary="Tasks you accepted",
)
async def list_assigned_tasks(
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TaskResponse]:
    return await task_service.list_assigned_tasks(db=db, caller=caller)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    responses={404: _TASK_ERRORS[404]},
    summary="Get a single task",
)
async def get_task(
    task_id: UUID,
    caller: Optional[UserProfile] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> TaskResponse:
    return await task_service.get_task(db=db, task_id=task_id, caller=caller)


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    responses=_TASK_ERRORS,
    summary="Edit one of your open tasks",
)
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TaskResponse:
    return await task_service.update_task(db=db, caller=caller, task_id=task_id, changes=body)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_TASK_ERRORS,
    summary="Delete one of your tasks",
)
async def delete_task(
    task_id: UUID,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await task_service.delete_task(db=db, caller=caller, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{task_id}/accept",
    response_model=TaskResponse,
    responses=_TASK_ERRORS,
    summary="Accept an open task",
)
async def accept_task(
    task_id: UUID,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TaskResponse:
    return await task_service.accept_task(db=db, caller=caller, task_id=task_id)


@router.post(
    "/{task_id}/complete",
    response_model=TaskResponse,
    responses=_TASK_ERRORS,
    summary="Mark an accepted task as completed (poster only)",
)
async def mark_complete(
    task_id: UUID,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TaskResponse:
    return await task_service.mark_complete(db=db, caller=caller, task_id=task_id)


@router.post(
    "/{task_id}/unassign",
    response_model=TaskResponse,
    responses=_TASK_ERRORS,
    summary="Release an accepted task back to open",
)
async def unassign(
    task_id: UUID,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TaskResponse:
    return await task_service.unassign(db=db, caller=caller, task_id=task_id)

"""
Campus Tasker Backend - Task Service (Lifecycle Orchestrator)
=============================================================

What:  Creates, lists, edits and deletes tasks, and drives the lifecycle
       transitions accept / complete / unassign.
Who:   /api/tasks and /api/users/{id}/tasks routes; ReviewService loads
       tasks through `load_task`.

Lifecycle transitions:
    ┌────────┐  accept_task   ┌──────────┐  mark_complete  ┌───────────┐
    │  open  │───────────────▶│ accepted │────────────────▶│ completed │
    └────────┘◀───────────────└──────────┘                 └───────────┘
                   unassign

    Every transition is one conditional statement:
        UPDATE tasks SET status = :to WHERE id = :id AND status = :from
    A rowcount of 0 means another request moved the task first, which is
    reported as ConflictError. The matching assignment insert / update /
    delete runs in the same transaction (committed by get_db_session).

Authorization:
    Every read and write is checked against tasker.policies before the
    statement runs. The poster may complete the tasker's assignment row;
    that is the only cross-user write in the system.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import asc, delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasker import policies
from tasker.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    TaskerError,
    ValidationError,
)
from tasker.models.task import (
    STATUS_ACCEPTED,
    STATUS_COMPLETED,
    STATUS_OPEN,
    Task,
    TaskAssignment,
)
from tasker.models.user import UserProfile
from tasker.schemas.task import (
    AssignmentResponse,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from tasker.services.profile_service import profile_service

logger = logging.getLogger(__name__)

# Columns that may never be set to NULL through an update
_REQUIRED_FIELDS = ("title", "price")


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_deadline(deadline: Optional[datetime]) -> Optional[datetime]:
    if deadline is None:
        return None
    deadline = _as_utc(deadline)
    if deadline <= datetime.now(timezone.utc):
        raise ValidationError("Deadline must be in the future", field="deadline")
    return deadline


def to_task_response(task: Task, caller: Optional[UserProfile] = None) -> TaskResponse:
    """
    API view of a task. The assignment is only shown to callers allowed by
    the task_assignments select policy (the poster and the tasker).
    """
    assignment = None
    if task.assignment is not None and policies.allowed(
        "task_assignments", "select", caller, task
    ):
        assignment = AssignmentResponse.model_validate(task.assignment)

    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description,
        price=float(task.price),
        status=task.status,
        deadline=task.deadline,
        created_at=task.created_at,
        poster_id=task.poster_id,
        poster_name=task.poster.name,
        assignment=assignment,
    )


class TaskService:
    """
    Business logic for tasks and their assignments.

    Error Handling Strategy:
        Application errors (NotFound, PermissionDenied, Conflict, Validation)
        propagate unchanged. Any other SQLAlchemy failure is logged and
        wrapped in DatabaseError so internals never reach the client.
    """

    # ── Loading ───────────────────────────────────────────────────────────

    async def load_task(self, db: AsyncSession, task_id: UUID, refresh: bool = False) -> Task:
        """
        Fetch a task with its poster and assignment, or raise NotFoundError.

        refresh=True re-reads the row after a bulk UPDATE/DELETE so the
        in-session object reflects the new status and assignment.
        """
        query = select(Task).where(Task.id == task_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError(resource="task", resource_id=str(task_id))
        return task

    async def _list(self, db: AsyncSession, query) -> List[Task]:
        result = await db.execute(query.order_by(desc(Task.created_at)))
        return list(result.scalars().all())

    # ── Create / read ─────────────────────────────────────────────────────

    async def create_task(
        self,
        db: AsyncSession,
        caller: UserProfile,
        data: TaskCreate,
    ) -> TaskResponse:
        """
        Post a new task. Status is always 'open'.

        Raises:
            PermissionDeniedError: Caller's role is 'tasker' (→ 403)
            ValidationError:       Deadline not in the future (→ 400)
        """
        try:
            task = Task(
                poster_id=caller.id,
                poster=caller,
                title=data.title,
                description=data.description,
                price=data.price,
                status=STATUS_OPEN,
                deadline=_check_deadline(data.deadline),
                assignment=None,
            )
            policies.enforce("tasks", "insert", caller, task)

            db.add(task)
            await db.flush()
            logger.info("Task %s posted by %s (price=%s)", task.id, caller.id, task.price)
            return to_task_response(task, caller)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating task: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the task. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_task(
        self,
        db: AsyncSession,
        task_id: UUID,
        caller: Optional[UserProfile] = None,
    ) -> TaskResponse:
        try:
            task = await self.load_task(db, task_id)
            policies.enforce("tasks", "select", caller, task)
            return to_task_response(task, caller)
        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching task %s: %s", task_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the task. Please try again.",
                context={"task_id": str(task_id)},
            )

    async def browse_open_tasks(
        self,
        db: AsyncSession,
        caller: Optional[UserProfile] = None,
        limit: int = 20,
        cursor: Optional[str] = None,
        sort: str = "created_at_desc",
    ) -> TaskListResponse:
        """
        Open tasks posted by other users, paginated by created_at cursor.

        Query plan (default sort):
            SELECT ... FROM tasks JOIN users ON users.id = tasks.poster_id
            WHERE status = 'open' AND poster_id != :me AND created_at < :cursor
            ORDER BY created_at DESC LIMIT :limit + 1
            → idx_tasks_status, idx_tasks_created_at

        Fetches limit + 1 rows to learn has_more without a second query.
        next_cursor is the ISO created_at of the last row returned.
        """
        try:
            filters = [Task.status == STATUS_OPEN]
            if caller is not None:
                filters.append(Task.poster_id != caller.id)

            query = select(Task).where(*filters)

            if cursor:
                try:
                    cursor_dt = datetime.fromisoformat(cursor)
                except ValueError:
                    cursor_dt = None  # Invalid cursor, start from the beginning

                if cursor_dt:
                    if sort == "created_at_asc":
                        query = query.where(Task.created_at > cursor_dt)
                    else:
                        query = query.where(Task.created_at < cursor_dt)

            if sort == "created_at_asc":
                query = query.order_by(asc(Task.created_at))
            else:
                query = query.order_by(desc(Task.created_at))

            query = query.limit(limit + 1)
            result = await db.execute(query)
            tasks = list(result.scalars().all())

            count_result = await db.execute(select(func.count(Task.id)).where(*filters))
            total_count = count_result.scalar() or 0

            has_more = len(tasks) > limit
            if has_more:
                tasks = tasks[:limit]

            next_cursor = None
            if has_more and tasks:
                next_cursor = tasks[-1].created_at.isoformat()

            return TaskListResponse(
                tasks=[to_task_response(task, caller) for task in tasks],
                total_count=total_count,
                next_cursor=next_cursor,
                has_more=has_more,
            )

        except SQLAlchemyError as e:
            logger.error("Database error browsing tasks: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve tasks. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def list_posted_tasks(self, db: AsyncSession, caller: UserProfile) -> List[TaskResponse]:
        """The caller's own tasks, newest first, with assignments."""
        try:
            tasks = await self._list(db, select(Task).where(Task.poster_id == caller.id))
            return [to_task_response(task, caller) for task in tasks]
        except SQLAlchemyError as e:
            logger.error("Database error listing posted tasks: %s", str(e))
            raise DatabaseError(message="Could not retrieve your tasks. Please try again.")

    async def list_assigned_tasks(self, db: AsyncSession, caller: UserProfile) -> List[TaskResponse]:
        """Tasks the caller accepted (in progress or completed), newest first."""
        try:
            query = (
                select(Task)
                .join(TaskAssignment, TaskAssignment.task_id == Task.id)
                .where(TaskAssignment.tasker_id == caller.id)
            )
            tasks = await self._list(db, query)
            return [to_task_response(task, caller) for task in tasks]
        except SQLAlchemyError as e:
            logger.error("Database error listing assigned tasks: %s", str(e))
            raise DatabaseError(message="Could not retrieve your tasks. Please try again.")

    async def list_tasks_by_poster(
        self,
        db: AsyncSession,
        user_id: UUID,
        caller: Optional[UserProfile] = None,
    ) -> List[TaskResponse]:
        """Public task history shown on a profile page."""
        try:
            await profile_service.load_profile(db, user_id)
            tasks = await self._list(db, select(Task).where(Task.poster_id == user_id))
            return [to_task_response(task, caller) for task in tasks]
        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing tasks for %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve tasks. Please try again.",
                context={"user_id": str(user_id)},
            )

    # ── Edit / delete ─────────────────────────────────────────────────────

    async def update_task(
        self,
        db: AsyncSession,
        caller: UserProfile,
        task_id: UUID,
        changes: TaskUpdate,
    ) -> TaskResponse:
        """
        Edit an open task. Only the poster may edit, and only before anyone
        has accepted it.
        """
        try:
            task = await self.load_task(db, task_id)
            policies.enforce("tasks", "update", caller, task)

            if task.status != STATUS_OPEN:
                raise ConflictError(
                    "Only open tasks can be edited",
                    context={"status": task.status},
                )

            values: Dict[str, Any] = changes.model_dump(exclude_unset=True)
            for field in _REQUIRED_FIELDS:
                if field in values and values[field] is None:
                    raise ValidationError(f"{field} cannot be empty", field=field)
            if "deadline" in values:
                values["deadline"] = _check_deadline(values["deadline"])

            if values:
                result = await db.execute(
                    update(Task)
                    .where(Task.id == task_id, Task.status == STATUS_OPEN)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise ConflictError("Only open tasks can be edited")
                task = await self.load_task(db, task_id, refresh=True)
                logger.info("Task %s edited: %s", task_id, ", ".join(sorted(values)))

            return to_task_response(task, caller)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating task %s: %s", task_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the task. Please try again.",
                context={"task_id": str(task_id)},
            )

    async def delete_task(self, db: AsyncSession, caller: UserProfile, task_id: UUID) -> None:
        """
        Delete one of the caller's tasks.

        Refused while a tasker is working on it (status 'accepted'); the
        poster has to unassign first. Assignments and reviews go with the
        task through ON DELETE CASCADE.
        """
        try:
            task = await self.load_task(db, task_id)
            policies.enforce("tasks", "delete", caller, task)

            if task.status == STATUS_ACCEPTED:
                raise ConflictError(
                    "A task cannot be deleted while it is accepted; unassign it first",
                    context={"status": task.status},
                )

            result = await db.execute(
                delete(Task)
                .where(Task.id == task_id, Task.status != STATUS_ACCEPTED)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConflictError("The task changed while it was being deleted")

            # Row is gone; keep later get() calls in this session from returning it
            db.expunge(task)
            logger.info("Task %s deleted by %s", task_id, caller.id)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting task %s: %s", task_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the task. Please try again.",
                context={"task_id": str(task_id)},
            )

    # ── Lifecycle transitions ─────────────────────────────────────────────

    async def _transition(self, db: AsyncSession, task_id: UUID, from_status: str, to_status: str) -> None:
        result = await db.execute(
            update(Task)
            .where(Task.id == task_id, Task.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                f"This task is no longer {from_status}",
                context={"expected_status": from_status},
            )

    async def accept_task(self, db: AsyncSession, caller: UserProfile, task_id: UUID) -> TaskResponse:
        """
        open → accepted, and record the caller as the tasker.

        Raises:
            PermissionDeniedError: Caller is the poster or has role 'poster' (→ 403)
            ConflictError:         Task is not open, or another tasker won the race (→ 409)
        """
        try:
            task = await self.load_task(db, task_id)
            policies.enforce("task_assignments", "insert", caller, task)

            if task.status != STATUS_OPEN:
                raise ConflictError(
                    "This task has already been accepted",
                    context={"status": task.status},
                )

            await self._transition(db, task_id, STATUS_OPEN, STATUS_ACCEPTED)
            db.add(TaskAssignment(task_id=task_id, tasker_id=caller.id))
            try:
                await db.flush()
            except IntegrityError:
                # task_assignments.task_id is unique
                raise ConflictError("This task has already been accepted")

            task = await self.load_task(db, task_id, refresh=True)
            logger.info("Task %s accepted by %s", task_id, caller.id)
            return to_task_response(task, caller)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error accepting task %s: %s", task_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not accept the task. Please try again.",
                context={"task_id": str(task_id)},
            )

    async def mark_complete(self, db: AsyncSession, caller: UserProfile, task_id: UUID) -> TaskResponse:
        """
        accepted → completed. Poster only; stamps the assignment's
        completed_at in the same transaction.
        """
        try:
            task = await self.load_task(db, task_id)
            policies.enforce("task_assignments", "complete", caller, task)

            if task.status != STATUS_ACCEPTED or task.assignment is None:
                raise ConflictError(
                    "Only accepted tasks can be marked complete",
                    context={"status": task.status},
                )

            await self._transition(db, task_id, STATUS_ACCEPTED, STATUS_COMPLETED)
            await db.execute(
                update(TaskAssignment)
                .where(
                    TaskAssignment.task_id == task_id,
                    TaskAssignment.completed_at.is_(None),
                )
                .values(completed_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )

            task = await self.load_task(db, task_id, refresh=True)
            await db.refresh(task.assignment, ["completed_at"])
            logger.info("Task %s completed (tasker=%s)", task_id, task.assignment.tasker_id)
            return to_task_response(task, caller)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error completing task %s: %s", task_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not complete the task. Please try again.",
                context={"task_id": str(task_id)},
            )

    async def unassign(self, db: AsyncSession, caller: UserProfile, task_id: UUID) -> TaskResponse:
        """
        accepted → open. The poster or the assigned tasker may release the
        task; the assignment row is deleted so another tasker can accept it.
        """
        try:
            task = await self.load_task(db, task_id)
            policies.enforce("task_assignments", "delete", caller, task)

            if task.status != STATUS_ACCEPTED or task.assignment is None:
                raise ConflictError(
                    "Only accepted tasks can be unassigned",
                    context={"status": task.status},
                )

            previous_tasker = task.assignment.tasker_id
            await self._transition(db, task_id, STATUS_ACCEPTED, STATUS_OPEN)
            await db.execute(
                delete(TaskAssignment)
                .where(
                    TaskAssignment.task_id == task_id,
                    TaskAssignment.completed_at.is_(None),
                )
                .execution_options(synchronize_session=False)
            )

            task = await self.load_task(db, task_id, refresh=True)
            logger.info("Task %s unassigned from %s by %s", task_id, previous_tasker, caller.id)
            return to_task_response(task, caller)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error unassigning task %s: %s", task_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not unassign the task. Please try again.",
                context={"task_id": str(task_id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
task_service = TaskService()

"""
Campus Tasker Backend - Task & Assignment Models
================================================

What:  ORM models for `tasks` and `task_assignments`.
Who:   TaskService (lifecycle), ReviewService (completion check).

Lifecycle:
    open ──accept──▶ accepted ──complete──▶ completed
      ▲                 │
      └────unassign─────┘

    Assignment invariants (maintained by TaskService):
    - open       ⇔ no assignment row
    - accepted   ⇔ assignment row with completed_at IS NULL
    - completed  ⇔ assignment row with completed_at set

    task_assignments.task_id is UNIQUE: a task has at most one tasker.

Query Patterns:
    - Browse: WHERE status = 'open' AND poster_id != :me ORDER BY created_at DESC
      → idx_tasks_status, idx_tasks_created_at
    - Posted by me: WHERE poster_id = :me → idx_tasks_poster_id
    - Assigned to me: JOIN task_assignments WHERE tasker_id = :me
      → idx_task_assignments_tasker_id
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasker.database import Base
from tasker.models.user import UserProfile

STATUS_OPEN = "open"
STATUS_ACCEPTED = "accepted"
STATUS_COMPLETED = "completed"
TASK_STATUSES = (STATUS_OPEN, STATUS_ACCEPTED, STATUS_COMPLETED)


class Task(Base):
    """A paid favor a poster wants done."""

    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    poster_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Rupees, two decimal places
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=STATUS_OPEN,
        server_default=text(f"'{STATUS_OPEN}'"),
    )

    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Eager relationships: async sessions cannot lazy-load on attribute access
    poster: Mapped[UserProfile] = relationship(lazy="joined", innerjoin=True)
    assignment: Mapped[Optional["TaskAssignment"]] = relationship(
        back_populates="task",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_tasks_price_non_negative"),
        CheckConstraint(
            "status IN ('open', 'accepted', 'completed')",
            name="ck_tasks_status",
        ),
        Index("idx_tasks_created_at", created_at.desc()),
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_poster_id", "poster_id"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, status='{self.status}', poster_id={self.poster_id})>"


class TaskAssignment(Base):
    """Link between a task and the user who accepted it."""

    __tablename__ = "task_assignments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    tasker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    accepted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    task: Mapped[Task] = relationship(back_populates="assignment", lazy="raise")

    __table_args__ = (
        Index("idx_task_assignments_tasker_id", "tasker_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TaskAssignment(task_id={self.task_id}, tasker_id={self.tasker_id}, "
            f"completed_at={self.completed_at})>"
        )

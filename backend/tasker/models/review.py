"""
Campus Tasker Backend - Review Model
====================================

What:  ORM model for `reviews`: a 1-5 rating plus optional comment that one
       participant of a completed task leaves for the other.
Who:   ReviewService writes; ProfileService aggregates into user ratings.

Constraints:
    - rating BETWEEN 1 AND 5
    - UNIQUE (task_id, reviewer_id): one review per participant per task
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasker.database import Base
from tasker.models.user import UserProfile


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    reviewer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reviewee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    reviewer: Mapped[UserProfile] = relationship(
        foreign_keys=[reviewer_id], lazy="joined", innerjoin=True
    )

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        UniqueConstraint("task_id", "reviewer_id", name="uq_reviews_task_reviewer"),
        Index("idx_reviews_reviewee_id", "reviewee_id"),
    )

    def __repr__(self) -> str:
        return f"<Review(task_id={self.task_id}, reviewee_id={self.reviewee_id}, rating={self.rating})>"

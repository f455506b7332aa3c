"""
Campus Tasker Backend - Review Service
======================================

What:  Lets the two participants of a completed task rate each other, and
       lists the reviews a user has received.
Who:   POST /api/tasks/{id}/reviews, GET /api/users/{id}/reviews.

The reviewee is never taken from the request: the poster reviews the
tasker and the tasker reviews the poster.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasker import policies
from tasker.exceptions import ConflictError, DatabaseError, TaskerError
from tasker.models.review import Review
from tasker.models.user import UserProfile
from tasker.schemas.review import ReviewCreate, ReviewResponse
from tasker.services.profile_service import profile_service
from tasker.services.task_service import task_service

logger = logging.getLogger(__name__)

DUPLICATE_REVIEW = "You have already reviewed this task"


class ReviewService:

    async def create_review(
        self,
        db: AsyncSession,
        caller: UserProfile,
        task_id: UUID,
        data: ReviewCreate,
    ) -> ReviewResponse:
        """
        Leave a review for the other participant of a completed task.

        Raises:
            NotFoundError:         Task does not exist (→ 404)
            PermissionDeniedError: Task not completed, or caller took no part (→ 403)
            ConflictError:         Caller already reviewed this task (→ 409)
        """
        try:
            task = await task_service.load_task(db, task_id)
            policies.enforce("reviews", "insert", caller, task)

            if caller.id == task.poster_id:
                reviewee_id = task.assignment.tasker_id
            else:
                reviewee_id = task.poster_id

            existing = await db.execute(
                select(Review.id).where(
                    Review.task_id == task_id,
                    Review.reviewer_id == caller.id,
                )
            )
            if existing.first() is not None:
                raise ConflictError(DUPLICATE_REVIEW, context={"task_id": str(task_id)})

            review = Review(
                task_id=task_id,
                reviewer_id=caller.id,
                reviewer=caller,
                reviewee_id=reviewee_id,
                rating=data.rating,
                comment=data.comment or None,
            )
            db.add(review)
            try:
                await db.flush()
            except IntegrityError:
                raise ConflictError(DUPLICATE_REVIEW, context={"task_id": str(task_id)})

            logger.info(
                "Review %s: %s rated %s %d/5 on task %s",
                review.id, caller.id, reviewee_id, review.rating, task_id,
            )
            return ReviewResponse.model_validate(review)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating review: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the review. Please try again.",
                context={"task_id": str(task_id)},
            )

    async def list_reviews_for_user(self, db: AsyncSession, user_id: UUID) -> List[ReviewResponse]:
        """Reviews received by `user_id`, newest first, with reviewer name and avatar."""
        try:
            profile = await profile_service.load_profile(db, user_id)
            policies.enforce("users", "select", None, profile)

            result = await db.execute(
                select(Review)
                .where(Review.reviewee_id == user_id)
                .order_by(desc(Review.created_at))
            )
            reviews = [
                review for review in result.scalars().all()
                if policies.allowed("reviews", "select", None, review)
            ]
            return [ReviewResponse.model_validate(review) for review in reviews]

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing reviews for %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve reviews. Please try again.",
                context={"user_id": str(user_id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
review_service = ReviewService()

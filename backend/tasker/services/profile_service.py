"""
Campus Tasker Backend - Profile Service
=======================================

What:  Reads and edits public user profiles and computes rating summaries.
Who:   /api/users routes, /api/auth/me, and AuthService (session responses).

Rating summary:
    SELECT avg(rating), count(id) FROM reviews WHERE reviewee_id = :user_id
    → idx_reviews_reviewee_id. Same numbers as the `user_ratings` view
    created by migration 002.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasker import policies
from tasker.exceptions import DatabaseError, NotFoundError, TaskerError, ValidationError
from tasker.models.account import Account
from tasker.models.review import Review
from tasker.models.user import UserProfile
from tasker.schemas.user import ProfileResponse, ProfileUpdate, RatingSummary

logger = logging.getLogger(__name__)

# Columns that may never be set to NULL through an update
_REQUIRED_FIELDS = ("name", "role")


class ProfileService:

    async def load_profile(self, db: AsyncSession, user_id: UUID) -> UserProfile:
        """Return the profile row or raise NotFoundError."""
        profile = await db.get(UserProfile, user_id)
        if profile is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return profile

    async def get_rating(self, db: AsyncSession, user_id: UUID) -> RatingSummary:
        """
        Average rating and review count for a user.

        A user with no reviews gets average_rating=None and review_count=0.
        """
        try:
            result = await db.execute(
                select(func.avg(Review.rating), func.count(Review.id)).where(
                    Review.reviewee_id == user_id
                )
            )
            average, count = result.one()
        except SQLAlchemyError as e:
            logger.error("Database error computing rating for %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not compute the rating. Please try again.",
                context={"user_id": str(user_id)},
            )

        if not count:
            return RatingSummary(average_rating=None, review_count=0)
        return RatingSummary(average_rating=round(float(average), 2), review_count=count)

    async def to_response(
        self,
        db: AsyncSession,
        profile: UserProfile,
        caller: Optional[UserProfile] = None,
    ) -> ProfileResponse:
        """Build the API view of a profile; private fields only for its owner."""
        response = ProfileResponse(
            id=profile.id,
            name=profile.name,
            role=profile.role,
            bio=profile.bio,
            avatar_url=profile.avatar_url,
            created_at=profile.created_at,
            rating=await self.get_rating(db, profile.id),
        )
        if caller is not None and caller.id == profile.id:
            account = await db.get(Account, profile.id)
            response.email = account.email if account is not None else None
            response.phone = profile.phone
        return response

    async def get_profile(
        self,
        db: AsyncSession,
        user_id: UUID,
        caller: Optional[UserProfile] = None,
    ) -> ProfileResponse:
        try:
            profile = await self.load_profile(db, user_id)
            policies.enforce("users", "select", caller, profile)
            return await self.to_response(db, profile, caller)
        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching profile %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the profile. Please try again.",
                context={"user_id": str(user_id)},
            )

    async def update_profile(
        self,
        db: AsyncSession,
        caller: UserProfile,
        user_id: UUID,
        changes: ProfileUpdate,
    ) -> ProfileResponse:
        """
        Apply a partial update to the caller's own profile.

        Raises:
            NotFoundError:          No such user (→ 404)
            PermissionDeniedError:  Caller is editing someone else (→ 403)
            ValidationError:        name or role explicitly set to null (→ 400)
        """
        try:
            profile = await self.load_profile(db, user_id)
            policies.enforce("users", "update", caller, profile)

            values = changes.model_dump(exclude_unset=True)
            for field in _REQUIRED_FIELDS:
                if field in values and values[field] is None:
                    raise ValidationError(f"{field} cannot be empty", field=field)
            if "phone" in values and not values["phone"]:
                values["phone"] = None

            for field, value in values.items():
                setattr(profile, field, value)
            await db.flush()

            logger.info("Profile %s updated: %s", profile.id, ", ".join(sorted(values)) or "no changes")
            return await self.to_response(db, profile, caller)
        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating profile %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the profile. Please try again.",
                context={"user_id": str(user_id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
profile_service = ProfileService()

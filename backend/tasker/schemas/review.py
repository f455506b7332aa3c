"""
Campus Tasker Backend - Review Schemas
======================================
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tasker.schemas.user import PublicUser


class ReviewCreate(BaseModel):
    # The reviewee is not part of the body: it is always the other participant
    rating: int = Field(ge=1, le=5, description="Star rating from 1 to 5")
    comment: Optional[str] = Field(default=None, max_length=1000)

    model_config = {"str_strip_whitespace": True}


class ReviewResponse(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    reviewer_id: uuid.UUID
    reviewee_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    reviewer: PublicUser

    model_config = {"from_attributes": True}

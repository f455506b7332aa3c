"""
Campus Tasker Backend - Task Schemas
====================================

What:  API contract for creating, editing and listing tasks.
Who:   /api/tasks routes; built by TaskService.

Input rules (create):
    title        5-100 characters after trimming
    description  up to 500 characters, optional
    price        10 to 10,000 rupees, two decimal places
    deadline     optional; must be in the future (checked by TaskService)
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

TITLE_MIN = 5
TITLE_MAX = 100
DESCRIPTION_MAX = 500
PRICE_MIN = Decimal("10")
PRICE_MAX = Decimal("10000")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value or None


class TaskCreate(BaseModel):
    title: str = Field(min_length=TITLE_MIN, max_length=TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX)
    price: Decimal = Field(ge=PRICE_MIN, le=PRICE_MAX, decimal_places=2)
    deadline: Optional[datetime] = None

    model_config = {"str_strip_whitespace": True}

    _normalize_description = field_validator("description")(_blank_to_none)


class TaskUpdate(BaseModel):
    """PATCH body; only allowed while the task is still open."""
    title: Optional[str] = Field(default=None, min_length=TITLE_MIN, max_length=TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX)
    price: Optional[Decimal] = Field(default=None, ge=PRICE_MIN, le=PRICE_MAX, decimal_places=2)
    deadline: Optional[datetime] = None

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}

    _normalize_description = field_validator("description")(_blank_to_none)


class AssignmentResponse(BaseModel):
    tasker_id: uuid.UUID
    accepted_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TaskResponse(BaseModel):
    """
    A task as shown on cards and detail pages.

    `assignment` is null when the task is open, and also when the caller
    is neither the poster nor the assigned tasker.
    """
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    price: float
    status: str = Field(description="open, accepted, or completed")
    deadline: Optional[datetime] = None
    created_at: datetime
    poster_id: uuid.UUID
    poster_name: str
    assignment: Optional[AssignmentResponse] = None


class TaskListResponse(BaseModel):
    """
    Paginated wrapper for the browse endpoint.

    next_cursor is the created_at of the last item; pass it back as
    ?cursor= to fetch the following page.
    """
    tasks: List[TaskResponse]
    total_count: int = Field(description="Total number of tasks matching the filters")
    next_cursor: Optional[str] = Field(default=None, description="Cursor for next page (ISO datetime)")
    has_more: bool

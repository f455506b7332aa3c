"""
Campus Tasker Backend - Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for each class of failure.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers in main.py map them to HTTP status codes and a
       structured JSON body.
Who:   Raised by services, policies, and dependencies; caught by handlers.

Exception Hierarchy:
    TaskerError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden (row-level policy refused)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (state does not allow the action)
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class TaskerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only partly returned)

    Subclasses only override `default_message` unless they build their
    message from arguments.
    """

    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.context = dict(context or {})
        super().__init__(self.message)


class ValidationError(TaskerError):
    """
    Client input breaks a business rule. HTTP 400.

    Schema-level problems (wrong types, missing fields) are caught earlier by
    FastAPI and answered with 422. This one covers rules that need context,
    such as a deadline that is already in the past.
    """

    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.field = field
        if field:
            self.context["field"] = field


class AuthenticationError(TaskerError):
    """Missing, unknown, expired or revoked credentials. HTTP 401."""

    default_message = "Authentication required"


class PermissionDeniedError(TaskerError):
    """
    A row-level policy refused the caller. HTTP 403.

    The row exists and the caller may be known, but the caller is not allowed
    to perform this action on it. `action` and `resource` are human words
    ("modify", "profile") and end up in the response details.
    """

    def __init__(
        self,
        action: str = "access",
        resource: str = "resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(f"You are not allowed to {action} this {resource}", context)
        self.context.update(action=action, resource=resource)


class NotFoundError(TaskerError):
    """
    No row with that id. HTTP 404.

    Services turn a None from SQLAlchemy into this, so routes never see None.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(f"{resource.capitalize()} not found", context)
        self.context["resource"] = resource
        if resource_id:
            self.context["resource_id"] = resource_id


class ConflictError(TaskerError):
    """
    The action is permitted but the row's current state rules it out. HTTP 409.

    Examples: accepting a task someone else already accepted, reviewing the
    same task twice, signing up with an email that is taken.
    """

    default_message = "The request conflicts with the current state of the resource"


class DatabaseError(TaskerError):
    """
    A database operation failed unexpectedly. HTTP 500.

    The client always gets a generic message. Details such as constraint
    names stay in server logs.
    """

    default_message = "A database error occurred. Please try again later."


class RateLimitExceededError(TaskerError):
    """The client is over its request budget. HTTP 429 with Retry-After."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(f"Too many requests. Try again in {retry_after} seconds.", context)
        self.retry_after = retry_after
        self.context["retry_after"] = retry_after

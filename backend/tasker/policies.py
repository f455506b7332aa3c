"""
Campus Tasker Backend - Row-Level Policies
==========================================

What:  The rules deciding which caller may read or write which row.
How:   A declarative table maps (resource, action) to a predicate over
       (caller, row). Services call `enforce()` before touching a row; it
       raises PermissionDeniedError when the predicate is false.
Who:   Every service. Routes never evaluate policies themselves.

Policy table:
    resource          action     rule
    ───────────────── ────────── ──────────────────────────────────────────────
    users             select     anyone
    users             update     caller owns the profile
    tasks             select     anyone
    tasks             insert     caller is the poster and may post (poster|both)
    tasks             update     caller is the poster
    tasks             delete     caller is the poster
    task_assignments  select     caller is the poster or the assigned tasker
    task_assignments  insert     caller is not the poster and may work (tasker|both)
    task_assignments  complete   caller is the poster
    task_assignments  delete     caller is the poster or the assigned tasker
    reviews           select     anyone
    reviews           insert     task completed and caller took part in it
    transactions      select     caller owns the entry
    transactions      insert     caller owns the entry

`caller` is the caller's UserProfile (None for anonymous requests).
For task_assignments and reviews the row passed in is the Task, with its
`assignment` loaded.
"""

from typing import Any, Callable, Dict, Optional, Tuple

from tasker.exceptions import PermissionDeniedError
from tasker.models.user import ROLE_BOTH, ROLE_POSTER, ROLE_TASKER

Rule = Callable[[Optional[Any], Any], bool]


def _anyone(caller: Optional[Any], row: Any) -> bool:
    return True


def _owns_profile(caller: Optional[Any], profile: Any) -> bool:
    return caller is not None and caller.id == profile.id


def _is_poster(caller: Optional[Any], task: Any) -> bool:
    return caller is not None and caller.id == task.poster_id


def _may_post(caller: Optional[Any], task: Any) -> bool:
    return _is_poster(caller, task) and caller.role in (ROLE_POSTER, ROLE_BOTH)


def _is_assigned_tasker(caller: Optional[Any], task: Any) -> bool:
    assignment = task.assignment
    return caller is not None and assignment is not None and caller.id == assignment.tasker_id


def _is_participant(caller: Optional[Any], task: Any) -> bool:
    return _is_poster(caller, task) or _is_assigned_tasker(caller, task)


def _may_accept(caller: Optional[Any], task: Any) -> bool:
    if caller is None or caller.id == task.poster_id:
        return False
    return caller.role in (ROLE_TASKER, ROLE_BOTH)


def _may_review(caller: Optional[Any], task: Any) -> bool:
    assignment = task.assignment
    if assignment is None or assignment.completed_at is None:
        return False
    return _is_participant(caller, task)


def _owns_entry(caller: Optional[Any], entry: Any) -> bool:
    return caller is not None and caller.id == entry.user_id


POLICIES: Dict[Tuple[str, str], Rule] = {
    ("users", "select"): _anyone,
    ("users", "update"): _owns_profile,
    ("tasks", "select"): _anyone,
    ("tasks", "insert"): _may_post,
    ("tasks", "update"): _is_poster,
    ("tasks", "delete"): _is_poster,
    ("task_assignments", "select"): _is_participant,
    ("task_assignments", "insert"): _may_accept,
    ("task_assignments", "complete"): _is_poster,
    ("task_assignments", "delete"): _is_participant,
    ("reviews", "select"): _anyone,
    ("reviews", "insert"): _may_review,
    ("transactions", "select"): _owns_entry,
    ("transactions", "insert"): _owns_entry,
}

# Human wording for PermissionDeniedError messages
_ACTION_WORDS = {
    "select": "view",
    "insert": "create",
    "update": "modify",
    "delete": "remove",
    "complete": "complete",
}

_RESOURCE_WORDS = {
    "users": "profile",
    "tasks": "task",
    "task_assignments": "task assignment",
    "reviews": "review",
    "transactions": "transaction",
}


def allowed(resource: str, action: str, caller: Optional[Any], row: Any) -> bool:
    """
    Evaluate the policy for (resource, action).

    Unknown pairs are denied, so a new action must be added to POLICIES
    before any caller can use it.
    """
    rule = POLICIES.get((resource, action))
    if rule is None:
        return False
    return rule(caller, row)


def enforce(resource: str, action: str, caller: Optional[Any], row: Any) -> None:
    """Raise PermissionDeniedError unless the policy allows the action."""
    if not allowed(resource, action, caller, row):
        raise PermissionDeniedError(
            action=_ACTION_WORDS.get(action, action),
            resource=_RESOURCE_WORDS.get(resource, resource),
            context={
                "policy": f"{resource}.{action}",
                "caller_id": str(caller.id) if caller is not None else None,
            },
        )

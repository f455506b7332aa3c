"""
Campus Tasker Backend - Row-Level Policy Tests
==============================================

Pure tests: rows and callers are plain namespaces, no database needed.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from tasker import policies
from tasker.exceptions import PermissionDeniedError


def user(role="both"):
    return SimpleNamespace(id=uuid4(), role=role)


def task_for(poster, tasker=None, completed=False):
    assignment = None
    if tasker is not None:
        assignment = SimpleNamespace(
            tasker_id=tasker.id,
            completed_at=datetime.now(timezone.utc) if completed else None,
        )
    return SimpleNamespace(id=uuid4(), poster_id=poster.id, assignment=assignment)


class TestProfilePolicies:

    def test_anyone_can_view_profiles(self):
        profile = user()
        assert policies.allowed("users", "select", None, profile)
        assert policies.allowed("users", "select", user(), profile)

    def test_only_owner_updates_profile(self):
        owner = user()
        assert policies.allowed("users", "update", owner, owner)
        assert not policies.allowed("users", "update", user(), owner)
        assert not policies.allowed("users", "update", None, owner)


class TestTaskPolicies:

    def test_posting_requires_poster_role(self):
        for role, expected in (("poster", True), ("both", True), ("tasker", False)):
            caller = user(role)
            assert policies.allowed("tasks", "insert", caller, task_for(caller)) is expected

    def test_cannot_post_on_behalf_of_someone_else(self):
        caller = user()
        assert not policies.allowed("tasks", "insert", caller, task_for(user()))

    def test_only_poster_edits_or_deletes(self):
        poster, other = user(), user()
        task = task_for(poster)
        for action in ("update", "delete"):
            assert policies.allowed("tasks", action, poster, task)
            assert not policies.allowed("tasks", action, other, task)


class TestAssignmentPolicies:

    def test_accept_requires_tasker_role_and_not_own_task(self):
        poster = user()
        task = task_for(poster)
        assert policies.allowed("task_assignments", "insert", user("tasker"), task)
        assert policies.allowed("task_assignments", "insert", user("both"), task)
        assert not policies.allowed("task_assignments", "insert", user("poster"), task)
        assert not policies.allowed("task_assignments", "insert", poster, task)
        assert not policies.allowed("task_assignments", "insert", None, task)

    def test_assignment_visible_to_participants_only(self):
        poster, tasker = user(), user()
        task = task_for(poster, tasker)
        assert policies.allowed("task_assignments", "select", poster, task)
        assert policies.allowed("task_assignments", "select", tasker, task)
        assert not policies.allowed("task_assignments", "select", user(), task)
        assert not policies.allowed("task_assignments", "select", None, task)

    def test_only_poster_completes(self):
        poster, tasker = user(), user()
        task = task_for(poster, tasker)
        assert policies.allowed("task_assignments", "complete", poster, task)
        assert not policies.allowed("task_assignments", "complete", tasker, task)

    def test_either_participant_unassigns(self):
        poster, tasker = user(), user()
        task = task_for(poster, tasker)
        assert policies.allowed("task_assignments", "delete", poster, task)
        assert policies.allowed("task_assignments", "delete", tasker, task)
        assert not policies.allowed("task_assignments", "delete", user(), task)


class TestReviewPolicies:

    def test_review_needs_completed_assignment(self):
        poster, tasker = user(), user()
        assert not policies.allowed("reviews", "insert", poster, task_for(poster))
        assert not policies.allowed("reviews", "insert", poster, task_for(poster, tasker))
        assert policies.allowed("reviews", "insert", poster, task_for(poster, tasker, completed=True))

    def test_review_needs_participation(self):
        poster, tasker = user(), user()
        task = task_for(poster, tasker, completed=True)
        assert policies.allowed("reviews", "insert", tasker, task)
        assert not policies.allowed("reviews", "insert", user(), task)


class TestTransactionPolicies:

    def test_ledger_is_private(self):
        owner = user()
        entry = SimpleNamespace(user_id=owner.id)
        for action in ("select", "insert"):
            assert policies.allowed("transactions", action, owner, entry)
            assert not policies.allowed("transactions", action, user(), entry)


class TestEnforce:

    def test_unknown_pair_is_denied(self):
        assert not policies.allowed("tasks", "archive", user(), task_for(user()))

    def test_enforce_raises_with_policy_context(self):
        owner, intruder = user(), user()
        with pytest.raises(PermissionDeniedError) as exc_info:
            policies.enforce("users", "update", intruder, owner)

        exc = exc_info.value
        assert exc.message == "You are not allowed to modify this profile"
        assert exc.context["policy"] == "users.update"
        assert exc.context["caller_id"] == str(intruder.id)

    def test_enforce_passes_silently_when_allowed(self):
        owner = user()
        assert policies.enforce("users", "update", owner, owner) is None

# Importing every model registers it on Base.metadata (Alembic, create_all)
from tasker.models.user import UserProfile
from tasker.models.account import Account, AuthSession
from tasker.models.task import Task, TaskAssignment
from tasker.models.review import Review
from tasker.models.transaction import Transaction

__all__ = [
    "Account",
    "AuthSession",
    "Review",
    "Task",
    "TaskAssignment",
    "Transaction",
    "UserProfile",
]

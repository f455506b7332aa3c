"""Create marketplace tables

Revision ID: 001
Revises: None
Create Date: 2026-01-10 00:00:00.000000+00:00

What:  accounts, auth_sessions, users, tasks, task_assignments, reviews and
       transactions. Task prices start out as whole rupees (INTEGER); 002
       widens them to NUMERIC.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _user_fk(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    # ── Identity ──────────────────────────────────────────────────────────
    op.create_table(
        "accounts",
        _id_column(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column(
            "user_metadata",
            sa.JSON(),
            nullable=False,
            server_default=sa.text("'{}'"),
            comment="Signup metadata read when the profile row is created",
        ),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_accounts_email"),
    )

    op.create_table(
        "auth_sessions",
        _id_column(),
        sa.Column(
            "account_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(64), nullable=False, comment="sha256 of the bearer token"),
        _created_at_column(),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash", name="uq_auth_sessions_token_hash"),
    )
    op.create_index("idx_auth_sessions_account_id", "auth_sessions", ["account_id"])

    # ── Profiles ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'both'")),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('poster', 'tasker', 'both')", name="ck_users_role"),
    )

    # ── Tasks ─────────────────────────────────────────────────────────────
    op.create_table(
        "tasks",
        _id_column(),
        _user_fk("poster_id"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'open'")),
        sa.Column("deadline", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("price >= 0", name="ck_tasks_price_non_negative"),
        sa.CheckConstraint(
            "status IN ('open', 'accepted', 'completed')",
            name="ck_tasks_status",
        ),
    )
    op.create_index("idx_tasks_created_at", "tasks", [sa.text("created_at DESC")])
    op.create_index("idx_tasks_status", "tasks", ["status"])
    op.create_index("idx_tasks_poster_id", "tasks", ["poster_id"])

    op.create_table(
        "task_assignments",
        _id_column(),
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("tasker_id"),
        sa.Column(
            "accepted_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("task_id", name="uq_task_assignments_task_id"),
    )
    op.create_index("idx_task_assignments_tasker_id", "task_assignments", ["tasker_id"])

    # ── Reviews ───────────────────────────────────────────────────────────
    op.create_table(
        "reviews",
        _id_column(),
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("reviewer_id"),
        _user_fk("reviewee_id"),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        sa.UniqueConstraint("task_id", "reviewer_id", name="uq_reviews_task_reviewer"),
    )
    op.create_index("idx_reviews_reviewee_id", "reviews", ["reviewee_id"])

    # ── Wallet ledger ─────────────────────────────────────────────────────
    op.create_table(
        "transactions",
        _id_column(),
        _user_fk("user_id"),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_transactions_user_id", "transactions", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_transactions_user_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("idx_reviews_reviewee_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("idx_task_assignments_tasker_id", table_name="task_assignments")
    op.drop_table("task_assignments")
    op.drop_index("idx_tasks_poster_id", table_name="tasks")
    op.drop_index("idx_tasks_status", table_name="tasks")
    op.drop_index("idx_tasks_created_at", table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("users")
    op.drop_index("idx_auth_sessions_account_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_table("accounts")

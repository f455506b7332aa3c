"""
Campus Tasker Backend - User Profile Model
==========================================

What:  ORM model for the public `users` table (one row per account).
Who:   Created by the signup trigger in models/account.py; read by every
       listing that shows a poster or reviewer name; updated by its owner.

Table Design:
    - id is both the primary key and a foreign key to accounts.id, so a
      profile can never outlive its account (ON DELETE CASCADE)
    - role is informational plus a gate: posting needs poster|both,
      accepting needs tasker|both (see tasker.policies)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from tasker.database import Base

ROLE_POSTER = "poster"
ROLE_TASKER = "tasker"
ROLE_BOTH = "both"
ROLES = (ROLE_POSTER, ROLE_TASKER, ROLE_BOTH)


class UserProfile(Base):
    """Public profile of a marketplace user."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
        comment="Same UUID as the owning account",
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)

    role: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ROLE_BOTH,
        server_default=text(f"'{ROLE_BOTH}'"),
    )

    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('poster', 'tasker', 'both')",
            name="ck_users_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<UserProfile(id={self.id}, name='{self.name}', role='{self.role}')>"

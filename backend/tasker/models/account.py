"""
Campus Tasker Backend - Account & Session Models
================================================

What:  Credentials (`accounts`) and bearer sessions (`auth_sessions`).
Who:   AuthService only. Nothing else reads password hashes or token hashes.

Profile trigger:
    Inserting an Account inserts the matching `users` profile row inside the
    same flush (mapper `after_insert` event). The profile name comes from
    signup metadata, falling back to the email; an empty phone becomes NULL;
    the role starts as 'both'. An existing profile row is left untouched.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    event,
    insert,
    select,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from tasker.database import Base
from tasker.models.user import ROLE_BOTH, UserProfile


class Account(Base):
    """Login identity. The profile row shares its id."""

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Stored lower-cased; uniqueness is therefore case-insensitive
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # Free-form signup metadata ({"name": ..., "phone": ...}) read by the trigger
    user_metadata: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}')>"


class AuthSession(Base):
    """
    A bearer session issued at sign-in.

    Only sha256(token) is stored, so a leaked table cannot be replayed.
    A session is live while revoked_at IS NULL and expires_at is in the future.
    """

    __tablename__ = "auth_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_auth_sessions_account_id", "account_id"),
    )


def profile_values_for(account: Account) -> Dict[str, Any]:
    """Column values for the profile row created alongside `account`."""
    metadata = account.user_metadata or {}
    name = (metadata.get("name") or "").strip() or account.email
    phone = (metadata.get("phone") or "").strip() or None
    return {"id": account.id, "name": name, "phone": phone, "role": ROLE_BOTH}


@event.listens_for(Account, "after_insert")
def create_profile_for_new_account(mapper, connection, target: Account) -> None:
    """Insert the public profile for a freshly inserted account (no-op if present)."""
    profiles = UserProfile.__table__
    existing = connection.execute(
        select(profiles.c.id).where(profiles.c.id == target.id)
    ).first()
    if existing is not None:
        return
    connection.execute(insert(profiles).values(**profile_values_for(target)))

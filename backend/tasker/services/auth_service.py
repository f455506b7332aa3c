"""
Campus Tasker Backend - Authentication Service
==============================================

What:  Sign-up, sign-in, sign-out and bearer-token resolution.
How:   Passwords are hashed with Argon2 (argon2-cffi) in a worker thread so
       the event loop is never blocked. Session tokens are random URL-safe
       strings; only their sha256 digest is stored.
Who:   /api/auth routes and the `get_current_user` dependency.

Session lifecycle:
    sign_in ──▶ token issued (expires_at = now + SESSION_TTL_HOURS)
    request ──▶ resolve_session(token) ──▶ account id
    sign_out ─▶ revoked_at set; later resolves fail with 401

Not provided: OAuth, email confirmation, magic links, password reset.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from tasker.config import settings
from tasker.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    TaskerError,
    ValidationError,
)
from tasker.models.account import Account, AuthSession
from tasker.models.user import UserProfile
from tasker.schemas.auth import SessionResponse
from tasker.services.profile_service import profile_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def hash_token(token: str) -> str:
    """sha256 hex digest of a bearer token, as stored in auth_sessions.token_hash."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthService:
    """
    Identity layer for the marketplace.

    The PasswordHasher instance is shared; argon2-cffi hashers are
    thread-safe and hold only their parameters.
    """

    def __init__(self, hasher: Optional[PasswordHasher] = None):
        self._hasher = hasher or PasswordHasher()

    async def sign_up(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> SessionResponse:
        """
        Create an account (and, through the profile trigger, its profile).

        Raises:
            ValidationError: Password shorter than PASSWORD_MIN_LENGTH (→ 400)
            ConflictError:   Email already registered (→ 409)
        """
        if len(password) < settings.password_min_length:
            raise ValidationError(
                f"Password must be at least {settings.password_min_length} characters",
                field="password",
            )

        try:
            existing = await db.execute(select(Account.id).where(Account.email == email))
            if existing.first() is not None:
                raise ConflictError(
                    "An account with this email already exists",
                    context={"field": "email"},
                )

            password_hash = await run_in_threadpool(self._hasher.hash, password)

            metadata = {}
            if name:
                metadata["name"] = name
            if phone is not None:
                metadata["phone"] = phone

            account = Account(email=email, password_hash=password_hash, user_metadata=metadata)
            db.add(account)
            try:
                # Flushing fires the after_insert hook that creates the profile
                await db.flush()
            except IntegrityError:
                raise ConflictError(
                    "An account with this email already exists",
                    context={"field": "email"},
                )

            logger.info("Account created: %s", account.id)
            return await self._issue_session(db, account)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error during sign-up: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def sign_in(self, db: AsyncSession, email: str, password: str) -> SessionResponse:
        """
        Verify credentials and issue a new session.

        Unknown email and wrong password give the same 401 message.
        """
        try:
            result = await db.execute(select(Account).where(Account.email == email))
            account = result.scalar_one_or_none()
            if account is None:
                # Unknown email costs one Argon2 hash, the same work as a failed verify
                await run_in_threadpool(self._hasher.hash, password)
                raise AuthenticationError(INVALID_CREDENTIALS)

            try:
                await run_in_threadpool(self._hasher.verify, account.password_hash, password)
            except (VerificationError, InvalidHashError):
                logger.info("Failed sign-in for account %s", account.id)
                raise AuthenticationError(INVALID_CREDENTIALS)

            if self._hasher.check_needs_rehash(account.password_hash):
                account.password_hash = await run_in_threadpool(self._hasher.hash, password)
                logger.info("Password hash upgraded for account %s", account.id)

            return await self._issue_session(db, account)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error during sign-in: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not sign in. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def sign_out(self, db: AsyncSession, token: str) -> None:
        """Revoke the session behind `token`. Signing out twice is harmless."""
        try:
            await db.execute(
                update(AuthSession)
                .where(
                    AuthSession.token_hash == hash_token(token),
                    AuthSession.revoked_at.is_(None),
                )
                .values(revoked_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error during sign-out: %s", str(e))
            raise DatabaseError(message="Could not sign out. Please try again.")

    async def resolve_session(self, db: AsyncSession, token: str) -> UUID:
        """
        Return the account id for a live session token.

        Raises:
            AuthenticationError: Token unknown, expired or revoked (→ 401)
        """
        try:
            result = await db.execute(
                select(AuthSession.account_id).where(
                    AuthSession.token_hash == hash_token(token),
                    AuthSession.revoked_at.is_(None),
                    AuthSession.expires_at > datetime.now(timezone.utc),
                )
            )
            account_id = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error resolving session: %s", str(e))
            raise DatabaseError(message="Could not verify the session. Please try again.")

        if account_id is None:
            raise AuthenticationError("Session is invalid or has expired")
        return account_id

    async def _issue_session(self, db: AsyncSession, account: Account) -> SessionResponse:
        token, session = self.new_session(account.id)
        db.add(session)
        await db.flush()

        profile = await profile_service.load_profile(db, account.id)
        return SessionResponse(
            access_token=token,
            expires_at=session.expires_at,
            user=await profile_service.to_response(db, profile, caller=profile),
        )

    @staticmethod
    def new_session(account_id: UUID) -> Tuple[str, AuthSession]:
        """Generate a token and the (unsaved) AuthSession row that stores its hash."""
        token = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        session = AuthSession(
            account_id=account_id,
            token_hash=hash_token(token),
            created_at=now,
            expires_at=now + timedelta(hours=settings.session_ttl_hours),
        )
        return token, session


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()


async def load_caller(db: AsyncSession, token: str) -> UserProfile:
    """Resolve a bearer token straight to the caller's profile."""
    account_id = await auth_service.resolve_session(db, token)
    profile = await db.get(UserProfile, account_id)
    if profile is None:
        raise AuthenticationError("Session is invalid or has expired")
    return profile

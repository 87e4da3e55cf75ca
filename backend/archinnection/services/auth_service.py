"""
Archinnection Backend: Authentication Service
===============================================

What:  Sign-up, sign-in, sign-out and session resolution.
How:   Passwords are bcrypt hashes; a sign-in creates an `auth_sessions`
       row whose opaque token is sent back as an HttpOnly cookie.
Who:   The /api/auth routes and SessionMiddleware.

Session Lifecycle:
    login()   → new row, expires_at = now + ttl
    resolve() → row if still live; expired rows are deleted on sight
    refresh() → slides expires_at forward once half the ttl has elapsed,
                telling the caller to re-issue the cookie
    logout()  → row deleted (idempotent)
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.config import settings
from archinnection.database import as_utc, utcnow
from archinnection.exceptions import AuthenticationError, ConflictError, DatabaseError
from archinnection.models.profile import Profile
from archinnection.models.user import AuthSession, User
from archinnection.security import generate_session_token, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless; every call receives the request's database session."""

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    async def signup(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        full_name: str,
    ) -> User:
        """
        Create an account and its profile in one transaction.

        Does not sign the user in; the client continues to the sign-in page.

        Raises:
            ConflictError: an account with this email already exists
        """
        email = self._normalize_email(email)

        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                message="An account with this email already exists.",
                context={"field": "email"},
            )

        user = User(id=uuid.uuid4(), email=email, password_hash=hash_password(password))
        profile = Profile(id=user.id, email=email, full_name=full_name.strip())
        try:
            db.add(user)
            await db.flush()
            db.add(profile)
            await db.flush()
        except IntegrityError:
            # Concurrent sign-up with the same email
            await db.rollback()
            raise ConflictError(
                message="An account with this email already exists.",
                context={"field": "email"},
            )
        except SQLAlchemyError as e:
            logger.error("Sign-up failed for %s: %s", email, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "signup"})

        logger.info("New account created: %s", user.id)
        return user

    async def login(self, db: AsyncSession, email: str, password: str) -> Tuple[User, AuthSession]:
        """
        Verify credentials and open a session.

        Raises:
            AuthenticationError: unknown email or wrong password (same message for both)
        """
        email = self._normalize_email(email)
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed sign-in attempt for %s", email)
            raise AuthenticationError(message="Invalid email or password.")

        now = utcnow()
        session = AuthSession(
            token=generate_session_token(),
            user_id=user.id,
            created_at=now,
            last_seen_at=now,
            expires_at=now + timedelta(seconds=settings.session_ttl_seconds),
        )
        db.add(session)
        await db.flush()

        logger.info("User %s signed in", user.id)
        return user, session

    async def logout(self, db: AsyncSession, token: Optional[str]) -> None:
        if not token:
            return
        await db.execute(delete(AuthSession).where(AuthSession.token == token))

    async def resolve(self, db: AsyncSession, token: Optional[str]) -> Optional[AuthSession]:
        """Live session for a cookie token, or None."""
        if not token:
            return None
        result = await db.execute(select(AuthSession).where(AuthSession.token == token))
        session = result.scalar_one_or_none()
        if session is None:
            return None
        if as_utc(session.expires_at) <= utcnow():
            await db.delete(session)
            await db.flush()
            return None
        return session

    def refresh(self, session: AuthSession) -> bool:
        """
        Slide the session expiry forward.

        Returns:
            True if expires_at moved and the cookie should be re-issued.
        """
        now = utcnow()
        ttl = timedelta(seconds=settings.session_ttl_seconds)
        session.last_seen_at = now
        remaining = as_utc(session.expires_at) - now
        if remaining < ttl / 2:
            session.expires_at = now + ttl
            return True
        return False

    async def resolve_and_refresh(
        self, db: AsyncSession, token: Optional[str]
    ) -> Tuple[Optional[uuid.UUID], bool]:
        """
        Used by SessionMiddleware on every request.

        Returns:
            (user_id or None, whether the cookie should be re-issued)
        """
        session = await self.resolve(db, token)
        if session is None:
            return None, False
        renewed = self.refresh(session)
        await db.flush()
        return session.user_id, renewed

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> Tuple[User, Profile]:
        result = await db.execute(
            select(User, Profile).join(Profile, Profile.id == User.id).where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            raise AuthenticationError(message="Your session is no longer valid. Please sign in again.")
        return row[0], row[1]


auth_service = AuthService()

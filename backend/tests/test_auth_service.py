"""
Archinnection Backend: Auth Service Tests
===========================================

What:  Sign-up, sign-in, sign-out and session resolution/refresh.
How:   Runs AuthService against the per-test SQLite database.

What we test:
    ✅ Sign-up creates the account and its profile; emails are normalized
    ✅ Duplicate email is a conflict
    ✅ Wrong password and unknown email fail with the same message
    ✅ Expired sessions are not resolved (and are removed)
    ✅ Sessions slide forward once half the lifetime has passed
    ✅ Password hashing round-trip
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from archinnection.config import settings
from archinnection.database import as_utc, utcnow
from archinnection.exceptions import AuthenticationError, ConflictError
from archinnection.models.profile import Profile
from archinnection.models.user import AuthSession
from archinnection.security import hash_password, verify_password
from archinnection.services.auth_service import AuthService


class TestPasswordHashing:

    def test_hash_verifies(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)

    def test_wrong_password_fails(self):
        assert not verify_password("nope", hash_password("s3cret-pass"))

    def test_malformed_hash_fails_closed(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestSignup:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_signup_creates_user_and_profile(self, db_session):
        user = await self.service.signup(db_session, "  Ada@Example.COM ", "password1", " Ada ")

        assert user.email == "ada@example.com"
        profile = await db_session.get(Profile, user.id)
        assert profile is not None
        assert profile.full_name == "Ada"
        assert profile.email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, db_session):
        await self.service.signup(db_session, "ada@example.com", "password1", "Ada")
        with pytest.raises(ConflictError, match="already exists"):
            await self.service.signup(db_session, "ADA@example.com", "password2", "Ada Two")


class TestLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_opens_session(self, db_session):
        await self.service.signup(db_session, "ada@example.com", "password1", "Ada")
        user, session = await self.service.login(db_session, "Ada@example.com", "password1")

        assert session.user_id == user.id
        assert len(session.token) >= 32
        remaining = as_utc(session.expires_at) - utcnow()
        assert remaining > timedelta(seconds=settings.session_ttl_seconds - 60)

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self, db_session):
        await self.service.signup(db_session, "ada@example.com", "password1", "Ada")
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await self.service.login(db_session, "ada@example.com", "password2")

    @pytest.mark.asyncio
    async def test_unknown_email_rejected_with_same_message(self, db_session):
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await self.service.login(db_session, "nobody@example.com", "password1")

    @pytest.mark.asyncio
    async def test_logout_deletes_session(self, db_session):
        await self.service.signup(db_session, "ada@example.com", "password1", "Ada")
        _, session = await self.service.login(db_session, "ada@example.com", "password1")

        await self.service.logout(db_session, session.token)

        assert await self.service.resolve(db_session, session.token) is None

    @pytest.mark.asyncio
    async def test_logout_without_token_is_noop(self, db_session):
        await self.service.logout(db_session, None)


class TestSessionResolution:

    def setup_method(self):
        self.service = AuthService()

    async def _login(self, db_session):
        await self.service.signup(db_session, "ada@example.com", "password1", "Ada")
        return await self.service.login(db_session, "ada@example.com", "password1")

    @pytest.mark.asyncio
    async def test_resolve_live_session(self, db_session):
        user, session = await self._login(db_session)
        user_id, renewed = await self.service.resolve_and_refresh(db_session, session.token)
        assert user_id == user.id
        assert renewed is False

    @pytest.mark.asyncio
    async def test_unknown_token_resolves_to_none(self, db_session):
        assert await self.service.resolve_and_refresh(db_session, "not-a-token") == (None, False)

    @pytest.mark.asyncio
    async def test_expired_session_removed(self, db_session):
        _, session = await self._login(db_session)
        session.expires_at = utcnow() - timedelta(minutes=1)
        await db_session.flush()

        assert await self.service.resolve(db_session, session.token) is None
        remaining = await db_session.execute(
            select(AuthSession).where(AuthSession.token == session.token)
        )
        assert remaining.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_session_slides_after_half_ttl(self, db_session):
        _, session = await self._login(db_session)
        session.expires_at = utcnow() + timedelta(seconds=settings.session_ttl_seconds / 4)
        await db_session.flush()

        user_id, renewed = await self.service.resolve_and_refresh(db_session, session.token)

        assert user_id == session.user_id
        assert renewed is True
        remaining = as_utc(session.expires_at) - utcnow()
        assert remaining > timedelta(seconds=settings.session_ttl_seconds - 60)

    @pytest.mark.asyncio
    async def test_get_user_for_missing_account(self, db_session):
        with pytest.raises(AuthenticationError):
            await self.service.get_user(db_session, uuid.uuid4())

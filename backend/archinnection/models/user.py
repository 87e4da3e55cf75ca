"""
Archinnection Backend: Identity Models
========================================

What:  ORM models for accounts (`users`) and server-side sessions
       (`auth_sessions`).
How:   A session row holds an opaque token that travels in the session
       cookie; the row's expires_at is slid forward on activity.
Who:   AuthService and the session middleware.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from archinnection.database import Base, utcnow


class User(Base):
    """An account that can sign in. Its profile shares the same id."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Stored lower-cased; uniqueness is case-insensitive in practice
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class AuthSession(Base):
    """
    A signed-in browser session.

    Lifecycle:
        1. Created on sign-in with expires_at = now + session_ttl_seconds
        2. Slid forward by the session middleware once half the TTL has passed
        3. Deleted on sign-out, or on first sight after expiry
    """

    __tablename__ = "auth_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_auth_sessions_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<AuthSession(user_id={self.user_id}, expires_at='{self.expires_at}')>"

"""
Archinnection Backend: Connection Model
=========================================

What:  A directed connection request between two profiles.
How:   `user_id` is the requester, `connected_user_id` the recipient.
       Status moves pending → accepted | rejected; only the recipient
       answers. The row is deleted to cancel a request or disconnect.

Uniqueness:
    The directed pair is unique in the schema. The unordered pair
    {a, b} is kept unique by ConnectionService, which refuses a new
    request while a row exists in either direction.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from archinnection.database import Base, utcnow
from archinnection.models.profile import Profile

CONNECTION_STATUSES = ("pending", "accepted", "rejected")


class Connection(Base):
    __tablename__ = "connections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    connected_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    requester: Mapped[Profile] = relationship(foreign_keys=[user_id], lazy="raise")
    recipient: Mapped[Profile] = relationship(foreign_keys=[connected_user_id], lazy="raise")

    __table_args__ = (
        UniqueConstraint("user_id", "connected_user_id", name="uq_connections_pair"),
        CheckConstraint("user_id <> connected_user_id", name="ck_connections_not_self"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')", name="ck_connections_status"
        ),
        Index("idx_connections_connected_user_id", "connected_user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Connection({self.user_id} → {self.connected_user_id}, "
            f"status='{self.status}')>"
        )

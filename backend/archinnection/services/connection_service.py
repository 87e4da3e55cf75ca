"""
Archinnection Backend: Connection Service
===========================================

What:  Connection status lookups, request/accept/reject/remove, and the
       network page (connections, incoming requests, suggestions).
How:   Direct point queries on `connections`; no graph traversal beyond a
       user's immediate neighbours.
Who:   /api/connections routes, the profile page and the network page.

State Machine (per unordered pair):
    none ──send──▶ pending ──accept──▶ accepted
                      │
                      └──reject──▶ rejected
    remove (either side, any state) ──▶ none
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from archinnection.database import utcnow
from archinnection.exceptions import ConflictError, NotFoundError, ValidationError
from archinnection.models.connection import Connection
from archinnection.models.profile import Profile
from archinnection.schemas.connection import (
    ConnectionStatusResponse,
    NetworkConnection,
    NetworkResponse,
    PendingRequest,
)
from archinnection.schemas.profile import ProfileSummary

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 10


def _between(a: uuid.UUID, b: uuid.UUID):
    return or_(
        and_(Connection.user_id == a, Connection.connected_user_id == b),
        and_(Connection.user_id == b, Connection.connected_user_id == a),
    )


class ConnectionService:

    async def _find(
        self, db: AsyncSession, requester_id: uuid.UUID, recipient_id: uuid.UUID
    ) -> Optional[Connection]:
        result = await db.execute(
            select(Connection).where(
                Connection.user_id == requester_id,
                Connection.connected_user_id == recipient_id,
            )
        )
        return result.scalar_one_or_none()

    async def _find_either(
        self, db: AsyncSession, viewer_id: uuid.UUID, other_id: uuid.UUID
    ) -> Tuple[Optional[Connection], Optional[str]]:
        """The pair's row and its direction from the viewer's side."""
        outgoing = await self._find(db, viewer_id, other_id)
        if outgoing is not None:
            return outgoing, "outgoing"
        incoming = await self._find(db, other_id, viewer_id)
        if incoming is not None:
            return incoming, "incoming"
        return None, None

    async def _require_profile(self, db: AsyncSession, profile_id: uuid.UUID) -> None:
        result = await db.execute(select(Profile.id).where(Profile.id == profile_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="profile", resource_id=str(profile_id))

    async def get_status(
        self, db: AsyncSession, viewer_id: uuid.UUID, other_id: uuid.UUID
    ) -> ConnectionStatusResponse:
        if viewer_id == other_id:
            return ConnectionStatusResponse(user_id=other_id, status="none")
        row, direction = await self._find_either(db, viewer_id, other_id)
        if row is None:
            return ConnectionStatusResponse(user_id=other_id, status="none")
        return ConnectionStatusResponse(user_id=other_id, status=row.status, direction=direction)

    async def send_request(
        self, db: AsyncSession, viewer_id: uuid.UUID, other_id: uuid.UUID
    ) -> Connection:
        """
        Raises:
            ValidationError: connecting to oneself
            NotFoundError: the other profile does not exist
            ConflictError: a row already exists in either direction
        """
        if viewer_id == other_id:
            raise ValidationError(message="You cannot connect with yourself.", field="user_id")
        await self._require_profile(db, other_id)

        existing, direction = await self._find_either(db, viewer_id, other_id)
        if existing is not None:
            raise ConflictError(
                message="A connection with this user already exists.",
                context={"status": existing.status, "direction": direction},
            )

        connection = Connection(user_id=viewer_id, connected_user_id=other_id, status="pending")
        try:
            async with db.begin_nested():
                db.add(connection)
        except IntegrityError:
            raise ConflictError(message="A connection with this user already exists.")

        logger.info("Connection request %s → %s", viewer_id, other_id)
        return connection

    async def _answer(
        self, db: AsyncSession, viewer_id: uuid.UUID, requester_id: uuid.UUID, status: str
    ) -> Connection:
        request = await self._find(db, requester_id, viewer_id)
        if request is None:
            raise NotFoundError(resource="connection request")
        if request.status != "pending":
            raise ConflictError(
                message=f"This request has already been {request.status}.",
                context={"status": request.status},
            )
        request.status = status
        request.updated_at = utcnow()
        await db.flush()
        logger.info("Connection request %s → %s %s", requester_id, viewer_id, status)
        return request

    async def accept(
        self, db: AsyncSession, viewer_id: uuid.UUID, requester_id: uuid.UUID
    ) -> Connection:
        """Only the recipient of a pending request may accept it."""
        return await self._answer(db, viewer_id, requester_id, "accepted")

    async def reject(
        self, db: AsyncSession, viewer_id: uuid.UUID, requester_id: uuid.UUID
    ) -> Connection:
        return await self._answer(db, viewer_id, requester_id, "rejected")

    async def remove(self, db: AsyncSession, viewer_id: uuid.UUID, other_id: uuid.UUID) -> None:
        """Cancel a request or disconnect, whichever direction the row runs."""
        result = await db.execute(delete(Connection).where(_between(viewer_id, other_id)))
        if result.rowcount == 0:
            raise NotFoundError(resource="connection")
        logger.info("Connection between %s and %s removed", viewer_id, other_id)

    async def network(self, db: AsyncSession, viewer_id: uuid.UUID) -> NetworkResponse:
        """
        Accepted connections in both directions, pending requests received,
        and up to SUGGESTION_LIMIT other profiles.

        Suggestions exclude the viewer, accepted connections and incoming
        pending requests (which already appear as requests).
        """
        result = await db.execute(
            select(Connection)
            .options(selectinload(Connection.requester), selectinload(Connection.recipient))
            .where(
                or_(Connection.user_id == viewer_id, Connection.connected_user_id == viewer_id),
                Connection.status.in_(("accepted", "pending")),
            )
            .order_by(Connection.updated_at.desc())
            .execution_options(populate_existing=True)
        )
        rows = list(result.scalars().all())

        connections: List[NetworkConnection] = []
        pending: List[PendingRequest] = []
        excluded = {viewer_id}
        for row in rows:
            if row.status == "accepted":
                other = row.recipient if row.user_id == viewer_id else row.requester
                connections.append(
                    NetworkConnection(
                        connection_id=row.id,
                        profile=ProfileSummary.model_validate(other),
                        since=row.updated_at,
                    )
                )
                excluded.add(other.id)
            elif row.connected_user_id == viewer_id:
                pending.append(
                    PendingRequest(
                        connection_id=row.id,
                        requester=ProfileSummary.model_validate(row.requester),
                        created_at=row.created_at,
                    )
                )
                excluded.add(row.user_id)

        suggestions = await db.execute(
            select(Profile)
            .where(Profile.id.not_in(excluded))
            .order_by(Profile.updated_at.desc())
            .limit(SUGGESTION_LIMIT)
        )
        return NetworkResponse(
            connections=connections,
            pending_requests=pending,
            suggestions=[ProfileSummary.model_validate(p) for p in suggestions.scalars().all()],
        )


connection_service = ConnectionService()

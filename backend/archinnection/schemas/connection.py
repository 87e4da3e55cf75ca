"""
Archinnection Backend: Connection Schemas
===========================================

What:  Connection status, request and network-page payloads.

Status semantics (from the viewer's point of view):
    none      no row in either direction
    pending   a request exists; `direction` says who sent it
    accepted  connected
    rejected  the recipient declined; the row stays until removed
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from archinnection.schemas.profile import ProfileSummary

ConnectionState = Literal["none", "pending", "accepted", "rejected"]
ConnectionDirection = Literal["outgoing", "incoming"]


class ConnectionStatusResponse(BaseModel):
    user_id: uuid.UUID
    status: ConnectionState
    direction: Optional[ConnectionDirection] = None


class ConnectionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    connected_user_id: uuid.UUID
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NetworkConnection(BaseModel):
    connection_id: uuid.UUID
    profile: ProfileSummary
    since: datetime


class PendingRequest(BaseModel):
    connection_id: uuid.UUID
    requester: ProfileSummary
    created_at: datetime


class NetworkResponse(BaseModel):
    connections: List[NetworkConnection]
    pending_requests: List[PendingRequest]
    suggestions: List[ProfileSummary]

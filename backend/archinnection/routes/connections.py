"""
Archinnection Backend: Connection Routes
==========================================

What:  Connection status, send/accept/reject/remove, and the network
       payload, under /api/connections. `{user_id}` is always the other
       person.
Who:   The connect button on profiles and the network page.
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.database import get_db_session
from archinnection.dependencies import get_current_user_id
from archinnection.schemas.common import ErrorResponse
from archinnection.schemas.connection import (
    ConnectionResponse,
    ConnectionStatusResponse,
    NetworkResponse,
)
from archinnection.services.connection_service import connection_service

router = APIRouter(prefix="/api/connections", tags=["Connections"])

ANSWER_ERRORS = {
    404: {"description": "No request from this user", "model": ErrorResponse},
    409: {"description": "Request already answered", "model": ErrorResponse},
}


@router.get("", response_model=NetworkResponse, summary="Connections, incoming requests, suggestions")
async def get_network(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NetworkResponse:
    return await connection_service.network(db, user_id)


@router.get("/status/{other_id}", response_model=ConnectionStatusResponse)
async def get_status(
    other_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionStatusResponse:
    return await connection_service.get_status(db, user_id, other_id)


@router.post(
    "/{other_id}",
    response_model=ConnectionResponse,
    status_code=201,
    responses={
        400: {"description": "Cannot connect with yourself", "model": ErrorResponse},
        404: {"description": "Profile not found", "model": ErrorResponse},
        409: {"description": "Connection already exists", "model": ErrorResponse},
    },
    summary="Send a connection request",
)
async def send_request(
    other_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionResponse:
    connection = await connection_service.send_request(db, user_id, other_id)
    return ConnectionResponse.model_validate(connection)


@router.post("/{other_id}/accept", response_model=ConnectionResponse, responses=ANSWER_ERRORS)
async def accept_request(
    other_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionResponse:
    return ConnectionResponse.model_validate(await connection_service.accept(db, user_id, other_id))


@router.post("/{other_id}/reject", response_model=ConnectionResponse, responses=ANSWER_ERRORS)
async def reject_request(
    other_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ConnectionResponse:
    return ConnectionResponse.model_validate(await connection_service.reject(db, user_id, other_id))


@router.delete(
    "/{other_id}",
    status_code=204,
    responses={404: {"description": "No connection with this user", "model": ErrorResponse}},
    summary="Cancel a request or disconnect",
)
async def remove_connection(
    other_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await connection_service.remove(db, user_id, other_id)
    return Response(status_code=204)

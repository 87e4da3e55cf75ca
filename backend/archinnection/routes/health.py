"""
Archinnection Backend: Health Check Route
===========================================

What:  GET /health for container health checks and load balancer probes.
How:   SELECT 1 against the database and a write check on the storage root.
       Healthy only if both pass; otherwise 503 so traffic is routed away.
"""

import logging
import os
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from archinnection import __version__
from archinnection.database import engine
from archinnection.schemas.common import HealthResponse
from archinnection.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    storage_status = "writable"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not os.access(storage_service.storage_root, os.W_OK):
        storage_status = "unavailable"
        logger.warning("Health check: storage root not writable: %s", storage_service.storage_root)

    healthy = db_status == "connected" and storage_status == "writable"
    if not healthy:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )

"""
Archinnection Backend: Job Routes
===================================

What:  GET/POST /api/jobs, GET /api/jobs/mine, PATCH /api/jobs/{id}/status.
Who:   Jobs board and the post-a-job form.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.database import get_db_session
from archinnection.dependencies import get_current_user_id
from archinnection.schemas.common import ErrorResponse
from archinnection.schemas.job import (
    JobCreateRequest,
    JobListResponse,
    JobResponse,
    JobStatusUpdateRequest,
)
from archinnection.services.job_service import job_service

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


@router.get("", response_model=JobListResponse, summary="Active jobs, newest first")
async def list_jobs(
    _: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> JobListResponse:
    jobs = await job_service.list_active(db)
    return JobListResponse(jobs=[JobResponse.model_validate(j) for j in jobs])


@router.get("/mine", response_model=JobListResponse, summary="Jobs I posted (any status)")
async def list_my_jobs(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> JobListResponse:
    jobs = await job_service.list_mine(db, user_id)
    return JobListResponse(jobs=[JobResponse.model_validate(j) for j in jobs])


@router.post(
    "",
    response_model=JobResponse,
    status_code=201,
    responses={422: {"description": "Form validation failed"}},
    summary="Post a job",
)
async def create_job(
    payload: JobCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> JobResponse:
    return JobResponse.model_validate(await job_service.create_job(db, user_id, payload))


@router.patch(
    "/{job_id}/status",
    response_model=JobResponse,
    responses={
        403: {"description": "Not the poster", "model": ErrorResponse},
        404: {"description": "Job not found", "model": ErrorResponse},
    },
    summary="Close or reopen a job",
)
async def update_job_status(
    job_id: uuid.UUID,
    payload: JobStatusUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> JobResponse:
    job = await job_service.set_status(db, user_id, job_id, payload.status)
    return JobResponse.model_validate(job)

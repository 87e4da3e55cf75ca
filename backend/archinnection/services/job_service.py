"""
Archinnection Backend: Job Service
====================================

What:  Post jobs, list the public board and the poster's own listings,
       open/close a listing.
Who:   /api/jobs routes and the jobs page.
"""

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from archinnection.database import utcnow
from archinnection.exceptions import DatabaseError, NotFoundError, PermissionDeniedError
from archinnection.models.job import Job
from archinnection.schemas.job import JobCreateRequest

logger = logging.getLogger(__name__)

BOARD_LIMIT = 50


def _with_poster():
    return (
        select(Job)
        .options(selectinload(Job.poster))
        .execution_options(populate_existing=True)
    )


class JobService:

    async def create_job(self, db: AsyncSession, user_id: uuid.UUID, data: JobCreateRequest) -> Job:
        job = Job(
            title=data.title,
            company_name=data.company_name,
            location=data.location,
            job_type=data.job_type,
            salary_range=data.salary_range,
            description=data.description,
            requirements=data.requirements,
            contact_email=str(data.contact_email),
            application_url=str(data.application_url) if data.application_url else None,
            posted_by=user_id,
            status="active",
        )
        try:
            db.add(job)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create job for %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(message="Could not post the job. Please try again.")

        logger.info("Job %s posted by %s", job.id, user_id)
        return await self.get_job(db, job.id)

    async def get_job(self, db: AsyncSession, job_id: uuid.UUID) -> Job:
        result = await db.execute(_with_poster().where(Job.id == job_id))
        job = result.scalar_one_or_none()
        if job is None:
            raise NotFoundError(resource="job", resource_id=str(job_id))
        return job

    async def list_active(self, db: AsyncSession, limit: int = BOARD_LIMIT) -> List[Job]:
        """Active jobs with their poster, newest first."""
        result = await db.execute(
            _with_poster()
            .where(Job.status == "active")
            .order_by(Job.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_mine(self, db: AsyncSession, user_id: uuid.UUID) -> List[Job]:
        """Every job the user posted, any status, newest first."""
        result = await db.execute(
            _with_poster().where(Job.posted_by == user_id).order_by(Job.created_at.desc())
        )
        return list(result.scalars().all())

    async def set_status(
        self, db: AsyncSession, user_id: uuid.UUID, job_id: uuid.UUID, status: str
    ) -> Job:
        """
        Raises:
            NotFoundError: no such job
            PermissionDeniedError: the job was posted by someone else
        """
        job = await self.get_job(db, job_id)
        if job.posted_by != user_id:
            raise PermissionDeniedError(message="Only the poster can change this job.")
        job.status = status
        job.updated_at = utcnow()
        await db.flush()
        logger.info("Job %s marked %s", job_id, status)
        return job


job_service = JobService()

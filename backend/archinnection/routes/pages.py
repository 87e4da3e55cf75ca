"""
Archinnection Backend: Page Routes
====================================

What:  One GET endpoint per page: /, /login, /signup, /dashboard,
       /profile, /network, /jobs, /recruiters.
How:   Each returns the data its page renders. SessionMiddleware has
       already redirected anonymous visitors to /login, and signed-in
       visitors away from /login and /signup.
Who:   The web client, on navigation.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.database import get_db_session
from archinnection.dependencies import get_current_user_id
from archinnection.exceptions import NotFoundError
from archinnection.schemas.connection import NetworkResponse
from archinnection.schemas.job import JobResponse
from archinnection.schemas.pages import (
    AuthPageResponse,
    DashboardPageResponse,
    FormField,
    JobsPageResponse,
    ProfilePageResponse,
    RecruitersPageResponse,
)
from archinnection.schemas.profile import ProfileResponse, ProfileSectionsResponse, ProfileSummary
from archinnection.services.connection_service import connection_service
from archinnection.services.job_service import job_service
from archinnection.services.post_service import post_service
from archinnection.services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])

RECRUITER_LIMIT = 20


@router.get("/", include_in_schema=False)
async def index() -> RedirectResponse:
    return RedirectResponse("/dashboard", status_code=307)


@router.get("/login", response_model=AuthPageResponse)
async def login_page() -> AuthPageResponse:
    return AuthPageResponse(
        page="login",
        submit_to="/api/auth/login",
        fields=[
            FormField(name="email", type="email"),
            FormField(name="password", type="password"),
        ],
        alternate="/signup",
    )


@router.get("/signup", response_model=AuthPageResponse)
async def signup_page() -> AuthPageResponse:
    return AuthPageResponse(
        page="signup",
        submit_to="/api/auth/signup",
        fields=[
            FormField(name="full_name", type="text", min_length=2),
            FormField(name="email", type="email"),
            FormField(name="password", type="password", min_length=8),
        ],
        alternate="/login",
    )


@router.get("/dashboard", response_model=DashboardPageResponse)
async def dashboard_page(
    cursor: Optional[str] = Query(default=None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> DashboardPageResponse:
    profile = await profile_service.get_profile(db, user_id)
    feed = await post_service.list_feed(db, user_id, limit=20, cursor=cursor)
    return DashboardPageResponse(
        profile=ProfileResponse.model_validate(profile),
        has_resume=profile.resume_url is not None,
        feed=feed,
    )


@router.get("/profile", response_model=ProfilePageResponse)
async def profile_page(
    id: Optional[uuid.UUID] = Query(default=None, description="Profile to view; defaults to your own"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    profile_id = id or user_id
    try:
        profile = await profile_service.get_profile(db, profile_id)
    except NotFoundError:
        logger.info("Profile %s not found; redirecting to dashboard", profile_id)
        return RedirectResponse("/dashboard", status_code=307)

    is_own = profile_id == user_id
    sections = ProfileSectionsResponse.model_validate(
        await profile_service.list_sections(db, profile_id), from_attributes=True
    )
    connection = None if is_own else await connection_service.get_status(db, user_id, profile_id)

    return ProfilePageResponse(
        profile=ProfileResponse.model_validate(profile),
        is_own_profile=is_own,
        experiences=sections.experiences,
        education=sections.education,
        skills=sections.skills,
        projects=sections.projects,
        connection=connection,
    )


@router.get("/network", response_model=NetworkResponse)
async def network_page(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> NetworkResponse:
    return await connection_service.network(db, user_id)


@router.get("/jobs", response_model=JobsPageResponse)
async def jobs_page(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> JobsPageResponse:
    jobs = await job_service.list_active(db)
    mine = await job_service.list_mine(db, user_id)
    return JobsPageResponse(
        jobs=[JobResponse.model_validate(j) for j in jobs],
        my_jobs=[JobResponse.model_validate(j) for j in mine],
    )


@router.get("/recruiters", response_model=RecruitersPageResponse)
async def recruiters_page(
    q: Optional[str] = Query(default=None, max_length=100),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> RecruitersPageResponse:
    with_resumes = await profile_service.list_with_resumes(db, limit=RECRUITER_LIMIT, query=q)
    others = await profile_service.list_others(db, user_id, limit=RECRUITER_LIMIT, query=q)
    return RecruitersPageResponse(
        query=q,
        profiles_with_resumes=[ProfileResponse.model_validate(p) for p in with_resumes],
        profiles=[ProfileSummary.model_validate(p) for p in others],
    )

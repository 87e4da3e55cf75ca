"""
Archinnection Backend: Profile Routes
=======================================

What:  Profile reads/edits, avatar and resume uploads, profile sections
       and profile search, all under /api/profiles.
How:   Uploads are read through StorageService.read_upload (size-capped
       while streaming) and handed to ProfileService.
Who:   Profile page, edit-profile form, avatar and resume widgets.
"""

import logging
import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.database import get_db_session
from archinnection.dependencies import get_current_user_id
from archinnection.schemas.common import ErrorResponse
from archinnection.schemas.profile import (
    EducationCreateRequest,
    EducationResponse,
    ExperienceCreateRequest,
    ExperienceResponse,
    ProfileResponse,
    ProfileSectionsResponse,
    ProfileSummary,
    ProfileUpdateRequest,
    ProjectCreateRequest,
    ProjectResponse,
    SkillCreateRequest,
    SkillResponse,
)
from archinnection.services.profile_service import profile_service
from archinnection.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])

UPLOAD_ERRORS = {
    400: {"description": "Wrong file type, empty or too large", "model": ErrorResponse},
    401: {"description": "Not signed in", "model": ErrorResponse},
}


# ── Own Profile ───────────────────────────────────────────────────────────

@router.get("/me", response_model=ProfileResponse, summary="Signed-in user's profile")
async def get_my_profile(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return ProfileResponse.model_validate(await profile_service.get_profile(db, user_id))


@router.patch("/me", response_model=ProfileResponse, summary="Edit name, title, location and bio")
async def update_my_profile(
    payload: ProfileUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.update_profile(db, user_id, payload)
    return ProfileResponse.model_validate(profile)


@router.post(
    "/me/avatar",
    response_model=ProfileResponse,
    responses=UPLOAD_ERRORS,
    summary="Upload or replace the avatar (image, max 2MB)",
)
async def upload_avatar(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Image file"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    try:
        content = await storage_service.read_upload("avatars", file)
    finally:
        await file.close()
    profile = await profile_service.upload_avatar(
        db, user_id, file.filename or "", file.content_type, content, background_tasks
    )
    return ProfileResponse.model_validate(profile)


@router.delete("/me/avatar", response_model=ProfileResponse, summary="Remove the avatar")
async def remove_avatar(
    background_tasks: BackgroundTasks,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.remove_avatar(db, user_id, background_tasks)
    return ProfileResponse.model_validate(profile)


@router.post(
    "/me/resume",
    response_model=ProfileResponse,
    responses=UPLOAD_ERRORS,
    summary="Upload or replace the resume (PDF/DOC/DOCX, max 5MB)",
)
async def upload_resume(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="PDF or Word document"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    try:
        content = await storage_service.read_upload("resumes", file)
    finally:
        await file.close()
    profile = await profile_service.upload_resume(
        db, user_id, file.filename or "", file.content_type, content, background_tasks
    )
    return ProfileResponse.model_validate(profile)


@router.delete("/me/resume", response_model=ProfileResponse, summary="Remove the resume")
async def remove_resume(
    background_tasks: BackgroundTasks,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await profile_service.remove_resume(db, user_id, background_tasks)
    return ProfileResponse.model_validate(profile)


# ── Sections ──────────────────────────────────────────────────────────────

@router.post("/me/experiences", response_model=ExperienceResponse, status_code=201)
async def add_experience(
    payload: ExperienceCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ExperienceResponse:
    item = await profile_service.add_section_item(db, user_id, "experiences", payload.model_dump())
    return ExperienceResponse.model_validate(item)


@router.post("/me/education", response_model=EducationResponse, status_code=201)
async def add_education(
    payload: EducationCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EducationResponse:
    item = await profile_service.add_section_item(db, user_id, "education", payload.model_dump())
    return EducationResponse.model_validate(item)


@router.post(
    "/me/skills",
    response_model=SkillResponse,
    status_code=201,
    responses={409: {"description": "Skill already listed", "model": ErrorResponse}},
)
async def add_skill(
    payload: SkillCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SkillResponse:
    item = await profile_service.add_section_item(db, user_id, "skills", payload.model_dump())
    return SkillResponse.model_validate(item)


@router.post("/me/projects", response_model=ProjectResponse, status_code=201)
async def add_project(
    payload: ProjectCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    item = await profile_service.add_section_item(db, user_id, "projects", payload.model_dump())
    return ProjectResponse.model_validate(item)


@router.delete(
    "/me/{section}/{item_id}",
    status_code=204,
    responses={404: {"description": "No such entry", "model": ErrorResponse}},
)
async def delete_section_item(
    section: Literal["experiences", "education", "skills", "projects"],
    item_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await profile_service.delete_section_item(db, user_id, section, item_id)
    return Response(status_code=204)


@router.get(
    "/{profile_id}/sections",
    response_model=ProfileSectionsResponse,
    summary="Experiences, education, skills and projects",
)
async def list_sections(
    profile_id: uuid.UUID,
    _: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileSectionsResponse:
    await profile_service.get_profile(db, profile_id)
    sections = await profile_service.list_sections(db, profile_id)
    return ProfileSectionsResponse.model_validate(sections, from_attributes=True)


# ── Browse ────────────────────────────────────────────────────────────────

@router.get("", response_model=List[ProfileSummary], summary="Browse or search other profiles")
async def search_profiles(
    q: Optional[str] = Query(default=None, max_length=100, description="Matches name, title or location"),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[ProfileSummary]:
    profiles = await profile_service.list_others(db, user_id, limit=limit, query=q)
    return [ProfileSummary.model_validate(p) for p in profiles]


@router.get(
    "/{profile_id}",
    response_model=ProfileResponse,
    responses={404: {"description": "Profile not found", "model": ErrorResponse}},
)
async def get_profile(
    profile_id: uuid.UUID,
    _: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return ProfileResponse.model_validate(await profile_service.get_profile(db, profile_id))

"""
Archinnection Backend: Profile Service
========================================

What:  Profile reads and edits, avatar and resume uploads, profile
       sections, and the recruiter-facing profile lists.
How:   Uploads go through StorageService; the profile row is updated in
       the request transaction; replaced objects are deleted by a
       background task that runs after the response (and the commit).
Who:   /api/profiles routes and the profile, dashboard and recruiters pages.

Upload Consistency:
    new object stored ─▶ row updated ─▶ old object deleted (background)
    If the row update fails, the new object is deleted immediately, so a
    failed update never leaves an orphan and never loses the old file.
"""

import logging
import uuid
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Type

from fastapi import BackgroundTasks
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.database import utcnow
from archinnection.exceptions import ConflictError, DatabaseError, NotFoundError
from archinnection.models.profile import Education, Experience, Profile, Project, Skill
from archinnection.schemas.profile import ProfileUpdateRequest
from archinnection.services.storage_service import storage_service

logger = logging.getLogger(__name__)

SECTION_MODELS: Dict[str, Type[Any]] = {
    "experiences": Experience,
    "education": Education,
    "skills": Skill,
    "projects": Project,
}


def search_pattern(query: str) -> str:
    """ILIKE pattern matching `query` literally anywhere in the column."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _display_filename(filename: Optional[str]) -> str:
    name = PurePath(filename or "").name.strip()
    return name[:255] or "resume"


class ProfileService:

    # ── Profile ───────────────────────────────────────────────────────────

    async def get_profile(self, db: AsyncSession, profile_id: uuid.UUID) -> Profile:
        """
        Raises:
            NotFoundError: no profile with this id
        """
        profile = await db.get(Profile, profile_id)
        if profile is None:
            raise NotFoundError(resource="profile", resource_id=str(profile_id))
        return profile

    async def update_profile(
        self, db: AsyncSession, user_id: uuid.UUID, data: ProfileUpdateRequest
    ) -> Profile:
        profile = await self.get_profile(db, user_id)
        profile.full_name = data.full_name
        profile.title = data.title
        profile.location = data.location
        profile.bio = data.bio
        profile.updated_at = utcnow()
        await db.flush()
        logger.info("Profile %s updated", user_id)
        return profile

    # ── Avatar & Resume ───────────────────────────────────────────────────

    async def _replace_object(
        self,
        db: AsyncSession,
        profile: Profile,
        bucket: str,
        fields: Dict[str, Any],
        old_key: Optional[str],
        new_key: Optional[str],
        background_tasks: BackgroundTasks,
    ) -> Profile:
        """
        Point the profile at a new object (or none) and retire the old one.

        The new object is removed if the row cannot be written.
        """
        for name, value in fields.items():
            setattr(profile, name, value)
        profile.updated_at = utcnow()
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Profile %s update failed: %s", profile.id, str(e), exc_info=True)
            if new_key:
                await storage_service.delete(bucket, new_key)
            raise DatabaseError(context={"operation": f"update_{bucket}", "profile_id": str(profile.id)})

        if old_key and old_key != new_key:
            background_tasks.add_task(storage_service.delete, bucket, old_key)
        return profile

    async def upload_avatar(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        filename: str,
        content_type: Optional[str],
        content: bytes,
        background_tasks: BackgroundTasks,
    ) -> Profile:
        profile = await self.get_profile(db, user_id)
        stored = await storage_service.upload("avatars", user_id, filename, content_type, content)
        return await self._replace_object(
            db,
            profile,
            "avatars",
            {"avatar_url": stored.public_url, "avatar_key": stored.key},
            old_key=profile.avatar_key,
            new_key=stored.key,
            background_tasks=background_tasks,
        )

    async def remove_avatar(
        self, db: AsyncSession, user_id: uuid.UUID, background_tasks: BackgroundTasks
    ) -> Profile:
        profile = await self.get_profile(db, user_id)
        return await self._replace_object(
            db,
            profile,
            "avatars",
            {"avatar_url": None, "avatar_key": None},
            old_key=profile.avatar_key,
            new_key=None,
            background_tasks=background_tasks,
        )

    async def upload_resume(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        filename: str,
        content_type: Optional[str],
        content: bytes,
        background_tasks: BackgroundTasks,
    ) -> Profile:
        profile = await self.get_profile(db, user_id)
        stored = await storage_service.upload("resumes", user_id, filename, content_type, content)
        return await self._replace_object(
            db,
            profile,
            "resumes",
            {
                "resume_url": stored.public_url,
                "resume_key": stored.key,
                "resume_name": _display_filename(filename),
            },
            old_key=profile.resume_key,
            new_key=stored.key,
            background_tasks=background_tasks,
        )

    async def remove_resume(
        self, db: AsyncSession, user_id: uuid.UUID, background_tasks: BackgroundTasks
    ) -> Profile:
        profile = await self.get_profile(db, user_id)
        return await self._replace_object(
            db,
            profile,
            "resumes",
            {"resume_url": None, "resume_key": None, "resume_name": None},
            old_key=profile.resume_key,
            new_key=None,
            background_tasks=background_tasks,
        )

    # ── Sections ──────────────────────────────────────────────────────────

    async def list_sections(self, db: AsyncSession, user_id: uuid.UUID) -> Dict[str, List[Any]]:
        """Experiences and education newest first; skills by name; projects newest first."""
        experiences = await db.execute(
            select(Experience)
            .where(Experience.user_id == user_id)
            .order_by(Experience.start_date.desc())
        )
        education = await db.execute(
            select(Education)
            .where(Education.user_id == user_id)
            .order_by(Education.start_date.desc())
        )
        skills = await db.execute(
            select(Skill).where(Skill.user_id == user_id).order_by(Skill.name)
        )
        projects = await db.execute(
            select(Project).where(Project.user_id == user_id).order_by(Project.created_at.desc())
        )
        return {
            "experiences": list(experiences.scalars().all()),
            "education": list(education.scalars().all()),
            "skills": list(skills.scalars().all()),
            "projects": list(projects.scalars().all()),
        }

    async def add_section_item(
        self, db: AsyncSession, user_id: uuid.UUID, section: str, data: Dict[str, Any]
    ):
        """
        Raises:
            NotFoundError: unknown section name
            ConflictError: duplicate skill name
        """
        model = SECTION_MODELS.get(section)
        if model is None:
            raise NotFoundError(resource="profile section", resource_id=section)

        item = model(user_id=user_id, **data)
        try:
            async with db.begin_nested():
                db.add(item)
        except IntegrityError:
            raise ConflictError(
                message=f"That entry already exists in your {section}.",
                context={"section": section},
            )
        return item

    async def delete_section_item(
        self, db: AsyncSession, user_id: uuid.UUID, section: str, item_id: uuid.UUID
    ) -> None:
        model = SECTION_MODELS.get(section)
        if model is None:
            raise NotFoundError(resource="profile section", resource_id=section)
        result = await db.execute(
            delete(model).where(model.id == item_id, model.user_id == user_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource=section, resource_id=str(item_id))

    # ── Profile Lists ─────────────────────────────────────────────────────

    @staticmethod
    def _apply_search(stmt, query: Optional[str]):
        if query and query.strip():
            pattern = search_pattern(query.strip())
            stmt = stmt.where(
                or_(
                    Profile.full_name.ilike(pattern, escape="\\"),
                    Profile.title.ilike(pattern, escape="\\"),
                    Profile.location.ilike(pattern, escape="\\"),
                )
            )
        return stmt

    async def list_with_resumes(
        self, db: AsyncSession, limit: int = 20, query: Optional[str] = None
    ) -> List[Profile]:
        """Profiles that have uploaded a resume, most recently updated first."""
        stmt = select(Profile).where(Profile.resume_url.is_not(None))
        stmt = self._apply_search(stmt, query)
        result = await db.execute(stmt.order_by(Profile.updated_at.desc()).limit(limit))
        return list(result.scalars().all())

    async def list_others(
        self,
        db: AsyncSession,
        viewer_id: uuid.UUID,
        limit: int = 20,
        query: Optional[str] = None,
    ) -> List[Profile]:
        """Every profile except the viewer's, most recently updated first."""
        stmt = select(Profile).where(Profile.id != viewer_id)
        stmt = self._apply_search(stmt, query)
        result = await db.execute(stmt.order_by(Profile.updated_at.desc()).limit(limit))
        return list(result.scalars().all())


profile_service = ProfileService()

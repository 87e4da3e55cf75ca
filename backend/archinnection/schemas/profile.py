"""
Archinnection Backend: Profile Schemas
========================================

What:  Request/response models for profiles and their sections.
How:   Response models read straight from ORM objects (from_attributes).
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════

class ProfileSummary(BaseModel):
    """Compact profile embedded in posts, comments, jobs and network lists."""
    id: uuid.UUID
    full_name: str
    title: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class ProfileResponse(ProfileSummary):
    email: str
    bio: Optional[str] = None
    resume_url: Optional[str] = None
    resume_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExperienceResponse(BaseModel):
    id: uuid.UUID
    title: str
    company: str
    location: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class EducationResponse(BaseModel):
    id: uuid.UUID
    school: str
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None

    model_config = {"from_attributes": True}


class SkillResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class ProjectResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════

def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ProfileUpdateRequest(BaseModel):
    """Edit form: name is required, the rest may be cleared with an empty string."""
    full_name: str = Field(min_length=2, max_length=120)
    title: Optional[str] = Field(default=None, max_length=160)
    location: Optional[str] = Field(default=None, max_length=160)
    bio: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("title", "location", "bio")
    @classmethod
    def blank_optional(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class _DatedSection(BaseModel):
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ExperienceCreateRequest(_DatedSection):
    title: str = Field(min_length=1, max_length=160)
    company: str = Field(min_length=1, max_length=160)
    location: Optional[str] = Field(default=None, max_length=160)
    description: Optional[str] = Field(default=None, max_length=4000)


class EducationCreateRequest(_DatedSection):
    school: str = Field(min_length=1, max_length=160)
    degree: Optional[str] = Field(default=None, max_length=160)
    field_of_study: Optional[str] = Field(default=None, max_length=160)


class SkillCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=80)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class ProjectCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=160)
    description: Optional[str] = Field(default=None, max_length=4000)
    url: Optional[str] = Field(default=None, max_length=512)
    image_url: Optional[str] = Field(default=None, max_length=512)


class ProfileSectionsResponse(BaseModel):
    experiences: List[ExperienceResponse]
    education: List[EducationResponse]
    skills: List[SkillResponse]
    projects: List[ProjectResponse]

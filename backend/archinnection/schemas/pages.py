"""
Archinnection Backend: Page Payload Schemas
=============================================

What:  One response model per page route. Each carries everything the
       page renders in a single round trip.
"""

from typing import List, Optional

from pydantic import BaseModel

from archinnection.schemas.connection import ConnectionStatusResponse
from archinnection.schemas.job import JobResponse
from archinnection.schemas.post import FeedResponse
from archinnection.schemas.profile import (
    EducationResponse,
    ExperienceResponse,
    ProfileResponse,
    ProfileSummary,
    ProjectResponse,
    SkillResponse,
)


class FormField(BaseModel):
    name: str
    type: str
    required: bool = True
    min_length: Optional[int] = None


class AuthPageResponse(BaseModel):
    page: str
    submit_to: str
    fields: List[FormField]
    alternate: str


class DashboardPageResponse(BaseModel):
    profile: ProfileResponse
    has_resume: bool
    feed: FeedResponse


class ProfilePageResponse(BaseModel):
    profile: ProfileResponse
    is_own_profile: bool
    experiences: List[ExperienceResponse]
    education: List[EducationResponse]
    skills: List[SkillResponse]
    projects: List[ProjectResponse]
    connection: Optional[ConnectionStatusResponse] = None


class JobsPageResponse(BaseModel):
    jobs: List[JobResponse]
    my_jobs: List[JobResponse]


class RecruitersPageResponse(BaseModel):
    query: Optional[str] = None
    profiles_with_resumes: List[ProfileResponse]
    profiles: List[ProfileSummary]

"""
Archinnection Backend: Job Schemas
====================================

What:  Job posting form and listing payloads.
How:   Form rules live here as Field constraints, so a bad submission is
       rejected with FastAPI's field-level 422 before reaching JobService.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator

from archinnection.schemas.profile import ProfileSummary

JobType = Literal["full-time", "part-time", "contract", "freelance", "internship"]
JobStatus = Literal["active", "closed"]


class JobCreateRequest(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    company_name: str = Field(min_length=2, max_length=200)
    location: str = Field(min_length=2, max_length=200)
    job_type: JobType
    salary_range: Optional[str] = Field(default=None, max_length=100)
    description: str = Field(min_length=20, max_length=10000)
    requirements: str = Field(min_length=20, max_length=10000)
    contact_email: EmailStr
    # An empty string from the form means "no application link"
    application_url: Optional[HttpUrl] = None

    @field_validator("title", "company_name", "location", "description", "requirements", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("salary_range", "application_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class JobStatusUpdateRequest(BaseModel):
    status: JobStatus


class JobResponse(BaseModel):
    id: uuid.UUID
    title: str
    company_name: str
    location: str
    job_type: str
    salary_range: Optional[str] = None
    description: str
    requirements: str
    contact_email: str
    application_url: Optional[str] = None
    status: str
    posted_by: uuid.UUID
    poster: Optional[ProfileSummary] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class JobListResponse(BaseModel):
    jobs: List[JobResponse]

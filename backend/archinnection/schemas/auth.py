"""
Archinnection Backend: Authentication Schemas
===============================================

What:  Sign-up, sign-in and current-session payloads.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field, field_validator

from archinnection.schemas.profile import ProfileSummary


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=2, max_length=120)

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class SignupResponse(BaseModel):
    """Sign-up does not sign the user in; the client continues to redirect_to."""
    user_id: uuid.UUID
    email: str
    message: str = "Account created. Please sign in."
    redirect_to: str = "/login"


class SessionResponse(BaseModel):
    user_id: uuid.UUID
    email: str
    profile: ProfileSummary
    redirect_to: str = "/dashboard"

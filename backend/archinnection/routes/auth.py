"""
Archinnection Backend: Authentication Routes
==============================================

What:  POST /api/auth/signup, POST /api/auth/login, POST /api/auth/logout,
       GET /api/auth/session.
How:   Validates the form payload, delegates to AuthService, and manages
       the session cookie on the response.
Who:   The sign-up and sign-in forms, and any client checking who is signed in.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.config import settings
from archinnection.database import get_db_session
from archinnection.dependencies import get_current_user_id
from archinnection.middleware.session import clear_session_cookie, set_session_cookie
from archinnection.schemas.auth import LoginRequest, SessionResponse, SignupRequest, SignupResponse
from archinnection.schemas.common import ErrorResponse, MessageResponse
from archinnection.schemas.profile import ProfileSummary
from archinnection.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={
        409: {"description": "Email already registered", "model": ErrorResponse},
        422: {"description": "Invalid email, short password or short name"},
    },
    summary="Create an account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    """Creates the account and its profile. The client continues to /login."""
    user = await auth_service.signup(
        db, email=payload.email, password=payload.password, full_name=payload.full_name
    )
    return SignupResponse(user_id=user.id, email=user.email)


@router.post(
    "/login",
    response_model=SessionResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    user, session = await auth_service.login(db, email=payload.email, password=payload.password)
    _, profile = await auth_service.get_user(db, user.id)
    set_session_cookie(response, session.token)
    return SessionResponse(
        user_id=user.id,
        email=user.email,
        profile=ProfileSummary.model_validate(profile),
    )


@router.post("/logout", response_model=MessageResponse, summary="Sign out")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.logout(db, request.cookies.get(settings.session_cookie_name))
    clear_session_cookie(response)
    return MessageResponse(message="Signed out")


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="Current signed-in user",
)
async def current_session(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    user, profile = await auth_service.get_user(db, user_id)
    return SessionResponse(
        user_id=user.id,
        email=user.email,
        profile=ProfileSummary.model_validate(profile),
    )

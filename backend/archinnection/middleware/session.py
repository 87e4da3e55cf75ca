"""
Archinnection Backend: Session Middleware (Route Gate)
========================================================

What:  Resolves the session cookie on every request, keeps the session
       alive, and gates page routes on authentication.
How:   Opens a short database session from app.state.session_factory,
       resolves + refreshes the token through AuthService, then:
         - no session on a page path        → 307 to /login
         - session on /login or /signup     → 307 to /dashboard
         - otherwise                        → request.state.user_id is set
       A slid session re-issues the cookie; a dead cookie is cleared.
Who:   Every request. API routes are never redirected; they answer 401
       through the get_current_user_id dependency instead.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from archinnection.config import settings
from archinnection.database import async_session_factory
from archinnection.middleware.request_id import request_id_var
from archinnection.services.auth_service import auth_service

logger = logging.getLogger(__name__)

# Reachable without a session
PUBLIC_PREFIXES = (
    "/login",
    "/signup",
    "/api",
    "/storage",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)

AUTH_PAGES = ("/login", "/signup")

SIGN_IN_PATH = "/login"
HOME_PATH = "/dashboard"


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_public_path(path: str) -> bool:
    return any(_matches(path, prefix) for prefix in PUBLIC_PREFIXES)


def is_auth_page(path: str) -> bool:
    return any(_matches(path, page) for page in AUTH_PAGES)


# ── Cookie Helpers ────────────────────────────────────────────────────────

def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def _response_sets_cookie(response: Response) -> bool:
    prefix = f"{settings.session_cookie_name}="
    return any(
        value.startswith(prefix)
        for key, value in response.headers.items()
        if key == "set-cookie"
    )


class SessionMiddleware(BaseHTTPMiddleware):

    async def _resolve(self, request: Request, token: Optional[str]):
        if not token:
            return None, False
        factory = getattr(request.app.state, "session_factory", async_session_factory)
        async with factory() as db:
            try:
                user_id, renewed = await auth_service.resolve_and_refresh(db, token)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return user_id, renewed

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        token = request.cookies.get(settings.session_cookie_name)

        try:
            user_id, renewed = await self._resolve(request, token)
        except SQLAlchemyError as e:
            rid = request_id_var.get("")
            logger.error("[%s] Session lookup failed: %s", rid, str(e), exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "server_error",
                    "message": "An internal error occurred. Please try again later.",
                    "request_id": rid,
                },
            )

        request.state.user_id = user_id
        stale_cookie = bool(token) and user_id is None

        if user_id is None and not is_public_path(path):
            response: Response = RedirectResponse(SIGN_IN_PATH, status_code=307)
        elif user_id is not None and is_auth_page(path):
            response = RedirectResponse(HOME_PATH, status_code=307)
        else:
            response = await call_next(request)

        # Sign-in/sign-out routes manage the cookie themselves
        if not _response_sets_cookie(response):
            if renewed:
                set_session_cookie(response, token)
            elif stale_cookie:
                clear_session_cookie(response)
        return response

"""
Archinnection Backend: Session Gate Tests
===========================================

What:  The route gate in SessionMiddleware and the cookie lifecycle.
How:   Requests go through the full app (HTTPX + ASGITransport) against
       the per-test SQLite database. Redirects are not followed.

What we test:
    ✅ Anonymous visitors to page routes are sent to /login
    ✅ Signed-in visitors to /login and /signup are sent to /dashboard
    ✅ API routes answer 401 instead of redirecting
    ✅ Expired or unknown cookies are cleared
    ✅ Path matching is by segment (/loginx is not /login)
"""

from datetime import timedelta

import pytest
from sqlalchemy import update

from archinnection.config import settings
from archinnection.database import utcnow
from archinnection.middleware.session import is_auth_page, is_public_path
from archinnection.models.user import AuthSession


class TestPathRules:

    @pytest.mark.parametrize(
        "path",
        ["/login", "/signup", "/api/auth/login", "/api/posts", "/storage/avatars/a.png", "/health"],
    )
    def test_public_paths(self, path):
        assert is_public_path(path)

    @pytest.mark.parametrize("path", ["/", "/dashboard", "/profile", "/network", "/loginx", "/apis"])
    def test_protected_paths(self, path):
        assert not is_public_path(path)

    def test_auth_pages(self):
        assert is_auth_page("/login")
        assert is_auth_page("/signup")
        assert not is_auth_page("/dashboard")


class TestAnonymousVisitor:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/dashboard", "/profile", "/network", "/jobs", "/recruiters", "/"])
    async def test_protected_page_redirects_to_login(self, client, path):
        response = await client.get(path)
        assert response.status_code == 307
        assert response.headers["location"] == "/login"

    @pytest.mark.asyncio
    async def test_login_page_is_public(self, client):
        response = await client.get("/login")
        assert response.status_code == 200
        body = response.json()
        assert body["page"] == "login"
        assert body["submit_to"] == "/api/auth/login"

    @pytest.mark.asyncio
    async def test_signup_page_is_public(self, client):
        response = await client.get("/signup")
        assert response.status_code == 200
        assert response.json()["alternate"] == "/login"

    @pytest.mark.asyncio
    async def test_api_answers_401(self, client):
        response = await client.get("/api/profiles/me")
        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "authentication_required"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_unknown_cookie_is_cleared(self, client):
        response = await client.get(
            "/dashboard", headers={"Cookie": f"{settings.session_cookie_name}=bogus"}
        )
        assert response.status_code == 307
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{settings.session_cookie_name}=")
        assert "Max-Age=0" in set_cookie


class TestSignedInVisitor:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/login", "/signup"])
    async def test_auth_pages_redirect_to_dashboard(self, client, make_user, session_cookie, path):
        await make_user()
        headers = await session_cookie()

        response = await client.get(path, headers=headers)

        assert response.status_code == 307
        assert response.headers["location"] == "/dashboard"

    @pytest.mark.asyncio
    async def test_dashboard_renders(self, client, make_user, session_cookie):
        user = await make_user()
        headers = await session_cookie()

        response = await client.get("/dashboard", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["profile"]["id"] == str(user.id)
        assert body["has_resume"] is False
        assert body["feed"]["posts"] == []

    @pytest.mark.asyncio
    async def test_root_redirects_to_dashboard(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()

        response = await client.get("/", headers=headers)

        assert response.status_code == 307
        assert response.headers["location"] == "/dashboard"

    @pytest.mark.asyncio
    async def test_expired_session_redirects_and_clears_cookie(
        self, client, make_user, session_cookie, session_factory
    ):
        await make_user()
        headers = await session_cookie()
        async with session_factory() as db:
            await db.execute(update(AuthSession).values(expires_at=utcnow() - timedelta(seconds=1)))
            await db.commit()

        response = await client.get("/dashboard", headers=headers)

        assert response.status_code == 307
        assert response.headers["location"] == "/login"
        assert "Max-Age=0" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_aging_session_reissues_cookie(
        self, client, make_user, session_cookie, session_factory
    ):
        await make_user()
        headers = await session_cookie()
        nearly_expired = utcnow() + timedelta(seconds=settings.session_ttl_seconds / 4)
        async with session_factory() as db:
            await db.execute(update(AuthSession).values(expires_at=nearly_expired))
            await db.commit()

        response = await client.get("/dashboard", headers=headers)

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(headers["Cookie"] + ";")
        assert f"Max-Age={settings.session_ttl_seconds}" in set_cookie

    @pytest.mark.asyncio
    async def test_fresh_session_sets_no_cookie(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()

        response = await client.get("/dashboard", headers=headers)

        assert "set-cookie" not in response.headers

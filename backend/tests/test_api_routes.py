"""
Archinnection Backend: API Route Tests
========================================

What:  End-to-end checks through HTTP for the main user flows.
How:   HTTPX AsyncClient against the full app and the per-test database.

What we test:
    ✅ Sign-up → sign-in → session → sign-out
    ✅ Empty posts are rejected; likes toggle back and forth
    ✅ Oversize avatars are rejected before reaching storage
    ✅ Connection request → accept, as seen from both users
    ✅ Job posting and closing
    ✅ Profile page falls back to the dashboard for unknown profiles
    ✅ Health check and request ID propagation
    ✅ Mutating API calls are rate limited per client
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from archinnection.config import settings
from archinnection.services.storage_service import storage_service


def _cookie_from(response) -> dict:
    """Cookie request header carrying the session set by a response."""
    token = response.headers["set-cookie"].split(";", 1)[0].split("=", 1)[1]
    return {"Cookie": f"{settings.session_cookie_name}={token}"}


class TestAuthFlow:

    @pytest.mark.asyncio
    async def test_signup_login_session_logout(self, client):
        signup = await client.post(
            "/api/auth/signup",
            json={"email": "ada@example.com", "password": "correct-horse", "full_name": "Ada Lovelace"},
        )
        assert signup.status_code == 201
        assert signup.json()["redirect_to"] == "/login"
        assert "set-cookie" not in signup.headers

        login = await client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "correct-horse"}
        )
        assert login.status_code == 200
        assert login.json()["redirect_to"] == "/dashboard"
        assert "HttpOnly" in login.headers["set-cookie"]
        headers = _cookie_from(login)

        session = await client.get("/api/auth/session", headers=headers)
        assert session.status_code == 200
        assert session.json()["profile"]["full_name"] == "Ada Lovelace"

        logout = await client.post("/api/auth/logout", headers=headers)
        assert logout.status_code == 200
        assert "Max-Age=0" in logout.headers["set-cookie"]

        after = await client.get("/dashboard", headers=headers)
        assert after.status_code == 307
        assert after.headers["location"] == "/login"

    @pytest.mark.asyncio
    async def test_signup_validation(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"email": "not-an-email", "password": "short", "full_name": "A"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_duplicate_signup_conflicts(self, client, make_user):
        await make_user()
        response = await client.post(
            "/api/auth/signup",
            json={"email": "ADA@example.com", "password": "correct-horse", "full_name": "Ada"},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, make_user):
        await make_user()
        response = await client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "wrong-horse"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password."


class TestPosts:

    @pytest.mark.asyncio
    async def test_empty_post_rejected(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()

        response = await client.post("/api/posts", data={"content": "   "}, headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Post must contain text or an image."

    @pytest.mark.asyncio
    async def test_like_toggle_round_trip(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()
        created = await client.post("/api/posts", data={"content": "Courtyard sketch"}, headers=headers)
        assert created.status_code == 201
        post_id = created.json()["id"]

        liked = await client.post(f"/api/posts/{post_id}/like", headers=headers)
        unliked = await client.post(f"/api/posts/{post_id}/like", headers=headers)

        assert (liked.json()["liked"], liked.json()["like_count"]) == (True, 1)
        assert (unliked.json()["liked"], unliked.json()["like_count"]) == (False, 0)

        feed = await client.get("/api/posts", headers=headers)
        assert feed.json()["posts"][0]["liked_by_me"] is False

    @pytest.mark.asyncio
    async def test_comment_and_delete(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()
        post_id = (
            await client.post("/api/posts", data={"content": "Model photos"}, headers=headers)
        ).json()["id"]

        comment = await client.post(
            f"/api/posts/{post_id}/comments", json={"content": "Great massing"}, headers=headers
        )
        assert comment.status_code == 201

        deleted = await client.delete(f"/api/posts/{post_id}", headers=headers)
        assert deleted.status_code == 204
        missing = await client.post(f"/api/posts/{post_id}/like", headers=headers)
        assert missing.status_code == 404


class TestUploads:

    @pytest.mark.asyncio
    async def test_oversize_avatar_never_reaches_storage(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()
        too_big = b"\0" * (settings.avatar_max_size + 1)

        with patch.object(storage_service, "upload", new_callable=AsyncMock) as mock_upload:
            response = await client.post(
                "/api/profiles/me/avatar",
                files={"file": ("huge.png", too_big, "image/png")},
                headers=headers,
            )

        assert response.status_code == 400
        assert "exceeds" in response.json()["message"]
        mock_upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_avatar_upload_updates_profile(self, client, make_user, session_cookie, sample_image_bytes):
        await make_user()
        headers = await session_cookie()

        with patch.object(storage_service, "sniff_content_type", return_value="image/png"):
            response = await client.post(
                "/api/profiles/me/avatar",
                files={"file": ("me.png", sample_image_bytes, "image/png")},
                headers=headers,
            )

        assert response.status_code == 200
        avatar_url = response.json()["avatar_url"]
        assert avatar_url.startswith("/storage/avatars/")

        served = await client.get(avatar_url)
        assert served.status_code == 200
        assert served.content == sample_image_bytes


class TestConnections:

    @pytest.mark.asyncio
    async def test_request_and_accept(self, client, make_user, session_cookie):
        ada = await make_user()
        grace = await make_user("grace@example.com", "Grace Hopper")
        ada_headers = await session_cookie()
        grace_headers = await session_cookie("grace@example.com")

        sent = await client.post(f"/api/connections/{grace.id}", headers=ada_headers)
        assert sent.status_code == 201

        page = await client.get(f"/profile?id={ada.id}", headers=grace_headers)
        assert page.json()["connection"]["status"] == "pending"
        assert page.json()["connection"]["direction"] == "incoming"

        accepted = await client.post(f"/api/connections/{ada.id}/accept", headers=grace_headers)
        assert accepted.status_code == 200

        network = await client.get("/network", headers=ada_headers)
        assert [c["profile"]["id"] for c in network.json()["connections"]] == [str(grace.id)]

    @pytest.mark.asyncio
    async def test_requester_cannot_accept(self, client, make_user, session_cookie):
        await make_user()
        grace = await make_user("grace@example.com", "Grace Hopper")
        headers = await session_cookie()

        await client.post(f"/api/connections/{grace.id}", headers=headers)
        response = await client.post(f"/api/connections/{grace.id}/accept", headers=headers)

        assert response.status_code == 404


class TestJobs:

    @pytest.mark.asyncio
    async def test_post_and_close_job(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()
        form = {
            "title": "Junior Designer",
            "company_name": "Atelier Sud",
            "location": "Lyon",
            "job_type": "internship",
            "description": "Support the competition team on housing schemes.",
            "requirements": "Portfolio and working knowledge of Rhino.",
            "contact_email": "hr@ateliersud.com",
            "application_url": "",
        }

        created = await client.post("/api/jobs", json=form, headers=headers)
        assert created.status_code == 201
        job_id = created.json()["id"]

        closed = await client.patch(f"/api/jobs/{job_id}/status", json={"status": "closed"}, headers=headers)
        assert closed.status_code == 200

        board = await client.get("/jobs", headers=headers)
        assert board.json()["jobs"] == []
        assert [j["status"] for j in board.json()["my_jobs"]] == ["closed"]

    @pytest.mark.asyncio
    async def test_invalid_job_type(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()
        response = await client.post("/api/jobs", json={"job_type": "gig"}, headers=headers)
        assert response.status_code == 422


class TestPagesAndHealth:

    @pytest.mark.asyncio
    async def test_unknown_profile_falls_back_to_dashboard(self, client, make_user, session_cookie):
        await make_user()
        headers = await session_cookie()

        response = await client.get(f"/profile?id={uuid.uuid4()}", headers=headers)

        assert response.status_code == 307
        assert response.headers["location"] == "/dashboard"

    @pytest.mark.asyncio
    async def test_own_profile_page(self, client, make_user, session_cookie):
        user = await make_user()
        headers = await session_cookie()

        response = await client.get("/profile", headers=headers)

        body = response.json()
        assert body["is_own_profile"] is True
        assert body["profile"]["id"] == str(user.id)
        assert body["connection"] is None

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_writes_over_budget_get_429(self, client):
        credentials = {"email": "ada@example.com", "password": "correct-horse"}
        with patch.object(settings, "rate_limit_requests", 2):
            first = await client.post("/api/auth/login", json=credentials)
            second = await client.post("/api/auth/login", json=credentials)
            third = await client.post(
                "/api/auth/login", json=credentials, headers={"X-Request-ID": "burst-3"}
            )

        assert first.status_code == second.status_code == 401
        assert third.status_code == 429
        assert int(third.headers["Retry-After"]) > 0
        assert third.json()["error"] == "rate_limit_exceeded"
        assert third.json()["request_id"] == "burst-3"
        assert third.json()["details"]["retry_after"] == int(third.headers["Retry-After"])
        assert third.headers["X-Request-ID"] == "burst-3"

    @pytest.mark.asyncio
    async def test_reads_are_not_limited(self, client):
        with patch.object(settings, "rate_limit_requests", 1):
            for _ in range(3):
                assert (await client.get("/health")).status_code == 200

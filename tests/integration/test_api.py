# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP-level tests: sessions, envelopes and a quiz round through the API."""

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from src.infrastructure.database.models import User

pytestmark = pytest.mark.integration

PASSWORD = "correct horse battery"


async def sign_up_and_in(client: AsyncClient, email: str, name: str = "Test User") -> str:
    response = await client.post(
        "/api/v1/auth/sign-up",
        json={"email": email, "name": name, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text

    response = await client.post(
        "/api/v1/auth/sign-in",
        json={"email": email, "password": PASSWORD},
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestAuthAPI:
    """Tests for the auth endpoints."""

    @pytest.mark.asyncio
    async def test_sign_up_sign_in_and_session(self, client: AsyncClient) -> None:
        token = await sign_up_and_in(client, "Ada@Example.com", "Ada")

        response = await client.get("/api/v1/auth/session", headers=bearer(token))

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["user"]["email"] == "ada@example.com"
        assert body["data"]["user"]["role"] == "member"
        assert body["data"]["token"] is None

    @pytest.mark.asyncio
    async def test_sign_in_sets_http_only_cookie(self, client: AsyncClient) -> None:
        await client.post(
            "/api/v1/auth/sign-up",
            json={"email": "cookie@example.com", "name": "C", "password": PASSWORD},
        )

        response = await client.post(
            "/api/v1/auth/sign-in",
            json={"email": "cookie@example.com", "password": PASSWORD},
        )

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("session=")
        assert "HttpOnly" in set_cookie

    @pytest.mark.asyncio
    async def test_duplicate_sign_up_is_conflict(self, client: AsyncClient) -> None:
        payload = {"email": "dup@example.com", "name": "D", "password": PASSWORD}
        await client.post("/api/v1/auth/sign-up", json=payload)

        response = await client.post("/api/v1/auth/sign-up", json=payload)

        assert response.status_code == 409
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_wrong_password_is_rejected(self, client: AsyncClient) -> None:
        await sign_up_and_in(client, "wrong@example.com")

        response = await client.post(
            "/api/v1/auth/sign-in",
            json={"email": "wrong@example.com", "password": "not the password"},
        )

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "data": None,
            "error": "Invalid email or password",
        }

    @pytest.mark.asyncio
    async def test_sign_out_invalidates_token(self, client: AsyncClient) -> None:
        token = await sign_up_and_in(client, "bye@example.com")

        await client.post("/api/v1/auth/sign-out", headers=bearer(token))
        client.cookies.clear()
        response = await client.get("/api/v1/auth/session", headers=bearer(token))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_banned_user_loses_session(self, client: AsyncClient, db_session) -> None:
        token = await sign_up_and_in(client, "banned@example.com")
        client.cookies.clear()

        await db_session.execute(
            update(User).where(User.email == "banned@example.com").values(banned=True)
        )
        await db_session.commit()
        response = await client.get("/api/v1/auth/session", headers=bearer(token))

        assert response.status_code == 401


class TestEnvelope:
    """Tests for error envelopes."""

    @pytest.mark.asyncio
    async def test_missing_session(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/quizzes")

        assert response.status_code == 401
        assert response.json()["error"] == "Not authenticated"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/quizzes", headers=bearer("garbage"))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_quiz_is_not_found(self, client: AsyncClient) -> None:
        token = await sign_up_and_in(client, "nf@example.com")

        response = await client.get("/api/v1/quizzes/does-not-exist", headers=bearer(token))

        assert response.status_code == 404
        assert response.json() == {"success": False, "data": None, "error": "Quiz not found"}

    @pytest.mark.asyncio
    async def test_validation_error(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/sign-up",
            json={"email": "not-an-email", "name": "X", "password": PASSWORD},
        )

        body = response.json()
        assert response.status_code == 422
        assert body["success"] is False
        assert body["error"].startswith("email")

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"


class TestQuizRoundTrip:
    """A super-admin sets up a quiz, a member takes it, the owner exports."""

    @pytest.mark.asyncio
    async def test_quiz_flow(self, client: AsyncClient, db_session) -> None:
        root_token = await sign_up_and_in(client, "root@example.com", "Root")
        await db_session.execute(
            update(User).where(User.email == "root@example.com").values(role="super-admin")
        )
        await db_session.commit()
        pupil_token = await sign_up_and_in(client, "pupil@example.com", "Pupil")
        client.cookies.clear()

        org = (
            await client.post(
                "/api/v1/organizations", json={"name": "Hill Valley High"}, headers=bearer(root_token)
            )
        ).json()["data"]
        assert org["slug"] == "hill-valley-high"

        invite = await client.post(
            "/api/v1/invitations",
            json={"organization_id": org["id"], "emails": ["pupil@example.com"]},
            headers=bearer(root_token),
        )
        assert invite.json()["data"] == {"invited": 1, "existing": 0, "invalid": 0}

        mine = (await client.get("/api/v1/invitations/mine", headers=bearer(pupil_token))).json()
        accepted = await client.post(
            f"/api/v1/invitations/{mine['data'][0]['id']}/accept", headers=bearer(pupil_token)
        )
        assert accepted.status_code == 200

        quiz = (
            await client.post(
                "/api/v1/quizzes",
                json={"organization_id": org["id"], "title": "Physics"},
                headers=bearer(root_token),
            )
        ).json()["data"]
        imported = await client.post(
            f"/api/v1/quizzes/{quiz['id']}/questions/import",
            json={
                "questions": [
                    {"text": "1.21 what?", "options": ["Gigawatts", "Megawatts"], "correct_answer": "Gigawatts"},
                    {"text": "Speed?", "options": ["88 mph", "55 mph"], "correct_answer": "88 mph"},
                ]
            },
            headers=bearer(root_token),
        )
        question_ids = [q["id"] for q in imported.json()["data"]]

        taking = await client.get(f"/api/v1/quizzes/{quiz['id']}/take", headers=bearer(pupil_token))
        assert "correct_answer" not in taking.json()["data"]["questions"][0]

        submitted = await client.post(
            f"/api/v1/quizzes/{quiz['id']}/responses",
            json={"answers": {question_ids[0]: "Gigawatts", question_ids[1]: "55 mph"}},
            headers=bearer(pupil_token),
        )
        assert submitted.status_code == 201
        assert submitted.json()["data"]["percentage"] == 50

        again = await client.post(
            f"/api/v1/quizzes/{quiz['id']}/responses",
            json={"answers": {}},
            headers=bearer(pupil_token),
        )
        assert again.status_code == 409

        forbidden = await client.get(
            f"/api/v1/quizzes/{quiz['id']}/responses", headers=bearer(pupil_token)
        )
        assert forbidden.status_code == 403

        export = await client.get(
            f"/api/v1/quizzes/{quiz['id']}/responses/export", headers=bearer(root_token)
        )
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/csv")
        assert 'filename="Physics_responses_' in export.headers["content-disposition"]
        assert export.text.split("\n")[1].startswith('"Pupil","pupil@example.com","0.5"')


class TestHealthAPI:
    """Tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_readiness_without_engine(self, client: AsyncClient) -> None:
        """Test that readiness reports 503 while the engine is not initialized."""
        response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"]["status"] == "unhealthy"

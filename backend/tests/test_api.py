"""
Campus Tasker Backend - HTTP API Tests
======================================

End-to-end through the ASGI app: routing, dependencies, status codes,
error body shape and response headers.

Error body (every handled error):
    {"error": "<code>", "message": "...", "request_id": "...", "details": {...}?}
"""

import pytest

from conftest import TEST_PASSWORD


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_signup_returns_session(self, test_client):
        response = await test_client.post(
            "/api/auth/signup",
            json={"email": "Priya@Campus.edu", "password": TEST_PASSWORD, "name": "Priya"},
        )

        assert response.status_code == 201
        assert response.headers["Cache-Control"] == "no-store"
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user"]["email"] == "priya@campus.edu"
        assert body["user"]["role"] == "both"

    @pytest.mark.asyncio
    async def test_duplicate_signup_conflicts(self, test_client):
        payload = {"email": "dup@campus.edu", "password": TEST_PASSWORD}
        assert (await test_client.post("/api/auth/signup", json=payload)).status_code == 201

        response = await test_client.post("/api/auth/signup", json=payload)
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_signin_and_me(self, test_client):
        await test_client.post(
            "/api/auth/signup",
            json={"email": "me@campus.edu", "password": TEST_PASSWORD, "name": "Me"},
        )
        response = await test_client.post(
            "/api/auth/signin", json={"email": "me@campus.edu", "password": TEST_PASSWORD}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["name"] == "Me"
        assert me.json()["email"] == "me@campus.edu"

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, test_client):
        await test_client.post(
            "/api/auth/signup", json={"email": "wp@campus.edu", "password": TEST_PASSWORD}
        )
        response = await test_client.post(
            "/api/auth/signin", json={"email": "wp@campus.edu", "password": "definitely-wrong"}
        )
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_garbage_token_is_401_even_on_public_routes(self, test_client):
        response = await test_client.get(
            "/api/tasks", headers={"Authorization": "Bearer not-a-session"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_signout_revokes_token(self, test_client, signup):
        _, headers = await signup()

        assert (await test_client.post("/api/auth/signout", headers=headers)).status_code == 204
        assert (await test_client.get("/api/auth/me", headers=headers)).status_code == 401


class TestTaskLifecycleOverHttp:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, test_client, signup):
        poster_id, poster = await signup("Poster")
        tasker_id, tasker = await signup("Tasker", role="tasker")
        _, latecomer = await signup("Latecomer")

        created = await test_client.post(
            "/api/tasks",
            json={"title": "Pick up printouts", "description": "Block C", "price": 80},
            headers=poster,
        )
        assert created.status_code == 201
        task = created.json()
        assert task["status"] == "open"
        assert task["price"] == 80.0
        task_id = task["id"]

        browse = await test_client.get("/api/tasks", headers=tasker)
        assert browse.status_code == 200
        assert browse.headers["X-Total-Count"] == "1"
        assert [t["id"] for t in browse.json()["tasks"]] == [task_id]

        accepted = await test_client.post(f"/api/tasks/{task_id}/accept", headers=tasker)
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"
        assert accepted.json()["assignment"]["tasker_id"] == tasker_id

        too_late = await test_client.post(f"/api/tasks/{task_id}/accept", headers=latecomer)
        assert too_late.status_code == 409
        assert too_late.json()["error"] == "conflict"

        self_complete = await test_client.post(f"/api/tasks/{task_id}/complete", headers=tasker)
        assert self_complete.status_code == 403
        assert self_complete.json()["details"]["resource"] == "task assignment"

        completed = await test_client.post(f"/api/tasks/{task_id}/complete", headers=poster)
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["assignment"]["completed_at"] is not None

        review = await test_client.post(
            f"/api/tasks/{task_id}/reviews",
            json={"rating": 5, "comment": "Quick and friendly"},
            headers=poster,
        )
        assert review.status_code == 201
        assert review.json()["reviewee_id"] == tasker_id

        rating = await test_client.get(f"/api/users/{tasker_id}/rating")
        assert rating.json() == {"average_rating": 5.0, "review_count": 1}

        reviews = await test_client.get(f"/api/users/{tasker_id}/reviews")
        assert reviews.json()[0]["reviewer"]["name"] == "Poster"

        posted = await test_client.get("/api/tasks/posted", headers=poster)
        assert [t["id"] for t in posted.json()] == [task_id]
        assigned = await test_client.get("/api/tasks/assigned", headers=tasker)
        assert [t["id"] for t in assigned.json()] == [task_id]

        history = await test_client.get(f"/api/users/{poster_id}/tasks")
        assert [t["id"] for t in history.json()] == [task_id]

    @pytest.mark.asyncio
    async def test_unassign_and_delete(self, test_client, signup):
        _, poster = await signup()
        _, tasker = await signup()

        task_id = (
            await test_client.post(
                "/api/tasks", json={"title": "Water my plants", "price": 40}, headers=poster
            )
        ).json()["id"]
        await test_client.post(f"/api/tasks/{task_id}/accept", headers=tasker)

        blocked = await test_client.delete(f"/api/tasks/{task_id}", headers=poster)
        assert blocked.status_code == 409

        released = await test_client.post(f"/api/tasks/{task_id}/unassign", headers=tasker)
        assert released.status_code == 200
        assert released.json()["status"] == "open"
        assert released.json()["assignment"] is None

        assert (await test_client.delete(f"/api/tasks/{task_id}", headers=poster)).status_code == 204
        assert (await test_client.get(f"/api/tasks/{task_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_posting_requires_auth(self, test_client):
        response = await test_client.post("/api/tasks", json={"title": "Anonymous task", "price": 50})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_tasker_role_cannot_post(self, test_client, signup):
        _, tasker = await signup(role="tasker")
        response = await test_client.post(
            "/api/tasks", json={"title": "Not allowed here", "price": 50}, headers=tasker
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_invalid_input_is_422(self, test_client, signup):
        _, poster = await signup()
        for payload in (
            {"title": "Hi", "price": 50},
            {"title": "Valid title here", "price": 5},
            {"title": "Valid title here", "price": 20000},
        ):
            response = await test_client.post("/api/tasks", json=payload, headers=poster)
            assert response.status_code == 422, payload

    @pytest.mark.asyncio
    async def test_bad_sort_is_422(self, test_client):
        response = await test_client.get("/api/tasks", params={"sort": "price"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_task_is_404(self, test_client):
        response = await test_client.get("/api/tasks/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestProfilesOverHttp:

    @pytest.mark.asyncio
    async def test_public_profile_hides_private_fields(self, test_client, signup):
        user_id, own = await signup("Owner")
        _, other = await signup("Other")

        mine = await test_client.get(f"/api/users/{user_id}", headers=own)
        theirs = await test_client.get(f"/api/users/{user_id}", headers=other)

        assert mine.json()["email"] is not None
        assert theirs.json()["email"] is None

    @pytest.mark.asyncio
    async def test_cannot_patch_someone_else(self, test_client, signup):
        user_id, _ = await signup("Owner")
        _, other = await signup("Other")
        response = await test_client.patch(
            f"/api/users/{user_id}", json={"name": "Changed"}, headers=other
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_fields_rejected(self, test_client, signup):
        user_id, headers = await signup()
        response = await test_client.patch(
            f"/api/users/{user_id}", json={"is_admin": True}, headers=headers
        )
        assert response.status_code == 422


class TestTransactionsOverHttp:

    @pytest.mark.asyncio
    async def test_ledger_round_trip(self, test_client, signup):
        _, headers = await signup()

        created = await test_client.post(
            "/api/transactions", json={"amount": 300, "description": "Top-up"}, headers=headers
        )
        assert created.status_code == 201

        listed = await test_client.get("/api/transactions", headers=headers)
        assert [t["amount"] for t in listed.json()] == [300]

    @pytest.mark.asyncio
    async def test_oversized_amount_is_422(self, test_client, signup):
        _, headers = await signup()

        response = await test_client.post(
            "/api/transactions", json={"amount": 10**20}, headers=headers
        )
        assert response.status_code == 422

        listed = await test_client.get("/api/transactions", headers=headers)
        assert listed.json() == []

    @pytest.mark.asyncio
    async def test_ledger_requires_auth(self, test_client):
        assert (await test_client.get("/api/transactions")).status_code == 401


class TestCrossCutting:

    @pytest.mark.asyncio
    async def test_request_id_echoed_and_in_error_body(self, test_client):
        response = await test_client.get(
            "/api/tasks/00000000-0000-0000-0000-000000000000",
            headers={"X-Request-ID": "trace-abc"},
        )
        assert response.headers["X-Request-ID"] == "trace-abc"
        assert response.json()["request_id"] == "trace-abc"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

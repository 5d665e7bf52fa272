"""Integration tests for timer endpoints."""
from datetime import datetime, timedelta

import pytest

from tests.helpers import bearer, seed


@pytest.mark.asyncio
class TestTimerStart:
    """Tests for starting timers."""

    async def test_start_timer_success(self, app_client, mongo_db):
        """Test starting a timer returns the stored entry."""
        ids = await seed(mongo_db)
        project_id = ids["projects"]["Website Redesign"]

        response = await app_client.post(
            "/timers/start",
            json={"project_id": project_id, "ticket_id": ids["ticket_id"]},
            headers=bearer(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["project_id"] == project_id
        assert data["project_name"] == "Website Redesign"
        assert data["ticket_number"] == 42
        assert data["user_id"] == "user-1"
        assert "id" in data

    async def test_start_timer_already_running(self, app_client, mongo_db):
        """Test starting a second timer fails with 409."""
        ids = await seed(mongo_db)
        headers = bearer()

        await app_client.post(
            "/timers/start", json={"project_id": ids["projects"]["Support"]}, headers=headers
        )
        response = await app_client.post(
            "/timers/start", json={"project_id": ids["projects"]["Internal"]}, headers=headers
        )

        assert response.status_code == 409
        assert await mongo_db["time_entries"].count_documents({}) == 1

    async def test_users_have_independent_timers(self, app_client, mongo_db):
        ids = await seed(mongo_db)
        project_id = ids["projects"]["Support"]

        first = await app_client.post(
            "/timers/start", json={"project_id": project_id}, headers=bearer("user-1")
        )
        second = await app_client.post(
            "/timers/start", json={"project_id": project_id}, headers=bearer("user-2")
        )

        assert first.status_code == 200
        assert second.status_code == 200

    async def test_start_timer_unknown_project(self, app_client, mongo_db):
        await seed(mongo_db)

        response = await app_client.post(
            "/timers/start", json={"project_id": "missing"}, headers=bearer()
        )

        assert response.status_code == 404

    async def test_start_timer_ticket_from_other_project(self, app_client, mongo_db):
        ids = await seed(mongo_db)

        response = await app_client.post(
            "/timers/start",
            json={"project_id": ids["projects"]["Support"], "ticket_id": ids["ticket_id"]},
            headers=bearer(),
        )

        assert response.status_code == 404

    async def test_start_timer_unauthenticated(self, app_client):
        response = await app_client.post("/timers/start", json={"project_id": "p1"})

        assert response.status_code == 401

    async def test_start_timer_bad_token(self, app_client):
        response = await app_client.post(
            "/timers/start",
            json={"project_id": "p1"},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401


@pytest.mark.asyncio
class TestTimerStop:
    """Tests for stopping timers."""

    async def test_stop_timer_success(self, app_client, mongo_db):
        ids = await seed(mongo_db)
        headers = bearer()
        await app_client.post(
            "/timers/start", json={"project_id": ids["projects"]["Support"]}, headers=headers
        )

        response = await app_client.post("/timers/stop", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["end_time"] is not None
        assert data["duration_minutes"] == 0

    async def test_stop_timer_not_running(self, app_client, mongo_db):
        """Test stopping when no timer is running returns 404."""
        await seed(mongo_db)

        response = await app_client.post("/timers/stop", headers=bearer())

        assert response.status_code == 404
        assert response.json()["detail"] == "No timer running"


@pytest.mark.asyncio
class TestTimerCurrent:
    """Tests for the current timer."""

    async def test_current_timer(self, app_client, mongo_db):
        ids = await seed(mongo_db)
        headers = bearer()
        await app_client.post(
            "/timers/start", json={"project_id": ids["projects"]["Research"]}, headers=headers
        )

        response = await app_client.get("/timers/current", headers=headers)

        assert response.status_code == 200
        assert response.json()["project_name"] == "Research"

    async def test_current_timer_idle(self, app_client, mongo_db):
        await seed(mongo_db)

        response = await app_client.get("/timers/current", headers=bearer())

        assert response.status_code == 404


@pytest.mark.asyncio
class TestTimerReporting:
    """Tests for summaries and entry listing."""

    async def test_summary_counts_only_stopped(self, app_client, mongo_db):
        await seed(mongo_db)
        now = datetime.utcnow()
        await mongo_db["time_entries"].insert_many([
            {
                "user_id": "user-1",
                "project_id": "p1",
                "start_time": now,
                "end_time": now,
                "duration_minutes": 45,
            },
            {
                "user_id": "user-1",
                "project_id": "p1",
                "start_time": now,
                "end_time": None,
                "duration_minutes": None,
            },
            {
                "user_id": "user-2",
                "project_id": "p1",
                "start_time": now,
                "end_time": now,
                "duration_minutes": 30,
            },
        ])

        response = await app_client.get("/timers/summary?period=today", headers=bearer())

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "today"
        assert data["total_minutes"] == 45

    async def test_summary_invalid_period(self, app_client):
        response = await app_client.get("/timers/summary?period=year", headers=bearer())

        assert response.status_code == 422

    async def test_list_entries_most_recent_first(self, app_client, mongo_db):
        await seed(mongo_db)
        base = datetime(2024, 5, 1, 9, 0, 0)
        for offset in range(3):
            start = base + timedelta(days=offset)
            await mongo_db["time_entries"].insert_one({
                "user_id": "user-1",
                "project_id": "p1",
                "description": f"day {offset}",
                "start_time": start,
                "end_time": start + timedelta(hours=1),
                "duration_minutes": 60,
                "created_at": start,
                "updated_at": start,
            })

        response = await app_client.get("/timers", headers=bearer())

        assert response.status_code == 200
        assert [e["description"] for e in response.json()] == ["day 2", "day 1", "day 0"]

    async def test_list_entries_other_user_empty(self, app_client, mongo_db):
        await seed(mongo_db)

        response = await app_client.get("/timers", headers=bearer("user-2"))

        assert response.json() == []


@pytest.mark.asyncio
class TestAuthMe:
    """Tests for the current user endpoint."""

    async def test_me(self, app_client, mongo_db):
        await seed(mongo_db)

        response = await app_client.get("/auth/me", headers=bearer())

        assert response.status_code == 200
        assert response.json()["email"] == "ada@example.com"

    async def test_me_unknown_user(self, app_client, mongo_db):
        response = await app_client.get("/auth/me", headers=bearer("ghost"))

        assert response.status_code == 404

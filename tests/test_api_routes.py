"""
tests/test_api_routes.py — FastAPI Route Integration Tests
==========================================================

Exercises the dashboard REST surface with the FastAPI TestClient.  The
store is a real in-memory :class:`RecordStore`; the bot runner is a mock.
The lifespan never runs (no ``with TestClient(...)``), so no Discord
connection is attempted.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from trmsbot.api.deps import get_config, get_runner, get_store
from trmsbot.api.main import app
from trmsbot.bot.runner import BotRunner
from trmsbot.services.store import FeedbackInput, JobCompletionInput, OrderInput


@pytest.fixture
def runner() -> MagicMock:
    fake = MagicMock(spec=BotRunner)
    fake.is_ready.return_value = True
    fake.restart = AsyncMock()
    return fake


@pytest.fixture
def client(store, runner, cfg):
    """TestClient with the store, runner and config swapped in."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_runner] = lambda: runner
    app.dependency_overrides[get_config] = lambda: cfg
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def _complete(store, username: str = "trms_u") -> None:
    store.create_job_completion(JobCompletionInput(
        user_id="u1", username=username, server_id="s1",
        server_name="TRMS", channel_id="c1", channel_name="streak",
    ))


# ===========================================================================
# Health
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# /api/bot
# ===========================================================================
class TestBotStats:
    def test_stats_include_jobs_today_and_live_status(self, client, store):
        _complete(store)
        _complete(store)
        data = client.get("/api/bot/stats").json()
        assert data["jobsToday"] == 2
        assert data["isOnline"] is True
        assert data["uptime"] == "99.8%"
        assert {"serverCount", "activeUsers", "streakChannels", "lastRestart"} <= data.keys()

    def test_store_failure_is_a_500(self, client):
        broken = MagicMock()
        broken.get_bot_stats.side_effect = RuntimeError("db down")
        app.dependency_overrides[get_store] = lambda: broken
        resp = client.get("/api/bot/stats")
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Failed to fetch bot stats"}


class TestBotControl:
    def test_restart(self, client, runner):
        resp = client.post("/api/bot/restart")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Bot restarted successfully"}
        runner.restart.assert_awaited_once()

    def test_restart_failure(self, client, runner):
        runner.restart.side_effect = RuntimeError("no token")
        resp = client.post("/api/bot/restart")
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to restart bot"

    def test_clear_logs_is_a_noop(self, client, store):
        _complete(store)
        resp = client.post("/api/bot/clear-logs")
        assert resp.json() == {"message": "Logs cleared successfully"}
        assert len(store.get_all_job_completions()) == 1

    def test_test_job_levels_the_test_user(self, client):
        first = client.post("/api/bot/test").json()
        assert first["completion"]["username"] == "trms_u"
        assert first["completion"]["channelName"] == "test-streak"
        assert first["level"]["leveledUp"] is False
        assert "newLevel" not in first["level"]

        second = client.post("/api/bot/test").json()
        assert second["level"]["leveledUp"] is True
        assert second["level"]["newLevel"] == 2
        assert second["level"]["userLevel"]["totalJobs"] == 2

    def test_export_is_an_attachment(self, client, store):
        _complete(store)
        resp = client.get("/api/bot/export")
        assert resp.status_code == 200
        assert resp.headers["content-disposition"] == 'attachment; filename="bot-data.json"'
        data = resp.json()
        assert set(data) == {"botStats", "jobCompletions", "exportedAt"}
        assert len(data["jobCompletions"]) == 1


# ===========================================================================
# Jobs, users & levels
# ===========================================================================
class TestJobsAndUsers:
    def test_recent_jobs_limit(self, client, store):
        for _ in range(5):
            _complete(store)
        assert len(client.get("/api/jobs/recent").json()) == 5
        assert len(client.get("/api/jobs/recent?limit=2").json()) == 2

    def test_top_users_is_the_roster(self, client, store):
        _complete(store, "noterooo")
        _complete(store, "stranger")
        data = client.get("/api/users/top").json()
        assert [u["username"] for u in data][0] == "noterooo"
        assert len(data) == 4
        assert data[0] == {"username": "noterooo", "jobCount": 1, "level": 1}

    def test_job_taken_stats(self, client):
        data = client.get("/api/jobs/taken/stats").json()
        assert [s["username"] for s in data] == ["trms_u", "noterooo", "danzz0561", "youknowfaiz_"]


class TestLevels:
    def test_missing_user_level_is_404(self, client):
        resp = client.get("/api/levels/nobody")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "User level not found"}

    def test_user_level_progress_uses_two_job_cadence(self, client, store):
        store.update_user_level("trms_u", 3)
        data = client.get("/api/levels/trms_u").json()
        assert data["level"] == 2
        assert data["jobsToNextLevel"] == 1
        assert data["nextLevel"] == 3

    def test_all_levels(self, client, store):
        _complete(store, "trms_u")
        data = client.get("/api/levels").json()
        assert len(data) == 4
        assert data[0]["username"] == "trms_u"
        assert data[0]["jobsToNextLevel"] == 1
        assert data[1]["jobsToNextLevel"] == 2

    def test_recent_level_ups(self, client):
        client.post("/api/bot/test")
        client.post("/api/bot/test")
        data = client.get("/api/recent-level-ups").json()
        assert data[0]["username"] == "trms_u"
        assert data[0]["newLevel"] == 2


# ===========================================================================
# Orders, clients & feedback
# ===========================================================================
class TestOrdersAndClients:
    def _order(self, store, client_id="c1", name="ay"):
        return store.create_order(OrderInput(
            client_id=client_id, client_username=name, model="Hat",
            server_id="s1", channel_id="ch1",
        ))

    def test_orders_filtered_by_status(self, client, store):
        done = self._order(store)
        self._order(store)
        store.update_order_status(done.id, "done")
        assert len(client.get("/api/orders").json()) == 2
        waiting = client.get("/api/orders?status=waiting").json()
        assert len(waiting) == 1
        assert waiting[0]["status"] == "waiting"

    def test_unknown_status_is_rejected(self, client):
        assert client.get("/api/orders?status=lost").status_code == 422

    def test_clients(self, client, store):
        self._order(store, "c1", "ay")
        self._order(store, "c1", "ay")
        self._order(store, "c2", "bee")
        data = client.get("/api/clients").json()
        assert data == [
            {"clientId": "c1", "clientUsername": "ay", "orderCount": 2},
            {"clientId": "c2", "clientUsername": "bee", "orderCount": 1},
        ]

    def test_feedback(self, client, store):
        store.create_client_feedback(FeedbackInput(
            client_id="c1", client_username="ay", feedback="Great", server_id="s1", rating=4,
        ))
        data = client.get("/api/feedback").json()
        assert data[0]["feedback"] == "Great"
        assert data[0]["rating"] == 4

"""
trmsbot.api.routes.bot — Bot control & stats endpoints
======================================================

Everything under ``/api/bot``: live stats, restart, a synthetic test
completion, the clear-logs stub, and the JSON export.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status

from trmsbot.api.deps import get_config, get_runner, get_store, server_error
from trmsbot.bot.runner import BotRunner
from trmsbot.config import TrmsConfig
from trmsbot.services.store import JobCompletionInput, RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bot", tags=["bot"])

EXPORT_FILENAME = "bot-data.json"


# ---------------------------------------------------------------------------
# GET /bot/stats
# ---------------------------------------------------------------------------
@router.get("/stats")
def get_bot_stats(
    store: RecordStore = Depends(get_store),
    runner: BotRunner | None = Depends(get_runner),
):
    """Bot-stats singleton plus today's completion count."""
    with server_error("Failed to fetch bot stats"):
        stats = store.get_bot_stats().to_dict()
        if runner is not None:
            stats["isOnline"] = runner.is_ready()
        stats["jobsToday"] = store.get_job_completions_today()
        return stats


# ---------------------------------------------------------------------------
# POST /bot/restart
# ---------------------------------------------------------------------------
@router.post("/restart")
async def restart_bot(runner: BotRunner | None = Depends(get_runner)):
    if runner is None:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to restart bot")
    with server_error("Failed to restart bot"):
        await runner.restart()
    return {"message": "Bot restarted successfully"}


# ---------------------------------------------------------------------------
# POST /bot/test
# ---------------------------------------------------------------------------
@router.post("/test")
def create_test_job(
    store: RecordStore = Depends(get_store),
    cfg: TrmsConfig = Depends(get_config),
):
    """Record one completion for the test user and re-level them."""
    with server_error("Failed to create test job"):
        completion = store.create_job_completion(JobCompletionInput(
            user_id="test-user",
            username=cfg.test_username,
            server_id="test-server",
            server_name="Test Server",
            channel_id="test-channel",
            channel_name="test-streak",
        ))
        total_jobs = store.get_job_completions_for(cfg.test_username)
        result = store.update_user_level(cfg.test_username, total_jobs)
        return {
            "message": "Test job completion created",
            "completion": completion.to_dict(),
            "level": result.to_dict(),
        }


# ---------------------------------------------------------------------------
# POST /bot/clear-logs
# ---------------------------------------------------------------------------
@router.post("/clear-logs")
def clear_logs():
    """Acknowledge only; no records are deleted."""
    return {"message": "Logs cleared successfully"}


# ---------------------------------------------------------------------------
# GET /bot/export
# ---------------------------------------------------------------------------
@router.get("/export")
def export_data(store: RecordStore = Depends(get_store)):
    """Stats and every completion as a downloadable JSON file."""
    with server_error("Failed to export data"):
        payload = {
            "botStats": store.get_bot_stats().to_dict(),
            "jobCompletions": [c.to_dict() for c in store.get_all_job_completions()],
            "exportedAt": datetime.now().isoformat(),
        }
    return Response(
        content=json.dumps(payload),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )

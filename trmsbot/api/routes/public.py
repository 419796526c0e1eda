"""
trmsbot.api.routes.public — Read-only dashboard endpoints
=========================================================

Every endpoint here is a thin read over the shared
:class:`~trmsbot.services.store.RecordStore`.  JSON keys are camelCase
and timestamps ISO-8601, matching what the dashboard polls for.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from trmsbot.api.deps import get_store, server_error
from trmsbot.database.models import OrderStatus
from trmsbot.engine.leveling import jobs_to_next_level
from trmsbot.services.store import RecordStore

router = APIRouter(tags=["public"])

LEVELS_PAGE_SIZE = 10


# ---------------------------------------------------------------------------
# Jobs & leaderboard
# ---------------------------------------------------------------------------
@router.get("/jobs/recent")
def get_recent_jobs(
    limit: int = Query(10, ge=1, le=1000),
    store: RecordStore = Depends(get_store),
):
    with server_error("Failed to fetch recent jobs"):
        return [c.to_dict() for c in store.get_recent_job_completions(limit)]


@router.get("/jobs/taken/stats")
def get_job_taken_stats(store: RecordStore = Depends(get_store)):
    with server_error("Failed to fetch job status stats"):
        return [s.to_dict() for s in store.get_job_taken_stats()]


@router.get("/users/top")
def get_top_users(
    limit: int = Query(4, ge=1, le=100),
    store: RecordStore = Depends(get_store),
):
    with server_error("Failed to fetch top users"):
        return [u.to_dict() for u in store.get_top_users(limit)]


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------
@router.get("/levels")
def get_levels(store: RecordStore = Depends(get_store)):
    """Leaderboard entries with progress toward the next level."""
    with server_error("Failed to get user levels"):
        return [
            {
                **u.to_dict(),
                "jobsToNextLevel": jobs_to_next_level(u.job_count),
                "nextLevel": u.level + 1,
            }
            for u in store.get_top_users(LEVELS_PAGE_SIZE)
        ]


@router.get("/levels/{username}")
def get_user_level(username: str, store: RecordStore = Depends(get_store)):
    with server_error("Failed to get user level"):
        level = store.get_user_level(username)
        if level is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "User level not found")
        return {
            **level.to_dict(),
            "jobsToNextLevel": jobs_to_next_level(level.total_jobs),
            "nextLevel": level.level + 1,
        }


@router.get("/recent-level-ups")
def get_recent_level_ups(
    limit: int = Query(5, ge=1, le=50),
    store: RecordStore = Depends(get_store),
):
    with server_error("Failed to fetch recent level ups"):
        return store.get_recent_level_ups(limit)


# ---------------------------------------------------------------------------
# Orders, clients & feedback
# ---------------------------------------------------------------------------
@router.get("/orders")
def get_orders(
    order_status: OrderStatus | None = Query(None, alias="status"),
    store: RecordStore = Depends(get_store),
):
    with server_error("Failed to fetch orders"):
        return [o.to_dict() for o in store.get_orders_by_status(order_status)]


@router.get("/clients")
def get_clients(store: RecordStore = Depends(get_store)):
    with server_error("Failed to fetch clients"):
        return [c.to_dict() for c in store.get_all_clients()]


@router.get("/feedback")
def get_feedback(
    limit: int = Query(10, ge=1, le=100),
    store: RecordStore = Depends(get_store),
):
    with server_error("Failed to fetch feedback"):
        return [f.to_dict() for f in store.get_client_feedback(limit)]

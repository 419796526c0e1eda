"""
trmsbot.api.deps — FastAPI dependency injection
===============================================

The store and bot runner are built once in the app lifespan and parked
on ``app.state``; routes receive them through these dependencies so
tests can swap them with ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from fastapi import HTTPException, Request, status

from trmsbot.bot.runner import BotRunner
from trmsbot.config import TrmsConfig, load_config
from trmsbot.services.store import RecordStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_config() -> TrmsConfig:
    return load_config(os.getenv("TRMS_CONFIG", "config.yaml"))


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_runner(request: Request) -> BotRunner | None:
    return getattr(request.app.state, "runner", None)


@contextmanager
def server_error(message: str) -> Iterator[None]:
    """Turn any unexpected exception in the block into a logged HTTP 500.

    ``HTTPException`` raised inside the block passes through unchanged.
    """
    try:
        yield
    except HTTPException:
        raise
    except Exception:
        logger.exception(message)
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

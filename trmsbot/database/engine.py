"""
trmsbot.database.engine — Database Connection & Async Helper
============================================================

Discord bots run on an ``asyncio`` event loop.  SQLAlchemy is
**synchronous**, so cogs never call the store directly: they go through
``await run_db(store.some_method, ...)`` which ships the call to a worker
thread and keeps the event loop free.

By default the engine is an **in-memory SQLite** database shared by every
thread (``StaticPool``), so records live exactly as long as the process.
Point ``DATABASE_URL`` at a real database to keep them across restarts.

Usage::

    from trmsbot.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # DATABASE_URL or in-memory SQLite
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async Cog method:
    level = await run_db(store.get_user_level, "trms_u")
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from trmsbot.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

IN_MEMORY_URL = "sqlite://"


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine`.

    *url* wins over the ``DATABASE_URL`` env var; with neither set the
    engine is a process-local in-memory SQLite database.

    Returns
    -------
    Engine
        A configured SQLAlchemy engine instance.
    """
    url = url or os.getenv("DATABASE_URL") or IN_MEMORY_URL

    if url.startswith("sqlite"):
        # One shared connection so every thread sees the same database.
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            url,
            echo=False,          # Set True for SQL debugging
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,  # Reconnect stale connections automatically
            pool_timeout=10,     # Fail after 10s instead of hanging forever
            pool_recycle=3600,   # Recycle connections after 1 hour
        )
    logger.info("Database engine created → %s", engine.url.render_as_string(hide_password=True))
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`trmsbot.database.models`.

    Safe to call on every startup — ``CREATE TABLE IF NOT EXISTS`` under
    the hood.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.

    Objects stay loaded after the commit, so they can be expunged and
    handed to callers outside the session.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** store call on a background thread.

    Every store call in a cog or the dispatcher goes through this wrapper::

        result = await run_db(store.create_job_completion, data)

    Under the hood it calls :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor`` so the bot's event loop
    is never blocked.
    """
    return await asyncio.to_thread(func, *args, **kwargs)

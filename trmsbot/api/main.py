"""
trmsbot.api.main — FastAPI application entry point
==================================================

The lifespan builds the one :class:`RecordStore` for the process, then
starts the Discord bot on the same event loop.  A bot that fails to come
up (no token, bad login) is logged and the API keeps serving.

Run with::

    uvicorn trmsbot.api.main:app --port 5000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from trmsbot.api.deps import get_config  # noqa: E402
from trmsbot.api.routes.bot import router as bot_router  # noqa: E402
from trmsbot.api.routes.public import router as public_router  # noqa: E402
from trmsbot.bot.runner import BotRunner  # noqa: E402
from trmsbot.database.engine import create_db_engine  # noqa: E402
from trmsbot.services.store import RecordStore  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store, start the bot; stop the bot on shutdown."""
    cfg = get_config()
    store = RecordStore(create_db_engine(), roster=cfg.roster)
    runner = BotRunner(cfg, store)
    app.state.store = store
    app.state.runner = runner
    logger.info("TRMS API started — team %s, roster of %d", cfg.team_name, len(cfg.roster))

    try:
        await runner.initialize()
    except Exception:
        logger.error("Discord bot unavailable; serving the dashboard API without it")

    yield

    await runner.close()
    logger.info("TRMS API shutting down")


app = FastAPI(
    title="TRMS Job Bot Dashboard API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(bot_router, prefix="/api")
app.include_router(public_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}

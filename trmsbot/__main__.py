"""
trmsbot.__main__ — Entry point for ``python -m trmsbot``
========================================================

Wiring:
1. Load .env (secrets: bot token, optional DATABASE_URL).
2. Configure logging.
3. Load the config (``TRMS_CONFIG``, default config.yaml) for the dashboard port.
4. Serve the FastAPI app; its lifespan builds the store and starts the bot.

Run with::

    python -m trmsbot
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from trmsbot.api.deps import get_config

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("trmsbot")


def main() -> None:
    """Bootstrap and run the bot together with the dashboard API."""
    load_dotenv()

    cfg = get_config()
    logger.info("Config loaded — Team: %s", cfg.team_name)

    logger.info("Starting dashboard API on port %d…", cfg.dashboard_port)
    try:
        uvicorn.run(
            "trmsbot.api.main:app",
            host="0.0.0.0",
            port=cfg.dashboard_port,
            log_config=None,
        )
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()

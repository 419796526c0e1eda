"""
trmsbot.bot.runner — Chat Connection Lifecycle
==============================================

Runs :class:`~trmsbot.bot.core.TrmsBot` as a background task on the
API's event loop, so the dashboard endpoints and the bot share one
process and one :class:`~trmsbot.services.store.RecordStore`.

- :meth:`BotRunner.initialize` — log in and start the gateway connection.
- :meth:`BotRunner.restart` — tear the connection down and start a fresh bot.
- :meth:`BotRunner.close` — disconnect and mark the bot offline.

A missing token or failed login is fatal for the bot only: the error is
logged and re-raised to whoever called ``initialize``; the REST layer
keeps serving.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime

import discord

from trmsbot.bot.core import TrmsBot
from trmsbot.config import TrmsConfig
from trmsbot.database.engine import run_db
from trmsbot.services.store import RecordStore

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS: tuple[str, ...] = ("DISCORD_BOT_TOKEN", "TOKEN")


def resolve_token() -> str:
    """First non-empty token env var.

    Raises
    ------
    RuntimeError
        If none of :data:`TOKEN_ENV_VARS` is set.
    """
    for name in TOKEN_ENV_VARS:
        token = os.getenv(name, "").strip()
        if token:
            return token
    raise RuntimeError(
        "Discord bot token not found. Set DISCORD_BOT_TOKEN (or TOKEN) in the environment."
    )


class BotRunner:
    """Owns the current bot instance and its connection task."""

    def __init__(self, cfg: TrmsConfig, store: RecordStore) -> None:
        self.cfg = cfg
        self.store = store
        self.bot: TrmsBot | None = None
        self._task: asyncio.Task | None = None

    def _build_bot(self) -> TrmsBot:
        return TrmsBot(cfg=self.cfg, store=self.store)

    def is_ready(self) -> bool:
        return self.bot is not None and self.bot.is_ready()

    async def initialize(self) -> None:
        """Log in and start the gateway connection in the background."""
        if self.bot is not None and not self.bot.is_closed():
            logger.info("Discord bot already initialized")
            return

        try:
            token = resolve_token()
        except RuntimeError:
            logger.error("Failed to initialize Discord bot: no token configured")
            raise

        bot = self._build_bot()
        try:
            await bot.login(token)
        except (discord.LoginFailure, discord.HTTPException):
            logger.exception("Failed to initialize Discord bot")
            await bot.close()
            raise

        self.bot = bot
        self._task = asyncio.create_task(self._connect(bot), name="discord-gateway")
        logger.info("Discord bot initialized")

    async def _connect(self, bot: TrmsBot) -> None:
        try:
            await bot.connect(reconnect=True)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Discord gateway connection ended with an error")
            await self._mark_offline()

    async def _mark_offline(self) -> None:
        try:
            await run_db(self.store.update_bot_stats, is_online=False)
        except Exception:
            logger.exception("Failed to mark bot offline")

    async def close(self) -> None:
        """Disconnect (if connected) and record the bot as offline."""
        bot, task = self.bot, self._task
        self.bot, self._task = None, None

        if bot is not None and not bot.is_closed():
            logger.info("Bot shutting down…")
            await bot.close()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._mark_offline()

    async def restart(self) -> None:
        """Tear down the current connection and bring up a new bot."""
        logger.info("Restarting Discord bot")
        await self.close()
        await run_db(self.store.update_bot_stats, last_restart=datetime.now())
        await self.initialize()

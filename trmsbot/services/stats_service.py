"""
trmsbot.services.stats_service — Bot Stats Aggregator
=====================================================

Recomputes the connection-derived counters on the bot-stats singleton:
guild count, cached user count, and the number of streak channels.
Called from ``on_ready`` and after every job completion.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trmsbot.database.engine import run_db
from trmsbot.services.announcement_service import is_streak_channel

if TYPE_CHECKING:
    from discord.ext import commands

    from trmsbot.database.models import BotStats
    from trmsbot.services.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConnectionSnapshot:
    server_count: int
    active_users: int
    streak_channels: int

    def as_changes(self) -> dict:
        return {
            "server_count": self.server_count,
            "active_users": self.active_users,
            "streak_channels": self.streak_channels,
            "is_online": True,
        }


def count_streak_channels(channel_names: Iterable[str], keyword: str) -> int:
    return sum(1 for name in channel_names if is_streak_channel(name, keyword))


def snapshot_connection(bot: commands.Bot, keyword: str) -> ConnectionSnapshot:
    """Read the counters off the bot's cache."""
    names = (
        ch.name
        for guild in bot.guilds
        for ch in guild.text_channels
    )
    return ConnectionSnapshot(
        server_count=len(bot.guilds),
        active_users=len(bot.users),
        streak_channels=count_streak_channels(names, keyword),
    )


async def refresh_bot_stats(bot: commands.Bot, store: RecordStore, keyword: str) -> BotStats:
    """Snapshot the connection and merge it into the stats singleton."""
    snapshot = snapshot_connection(bot, keyword)
    stats = await run_db(store.update_bot_stats, **snapshot.as_changes())
    logger.debug(
        "Bot stats refreshed: %d servers, %d users, %d streak channels",
        snapshot.server_count, snapshot.active_users, snapshot.streak_channels,
    )
    return stats

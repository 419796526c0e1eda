"""
trmsbot.services.announcement_service — Side-Channel Announcements
==================================================================

Delivers the :class:`~trmsbot.services.dispatcher.Broadcast` items a
handler produced.  Owns channel resolution and the two-step send policy:

1. primary send (with the celebration attachment, if any),
2. on failure, one plain-text fallback,
3. on failure of that too, log and drop.

Nothing here raises to the caller; the direct reply to the invoking user
has already been sent by the time broadcasts go out.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import TYPE_CHECKING

import discord

from trmsbot.services.dispatcher import Broadcast, ChannelRoute

if TYPE_CHECKING:
    from trmsbot.config import TrmsConfig

logger = logging.getLogger(__name__)

# Attachment name used for level-up celebrations
CELEBRATION_FILENAME = "good-job.gif"


# ---------------------------------------------------------------------------
# Channel resolution
# ---------------------------------------------------------------------------
def is_streak_channel(name: str, keyword: str) -> bool:
    return keyword.lower() in name.lower()


def find_streak_channel(guild: discord.Guild | None, keyword: str) -> discord.TextChannel | None:
    """First text channel whose name contains *keyword* (case-insensitive)."""
    if guild is None:
        return None
    return next((ch for ch in guild.text_channels if is_streak_channel(ch.name, keyword)), None)


def resolve_channel(
    guild: discord.Guild | None, route: ChannelRoute, cfg: TrmsConfig
) -> discord.TextChannel | None:
    """Map a broadcast route to a guild text channel, or ``None``.

    Orders and feedback match the configured name exactly; streak
    broadcasts match any channel containing the streak keyword.
    """
    if guild is None:
        return None
    if route is ChannelRoute.STREAK:
        return find_streak_channel(guild, cfg.streak_keyword)

    name = cfg.order_channel if route is ChannelRoute.ORDERS else cfg.feedback_channel
    return discord.utils.get(guild.text_channels, name=name)


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------
async def _send_primary(channel: discord.abc.Messageable, broadcast: Broadcast) -> None:
    if broadcast.attachment and os.path.isfile(broadcast.attachment):
        await channel.send(
            content=broadcast.content,
            file=discord.File(broadcast.attachment, filename=CELEBRATION_FILENAME),
        )
    else:
        await channel.send(content=broadcast.content)


async def deliver_broadcast(channel: discord.abc.Messageable | None, broadcast: Broadcast) -> bool:
    """Send *broadcast* to *channel*.  Returns whether anything was posted."""
    if channel is None:
        logger.info("No %s channel found; broadcast skipped", broadcast.route)
        return False

    channel_id = getattr(channel, "id", 0)
    try:
        await _send_primary(channel, broadcast)
        return True
    except Exception as exc:
        logger.warning("Broadcast to channel %s failed: %s", channel_id, exc)

    if not broadcast.fallback:
        return False
    try:
        await channel.send(content=broadcast.fallback)
        return True
    except Exception as exc:
        logger.warning("Fallback broadcast to channel %s failed; dropped: %s", channel_id, exc)
        return False


async def deliver_all(
    guild: discord.Guild | None, broadcasts: Iterable[Broadcast], cfg: TrmsConfig
) -> None:
    for broadcast in broadcasts:
        channel = resolve_channel(guild, broadcast.route, cfg)
        await deliver_broadcast(channel, broadcast)

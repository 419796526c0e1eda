"""
trmsbot.bot.core — Bot Instance & Cog Loader
============================================

Defines :class:`TrmsBot`, a ``commands.Bot`` subclass that:

1. Carries the shared config (``bot.cfg``), the record store
   (``bot.store``) and the interaction dispatcher (``bot.dispatcher``)
   so every Cog reaches them through ``self.bot``.
2. Loads the Cogs in ``trmsbot/bot/cogs/`` and re-attaches the
   persistent button views.
3. Re-registers the slash-command set once per process on first ready
   (clear, short pause, sync), guild-scoped when ``DEV_GUILD_ID`` is set.
4. Refreshes the bot-stats singleton on ready and after completions.

Cogs and views never format replies themselves; they build an event and
hand it to :meth:`TrmsBot.respond`.
"""

from __future__ import annotations

import asyncio
import logging
import os

import discord
from discord.ext import commands

from trmsbot.bot.views import JobClearView, JobStatusView, view_for
from trmsbot.config import TrmsConfig
from trmsbot.services.announcement_service import deliver_all, find_streak_channel
from trmsbot.services.dispatcher import Event, InteractionContext, InteractionDispatcher, Reply
from trmsbot.services.stats_service import refresh_bot_stats
from trmsbot.services.store import RecordStore

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "trmsbot.bot.cogs.jobs",
    "trmsbot.bot.cogs.orders",
    "trmsbot.bot.cogs.clients",
]

# Seconds between clearing and re-registering application commands
COMMAND_REGISTRATION_PAUSE = 1.0


def build_context(interaction: discord.Interaction, streak_keyword: str) -> InteractionContext:
    """Flatten the parts of an interaction the dispatcher needs."""
    guild = interaction.guild
    streak_channel = find_streak_channel(guild, streak_keyword)
    return InteractionContext(
        user_id=str(interaction.user.id),
        username=interaction.user.name,
        guild_id=str(interaction.guild_id or ""),
        guild_name=guild.name if guild else "Unknown Server",
        channel_id=str(interaction.channel_id or ""),
        streak_channel_name=streak_channel.name if streak_channel else None,
    )


class TrmsBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`TrmsConfig` from ``config.yaml``.
    store:
        The process-wide :class:`RecordStore`, shared with the REST API.
    """

    def __init__(self, cfg: TrmsConfig, store: RecordStore) -> None:
        # Guilds + guild messages only; no privileged intents.
        intents = discord.Intents.default()
        intents.message_content = False
        intents.members = False
        intents.presences = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description=f"{cfg.team_name} job tracker",
        )

        self.cfg = cfg
        self.store = store
        self.dispatcher = InteractionDispatcher(
            store,
            team_name=cfg.team_name,
            order_channel=cfg.order_channel,
            feedback_channel=cfg.feedback_channel,
            level_up_gif=cfg.level_up_gif,
        )
        self._commands_registered = False

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load every Cog and re-attach the persistent button views.

        A Cog that fails to load is logged and skipped.
        """
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

        self.add_view(JobClearView())
        self.add_view(JobStatusView())

    async def on_ready(self) -> None:
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Discord bot ready as %s (ID: %s)", self.user, self.user.id)

        if not self._commands_registered:
            await self.register_commands()
            self._commands_registered = True

        await self.refresh_stats()

    async def register_commands(self) -> None:
        """Clear the application commands, pause, then sync the full set.

        Failures are logged; the bot keeps running with whatever Discord
        already has registered.
        """
        registered = self.tree.get_commands()
        logger.info("Registering commands: %s", ", ".join(c.name for c in registered))

        try:
            self.tree.clear_commands(guild=None)
            await self.tree.sync()
            logger.info("Cleared existing commands.")
        except Exception:
            logger.exception("Failed to clear existing commands")
        finally:
            for command in registered:
                self.tree.add_command(command, override=True)

        await asyncio.sleep(COMMAND_REGISTRATION_PAUSE)

        try:
            dev_guild_id = os.getenv("DEV_GUILD_ID")
            if dev_guild_id:
                guild = discord.Object(id=int(dev_guild_id))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
            else:
                synced = await self.tree.sync()
                logger.info("Synced %d commands globally", len(synced))
        except Exception:
            logger.exception("Error registering slash commands")

    async def refresh_stats(self) -> None:
        try:
            await refresh_bot_stats(self, self.store, self.cfg.streak_keyword)
        except Exception:
            logger.exception("Failed to refresh bot stats")

    # -----------------------------------------------------------------------
    # Event → reply plumbing shared by cogs and views
    # -----------------------------------------------------------------------
    async def respond(self, interaction: discord.Interaction, event: Event) -> Reply:
        """Dispatch *event*, answer the interaction, then run side effects."""
        ctx = build_context(interaction, self.cfg.streak_keyword)
        reply = await self.dispatcher.dispatch(ctx, event)

        try:
            await send_reply(interaction, reply)
        except discord.HTTPException:
            logger.exception("Failed to reply to %s", type(event).__name__)

        await deliver_all(interaction.guild, reply.broadcasts, self.cfg)

        if reply.refresh_stats:
            await self.refresh_stats()
        return reply


async def send_reply(interaction: discord.Interaction, reply: Reply) -> None:
    """Answer *interaction* with *reply*, as a follow-up if already answered."""
    kwargs: dict = {"content": reply.content, "ephemeral": reply.ephemeral}
    view = view_for(reply.buttons)
    if view is not None:
        kwargs["view"] = view

    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)

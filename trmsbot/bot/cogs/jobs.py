"""
trmsbot.bot.cogs.jobs — Job Tracking Commands
=============================================

- /job — post the Job Clear button
- /leaderboard — team performance dashboard
- /taken — post the job-status workflow buttons
- /template — client requirements template
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from trmsbot.services.dispatcher import (
    JobCommand,
    LeaderboardCommand,
    TakenCommand,
    TemplateCommand,
)

if TYPE_CHECKING:
    from trmsbot.bot.core import TrmsBot


class Jobs(commands.Cog, name="Jobs"):
    """Job completion, workflow status and the leaderboard."""

    def __init__(self, bot: TrmsBot) -> None:
        self.bot = bot

    @app_commands.command(name="job", description="Complete a job with interactive button")
    async def job(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, JobCommand())

    @app_commands.command(name="leaderboard", description="Display top 4 artists leaderboard")
    async def leaderboard(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, LeaderboardCommand())

    @app_commands.command(
        name="taken",
        description="Manage job status: taken by artist, update progress, or mark completed",
    )
    async def taken(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, TakenCommand())

    @app_commands.command(name="template", description="Show client form requirements template")
    async def template(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, TemplateCommand())


async def setup(bot: TrmsBot) -> None:
    await bot.add_cog(Jobs(bot))

"""
trmsbot.bot.cogs.clients — Client & Team Information Commands
=============================================================

- /feedback — save client feedback and post it to the feedback channel
- /clientlist — every client with their order count
- /portfolio, /rules, /info — fixed team information
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from trmsbot.services.dispatcher import (
    ClientListCommand,
    FeedbackCommand,
    InfoCommand,
    PortfolioCommand,
    RulesCommand,
)

if TYPE_CHECKING:
    from trmsbot.bot.core import TrmsBot


class Clients(commands.Cog, name="Clients"):
    """Client feedback and the team's public-facing texts."""

    def __init__(self, bot: TrmsBot) -> None:
        self.bot = bot

    @app_commands.command(name="feedback", description="Save client feedback")
    @app_commands.describe(
        client="The client providing feedback",
        message="Feedback message",
        rating="Rating (1-5 stars)",
    )
    async def feedback(
        self,
        interaction: discord.Interaction,
        client: discord.User,
        message: str,
        rating: app_commands.Range[int, 1, 5] | None = None,
    ) -> None:
        await self.bot.respond(interaction, FeedbackCommand(
            client_id=str(client.id),
            client_username=client.name,
            message=message,
            rating=rating,
        ))

    @app_commands.command(name="clientlist", description="Display list of all clients")
    async def clientlist(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, ClientListCommand())

    @app_commands.command(name="portfolio", description="Share portfolio links")
    async def portfolio(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, PortfolioCommand())

    @app_commands.command(name="rules", description="Display trading rules and guidelines")
    async def rules(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, RulesCommand())

    @app_commands.command(name="info", description="Display all bot features and commands")
    async def info(self, interaction: discord.Interaction) -> None:
        await self.bot.respond(interaction, InfoCommand())


async def setup(bot: TrmsBot) -> None:
    await bot.add_cog(Clients(bot))

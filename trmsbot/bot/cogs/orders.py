"""
trmsbot.bot.cogs.orders — Order Lifecycle Commands
==================================================

- /order — create a client order and announce it in the order channel
- /status — move an order (matched by id prefix) to a new status
- /claim — take the client's latest waiting order
- /quote — send the standard price quote
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from trmsbot.services.dispatcher import (
    ClaimCommand,
    OrderCommand,
    QuoteCommand,
    StatusCommand,
)

if TYPE_CHECKING:
    from trmsbot.bot.core import TrmsBot


class Orders(commands.Cog, name="Orders"):
    """Client orders from request to delivery."""

    def __init__(self, bot: TrmsBot) -> None:
        self.bot = bot

    @app_commands.command(name="order", description="Create a new order from client")
    @app_commands.describe(
        client="The client placing the order",
        model="Model/item description",
        deadline="Deadline (e.g., Aug 8, Tomorrow, 3 days)",
    )
    async def order(
        self,
        interaction: discord.Interaction,
        client: discord.User,
        model: str,
        deadline: str | None = None,
    ) -> None:
        await self.bot.respond(interaction, OrderCommand(
            client_id=str(client.id),
            client_username=client.name,
            model=model,
            deadline=deadline,
        ))

    @app_commands.command(name="status", description="Update order status")
    @app_commands.describe(order_id="Order ID to update", status="New status")
    @app_commands.choices(status=[
        app_commands.Choice(name="Waiting", value="waiting"),
        app_commands.Choice(name="Progress", value="progress"),
        app_commands.Choice(name="Done", value="done"),
    ])
    async def status(self, interaction: discord.Interaction, order_id: str, status: str) -> None:
        await self.bot.respond(interaction, StatusCommand(order_id=order_id, status=status))

    @app_commands.command(name="quote", description="Send automatic quote message to client")
    @app_commands.describe(price="Price quote (e.g., 100 robux, $5)")
    async def quote(self, interaction: discord.Interaction, price: str) -> None:
        await self.bot.respond(interaction, QuoteCommand(price=price))

    @app_commands.command(name="claim", description="Claim a client project")
    @app_commands.describe(client="The client whose project to claim")
    async def claim(self, interaction: discord.Interaction, client: discord.User) -> None:
        await self.bot.respond(interaction, ClaimCommand(
            client_id=str(client.id),
            client_username=client.name,
        ))


async def setup(bot: TrmsBot) -> None:
    await bot.add_cog(Orders(bot))

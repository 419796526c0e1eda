"""
trmsbot.bot.views — Persistent Button Rows
==========================================

Both views use ``timeout=None`` and fixed ``custom_id`` values so the
bot can re-register them in ``setup_hook`` and keep answering buttons
posted before a restart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from trmsbot.services.dispatcher import (
    ButtonSet,
    JobClearPressed,
    JobCompletedPressed,
    JobTakenPressed,
    JobUpdatePressed,
)

if TYPE_CHECKING:
    from trmsbot.bot.core import TrmsBot


class JobClearView(discord.ui.View):
    """The single **Job Clear** button under ``/job``."""

    def __init__(self) -> None:
        super().__init__(timeout=None)

    @discord.ui.button(label="✅ Job Clear", style=discord.ButtonStyle.success, custom_id="job_clear")
    async def job_clear(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        bot: TrmsBot = interaction.client  # type: ignore[assignment]
        await bot.respond(interaction, JobClearPressed())


class JobStatusView(discord.ui.View):
    """Taken / progress / completed buttons under ``/taken``."""

    def __init__(self) -> None:
        super().__init__(timeout=None)

    @discord.ui.button(
        label="\U0001f4cb Job Taken by Artist", style=discord.ButtonStyle.primary, custom_id="job_taken"
    )
    async def job_taken(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        bot: TrmsBot = interaction.client  # type: ignore[assignment]
        await bot.respond(interaction, JobTakenPressed())

    @discord.ui.button(
        label="\U0001f4c8 Update Progress", style=discord.ButtonStyle.secondary, custom_id="job_update"
    )
    async def job_update(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        bot: TrmsBot = interaction.client  # type: ignore[assignment]
        await bot.respond(interaction, JobUpdatePressed())

    @discord.ui.button(
        label="✅ Job Completed", style=discord.ButtonStyle.success, custom_id="job_completed"
    )
    async def job_completed(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        bot: TrmsBot = interaction.client  # type: ignore[assignment]
        await bot.respond(interaction, JobCompletedPressed())


def view_for(buttons: ButtonSet | None) -> discord.ui.View | None:
    if buttons is ButtonSet.JOB_CLEAR:
        return JobClearView()
    if buttons is ButtonSet.JOB_STATUS:
        return JobStatusView()
    return None

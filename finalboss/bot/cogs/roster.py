"""
finalboss.bot.cogs.roster — Roster Slash Commands
==================================================

- /roster-refresh — force a roster refresh (reports failure politely)
- /roster-check   — is an RSN on the clan roster?
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from finalboss.engine.errors import RosterRefreshError

if TYPE_CHECKING:
    from finalboss.bot.core import FinalBossBot

logger = logging.getLogger(__name__)


class Roster(commands.Cog, name="Roster"):
    """Clan roster lookups backed by the shared roster cache."""

    def __init__(self, bot: FinalBossBot) -> None:
        self.bot = bot

    async def refresh_message(self) -> str:
        try:
            size = await self.bot.roster.refresh()
        except RosterRefreshError as exc:
            logger.warning("Roster refresh command failed: %s", exc.__cause__)
            return f"❌ {exc}"
        return f"✅ Roster refreshed: **{size}** members."

    async def check_message(self, rsn: str) -> str:
        if await self.bot.roster.is_member(rsn):
            return f"✅ **{rsn}** is on the {self.bot.cfg.clan_name} roster."
        return f"❌ **{rsn}** is not on the {self.bot.cfg.clan_name} roster."

    @app_commands.command(name="roster-refresh", description="Re-fetch the clan roster now.")
    async def roster_refresh(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        await interaction.followup.send(await self.refresh_message(), ephemeral=True)

    @app_commands.command(name="roster-check", description="Check whether an RSN is in the clan.")
    @app_commands.describe(rsn="RuneScape name to look up")
    async def roster_check(self, interaction: discord.Interaction, rsn: str) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        await interaction.followup.send(await self.check_message(rsn), ephemeral=True)


async def setup(bot: FinalBossBot) -> None:
    await bot.add_cog(Roster(bot))

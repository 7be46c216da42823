"""Player-facing information commands."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from ..constants import EMBED_FIELD_LIMIT, NEUTRAL_COLOUR
from ..errors import ConfigurationError
from ..utils import chunked, stat_summary
from .base import RollCog

log = logging.getLogger(__name__)


class PlayerCog(RollCog):
    @app_commands.command(name="summary", description="Display a summary of a player stats")
    async def summary(self, interaction: discord.Interaction) -> None:
        try:
            player = self.load_player(interaction.user.name)
        except ConfigurationError as exc:
            log.error("Failed to load player %s: %s", interaction.user.name, exc)
            await self.send_error(
                interaction, f"Your player record could not be read:\n{exc}"
            )
            return
        if player is None:
            await self.send_error(
                interaction,
                f"No player stats found for player {interaction.user.name}.",
            )
            return

        pages = chunked(stat_summary(self.state, player), EMBED_FIELD_LIMIT) or [[]]
        for index, page in enumerate(pages, start=1):
            embed = discord.Embed(title=f"**{player.name}**", colour=NEUTRAL_COLOUR)
            if len(pages) > 1:
                embed.description = f"Page {index}/{len(pages)}"
            for name, value in page:
                embed.add_field(name=name, value=value, inline=True)
            if index == 1:
                await interaction.response.send_message(embed=embed, ephemeral=True)
            else:
                await interaction.followup.send(embed=embed, ephemeral=True)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(PlayerCog(bot))

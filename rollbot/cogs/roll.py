"""Stat checks and free dice rolls."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from ..errors import ConfigurationError
from ..game import roll_die
from ..session import begin_roll
from ..views import DiscordRollTransport
from .base import RollCog

log = logging.getLogger(__name__)


class RollsCog(RollCog):
    @app_commands.command(name="roll", description="Roll a d100 against one of your stats")
    async def roll(self, interaction: discord.Interaction) -> None:
        identity = interaction.user.name
        transport = DiscordRollTransport(
            interaction,
            selection_timeout=self.config.selection_timeout,
            confirm_timeout=self.config.confirm_timeout,
        )
        await begin_roll(self.state, self.store, transport, identity)

    @app_commands.command(name="dice", description="Roll a dice")
    @app_commands.describe(faces="The number of faces of the dice")
    async def dice(
        self, interaction: discord.Interaction, faces: app_commands.Range[int, 2]
    ) -> None:
        log.info("Rolling a dice with %d faces", faces)
        try:
            player = self.load_player(interaction.user.name)
        except ConfigurationError as exc:
            log.error("Failed to load player %s: %s", interaction.user.name, exc)
            player = None
        player_name = player.name if player else interaction.user.name
        result = roll_die(faces)
        log.info("Rolled %d/%d", result, faces)
        embed = discord.Embed(
            title=f"**{player_name}**", description=f"d{faces}: **{result}**"
        )
        await interaction.response.send_message(embed=embed)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(RollsCog(bot))

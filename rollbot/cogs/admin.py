"""Utility and game-master commands."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from ..errors import ConfigurationError
from ..game import GameState
from .base import RollCog

log = logging.getLogger(__name__)

HELP_TEXT = "\n".join(
    [
        "**/roll**: choose one of your stats and roll a d100 against it",
        "**/dice** `faces`: roll a dice with the given number of faces",
        "**/summary**: show your mastery and experience in every stat",
        "**/ping**: check that the bot is alive",
        "**/reload**: reload the config folder (game master only)",
    ]
)


class AdminCog(RollCog):
    @app_commands.command(name="ping", description="Check that the bot is up and running")
    async def ping(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message("pong!")

    @app_commands.command(name="help", description="List the available commands")
    async def help(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(HELP_TEXT, ephemeral=True)

    @app_commands.command(name="reload", description="Reload stats, affinities and players")
    async def reload(self, interaction: discord.Interaction) -> None:
        game_master = self.state.config.game_master_discord_name
        if not game_master or interaction.user.name != game_master:
            await self.send_error(interaction, "Only the game master may reload the config.")
            return
        try:
            state = GameState.load(self.config.config_dir)
        except ConfigurationError as exc:
            log.error("Reload rejected: %s", exc)
            await self.send_error(
                interaction, f"Config not reloaded, the previous one stays active:\n{exc}"
            )
            return
        self.bot.state = state  # type: ignore[attr-defined]
        log.info("Configuration reloaded by %s", interaction.user.name)
        await interaction.response.send_message(
            f"Config reloaded: {len(state.leaf_stats())} stats, "
            f"{len(state.players)} players.",
            ephemeral=True,
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(AdminCog(bot))

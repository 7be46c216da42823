"""Shared helpers for cogs."""

from __future__ import annotations

import discord
from discord.ext import commands

from ..config import BotConfig
from ..game import GameState
from ..models.players import Player
from ..storage import PlayerStore


class RollCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def store(self) -> PlayerStore:
        return self.bot.store  # type: ignore[attr-defined, no-any-return]

    @property
    def state(self) -> GameState:
        return self.bot.state  # type: ignore[attr-defined, no-any-return]

    @property
    def config(self) -> BotConfig:
        return self.bot.config  # type: ignore[attr-defined, no-any-return]

    def load_player(self, identity: str) -> Player | None:
        """Read the current record for ``identity``, or ``None`` if unknown.

        Raises :class:`ConfigurationError` when the record exists but cannot
        be read.
        """

        path = self.state.player_path(identity)
        if path is None:
            return None
        return self.store.load(path)

    async def send_error(self, interaction: discord.Interaction, message: str) -> None:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)

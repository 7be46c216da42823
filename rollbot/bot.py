"""Entry point for the stat-check Discord bot."""

from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from .config import BotConfig
from .game import GameState
from .storage import PlayerStore

log = logging.getLogger(__name__)


class RollBot(commands.Bot):
    def __init__(self, config: BotConfig, state: GameState):
        intents = discord.Intents.default()
        super().__init__(command_prefix="!", intents=intents)
        self.config = config
        self.state = state
        self.store = PlayerStore(config.config_dir / "players")
        self._synced = False

    async def setup_hook(self) -> None:
        await self.load_extension("rollbot.cogs.roll")
        await self.load_extension("rollbot.cogs.player")
        await self.load_extension("rollbot.cogs.admin")

    async def on_ready(self) -> None:
        if not self._synced:
            await self.tree.sync()
            self._synced = True
            log.info("Application commands synced")
        if self.user:
            log.info("Connected as %s (%s)", self.user, self.user.id)


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    config = BotConfig.from_env()
    # An inconsistent config folder is fatal: let the error end the process.
    state = GameState.load(config.config_dir)
    bot = RollBot(config, state)
    async with bot:
        await bot.start(config.token)


if __name__ == "__main__":
    asyncio.run(main())
